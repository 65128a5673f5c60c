"""
Exceptions for the strangeness QA pipeline.

Skip decisions on candidates and events are outcomes, not errors. These
exceptions cover contract violations by the table source and invalid
configuration, which must stop processing.
"""


class StrangenessQAError(Exception):
    """Base class for all pipeline errors."""
    pass


class ConfigurationError(StrangenessQAError):
    """Raised when the configuration file is missing sections or malformed."""
    pass


class TableIntegrityError(StrangenessQAError):
    """
    Raised when a table row references a row that does not exist.

    Examples:
    - V0 candidate pointing to a missing track
    - cascade pointing to a missing V0 link row
    - truth label pointing outside the MC particle table
    """

    def __init__(self, table: str, row_id: int, reference: str, target_id: int):
        self.table = table
        self.row_id = row_id
        self.reference = reference
        self.target_id = target_id
        super().__init__(
            f"{table} row {row_id}: {reference}={target_id} does not resolve"
        )
