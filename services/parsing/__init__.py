"""
Parsing services.

Services responsible for reading input tables from ROOT files.
"""

from .table_reader import BatchRef, TableReader
from .schemas import get_schema

__all__ = [
    "BatchRef",
    "TableReader",
    "get_schema",
]
