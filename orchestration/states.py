"""
Stages of a run and the transitions allowed between them.
"""

from enum import Enum, auto


class PipelineState(Enum):
    IDLE = auto()
    LOADING_TABLES = auto()
    # Event selection, candidate evaluation and generated spectra
    PROCESSING = auto()
    # Histogram file, status tree and metadata sidecar
    WRITING_OUTPUT = auto()
    PLOTTING = auto()
    COMPLETED = auto()
    FAILED = auto()

    def is_terminal(self) -> bool:
        return self in (PipelineState.COMPLETED, PipelineState.FAILED)

    def __str__(self) -> str:
        return self.name


# Stages that task flags may switch off, in run order
OPTIONAL_STAGES = (PipelineState.WRITING_OUTPUT, PipelineState.PLOTTING)


def _transitions() -> dict:
    """
    Forward-only table: IDLE -> LOADING_TABLES -> PROCESSING, then any
    later optional stage or COMPLETED. Every live state may fail.
    """
    table = {
        PipelineState.IDLE: {PipelineState.LOADING_TABLES},
        PipelineState.LOADING_TABLES: {PipelineState.PROCESSING},
        PipelineState.PROCESSING: set(OPTIONAL_STAGES) | {PipelineState.COMPLETED},
    }
    for i, stage in enumerate(OPTIONAL_STAGES):
        table[stage] = set(OPTIONAL_STAGES[i + 1:]) | {PipelineState.COMPLETED}
    for targets in table.values():
        targets.add(PipelineState.FAILED)
    table[PipelineState.COMPLETED] = set()
    table[PipelineState.FAILED] = set()
    return table


VALID_TRANSITIONS = _transitions()


def is_valid_transition(from_state: PipelineState, to_state: PipelineState) -> bool:
    return to_state in VALID_TRANSITIONS.get(from_state, set())
