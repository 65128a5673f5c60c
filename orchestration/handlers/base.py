"""
Handler interface and the task-driven choice of the next stage.
"""

from abc import ABC, abstractmethod
import logging

from orchestration.context import PipelineContext
from orchestration.states import PipelineState, OPTIONAL_STAGES


def determine_next_state(context: PipelineContext) -> PipelineState:
    """
    Next stage after ``context.current_state``.

    Loading and processing always run; writing output and plotting only
    when their task flag is set.
    """
    current = context.current_state
    if current == PipelineState.IDLE:
        return PipelineState.LOADING_TABLES
    if current == PipelineState.LOADING_TABLES:
        return PipelineState.PROCESSING

    tasks = context.config.tasks
    enabled = {
        PipelineState.WRITING_OUTPUT: tasks.do_write_output,
        PipelineState.PLOTTING: tasks.do_plots,
    }
    remaining = OPTIONAL_STAGES
    if current in OPTIONAL_STAGES:
        remaining = OPTIONAL_STAGES[OPTIONAL_STAGES.index(current) + 1:]
    for stage in remaining:
        if enabled[stage]:
            return stage
    return PipelineState.COMPLETED


class StateHandler(ABC):
    """Does the work of one state and picks the state that follows."""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def handle(self, context: PipelineContext) -> tuple[PipelineContext, PipelineState]:
        """Return the updated context and the next state; raise to fail the run."""

    def _advance(self, context: PipelineContext) -> tuple[PipelineContext, PipelineState]:
        next_state = determine_next_state(context)
        self.logger.debug(f"{context.current_state} done, next {next_state}")
        return context, next_state
