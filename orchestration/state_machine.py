"""
Drives a PipelineContext from its initial state to COMPLETED or FAILED.
"""

import logging
import time
from typing import Dict

from .context import PipelineContext
from .states import PipelineState, is_valid_transition
from .handlers.base import StateHandler, determine_next_state

# Stages without which a run cannot produce anything
REQUIRED_STATES = (PipelineState.LOADING_TABLES, PipelineState.PROCESSING)


class StateMachine:
    """Runs one handler per state and enforces the transition table."""

    def __init__(self, handlers: Dict[PipelineState, StateHandler]):
        self.handlers = handlers
        self.logger = logging.getLogger(self.__class__.__name__)

        missing = [str(s) for s in REQUIRED_STATES if s not in handlers]
        if missing:
            self.logger.warning(f"No handler registered for {', '.join(missing)}")

    def run(self, initial_context: PipelineContext) -> PipelineContext:
        # Each state is visited at most once on a forward-only path
        max_steps = len(PipelineState)
        context = initial_context

        for _ in range(max_steps):
            if context.is_terminal:
                break
            context = self.step(context)
        else:
            if not context.is_terminal:
                context = context.with_error(
                    message=f"Pipeline did not terminate after {max_steps} steps",
                    details={"state": str(context.current_state)},
                )

        self._report(context)
        return context

    def step(self, context: PipelineContext) -> PipelineContext:
        """Run the handler of the current state and move to the state it picks."""
        state = context.current_state
        handler = self.handlers.get(state)
        started = time.time()

        try:
            if handler is None:
                self.logger.debug(f"{state}: no handler, following task configuration")
                updated, next_state = context, determine_next_state(context)
            else:
                updated, next_state = handler.handle(context)
        except Exception as e:
            self.logger.error(f"{state} failed: {e}", exc_info=True)
            return context.with_error(
                message=f"Error in {state}: {e}",
                details={"state": str(state), "exception": type(e).__name__},
            )

        if not is_valid_transition(state, next_state):
            self.logger.error(f"Handler for {state} requested {next_state}")
            return context.with_error(message=f"Invalid state transition: {state} -> {next_state}")

        self.logger.info(f"{state} -> {next_state} ({time.time() - started:.1f}s)")
        return updated.with_state(next_state)

    def _report(self, context: PipelineContext):
        if context.is_successful:
            self.logger.info(f"Pipeline completed in {context.elapsed_time:.1f}s")
        else:
            self.logger.error(
                f"Pipeline failed in {context.current_state} after "
                f"{context.elapsed_time:.1f}s: {context.error_message}"
            )
