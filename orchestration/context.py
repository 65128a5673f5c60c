"""
Immutable run state handed from one handler to the next.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Any
from datetime import datetime

from domain.config import PipelineConfig
from domain.statistics import RunStatistics
from .states import PipelineState


@dataclass(frozen=True)
class PipelineContext:
    """
    Everything a run has produced so far.

    Handlers never mutate a context; each ``with_*`` method returns a copy
    with the fields of one stage filled in.
    """

    config: PipelineConfig
    current_state: PipelineState
    start_time: datetime = field(default_factory=datetime.now)

    # LOADING_TABLES
    input_paths: tuple[str, ...] = ()
    batch_refs: tuple = ()
    failed_sources: tuple[tuple[str, str], ...] = ()

    # PROCESSING
    registry: Optional[Any] = None
    batch_results: tuple = ()
    run_stats: Optional[RunStatistics] = None

    # WRITING_OUTPUT / PLOTTING
    output_path: Optional[str] = None
    plot_paths: tuple[str, ...] = ()

    error_message: Optional[str] = None
    error_details: Optional[dict] = None

    def with_state(self, new_state: PipelineState) -> 'PipelineContext':
        return replace(self, current_state=new_state)

    def with_batches(self, input_paths, batch_refs, failed_sources=()) -> 'PipelineContext':
        """Record the files of this job, the batches located in them and unreadable files."""
        return replace(
            self,
            input_paths=tuple(input_paths),
            batch_refs=tuple(batch_refs),
            failed_sources=tuple(failed_sources),
        )

    def with_results(self, registry, batch_results, run_stats: RunStatistics) -> 'PipelineContext':
        return replace(
            self,
            failed_sources=run_stats.failed_sources,
            registry=registry,
            batch_results=tuple(batch_results),
            run_stats=run_stats,
        )

    def with_output_path(self, path: str) -> 'PipelineContext':
        return replace(self, output_path=path)

    def with_plot_paths(self, paths) -> 'PipelineContext':
        return replace(self, plot_paths=tuple(str(p) for p in paths))

    def with_error(self, message: str, details: Optional[dict] = None) -> 'PipelineContext':
        """Move to FAILED, keeping whatever earlier stages produced."""
        return replace(
            self,
            current_state=PipelineState.FAILED,
            error_message=message,
            error_details=details or {},
        )

    @property
    def elapsed_time(self) -> float:
        return (datetime.now() - self.start_time).total_seconds()

    @property
    def is_terminal(self) -> bool:
        return self.current_state.is_terminal()

    @property
    def is_successful(self) -> bool:
        return self.current_state == PipelineState.COMPLETED

    @property
    def has_error(self) -> bool:
        return self.current_state == PipelineState.FAILED

    def get_summary(self) -> dict:
        """Flat description of the run, stored with the batch statistics."""
        return {
            "state": str(self.current_state),
            "elapsed_time_sec": round(self.elapsed_time, 2),
            "start_time": self.start_time.isoformat(),
            "input_files": len(self.input_paths),
            "failed_files": len(self.failed_sources),
            "processed_batches": len(self.batch_results),
            "output_path": self.output_path,
            "plots": len(self.plot_paths),
            "error_message": self.error_message,
        }
