"""
Output writing state handler.

Writes histograms, the reconstruction status tree and the run metadata.
"""

from orchestration.context import PipelineContext
from orchestration.states import PipelineState
from .base import StateHandler
from services.histograms.writer import HistogramWriter, status_columns


class OutputWritingHandler(StateHandler):
    """Handler for WRITING_OUTPUT state."""
    
    def __init__(self, writer: HistogramWriter):
        super().__init__()
        self.writer = writer
    
    def handle(self, context: PipelineContext) -> tuple[PipelineContext, PipelineState]:
        config = context.config
        status = status_columns(
            (result.batch_index, result.status) for result in context.batch_results
        )
        metadata = {
            "run_name": config.run_name,
            "batch_job_index": config.batch_job_index,
            "total_batch_jobs": config.total_batch_jobs,
            "input_files": list(context.input_paths),
            "selection": config.selection_summary(),
            "statistics": context.run_stats.to_dict() if context.run_stats else None,
            "batches": [result.statistics.to_dict() for result in context.batch_results],
        }
        
        output_path = self.writer.write(
            context.registry,
            config.output.output_path,
            status=status,
            metadata=metadata,
        )
        
        context = context.with_output_path(output_path)
        return self._advance(context)
