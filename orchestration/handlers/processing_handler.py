"""
Processing state handler.

Streams the located batches through event selection, candidate evaluation
and the generated-spectrum passes.
"""

from datetime import datetime

from orchestration.context import PipelineContext
from orchestration.states import PipelineState
from .base import StateHandler
from domain.exceptions import StrangenessQAError
from domain.statistics import RunStatistics
from services.parsing.table_reader import TableReader
from services.processing.threaded_processor import ThreadedBatchProcessor


class ProcessingHandler(StateHandler):
    """
    Handler for PROCESSING state.
    
    Batches that cannot be read are added to the failed sources; the state
    fails only when none of them could be read.
    """
    
    def __init__(self, reader: TableReader, threaded_processor: ThreadedBatchProcessor):
        super().__init__()
        self.reader = reader
        self.processor = threaded_processor
    
    def handle(self, context: PipelineContext) -> tuple[PipelineContext, PipelineState]:
        failures = list(context.failed_sources)
        
        def on_error(source: str, error: Exception):
            failures.append((source, str(error)))
        
        start_time = datetime.now()
        registry, results = self.processor.process_batches(
            self.reader.iter_batches(context.batch_refs, on_error=on_error),
            total=len(context.batch_refs),
        )
        end_time = datetime.now()
        
        if not results:
            raise StrangenessQAError(
                f"None of the {len(context.batch_refs)} batches could be read"
            )
        
        run_stats = RunStatistics.from_batches(
            (result.statistics for result in results),
            start_time=start_time,
            end_time=end_time,
            failed_sources=failures,
        )
        
        self.logger.info(
            f"Selected {run_stats.selected_collisions}/{run_stats.collisions} collisions "
            f"({run_stats.selection_rate:.1f}%), "
            f"{run_stats.reconstructible_mc_collisions}/{run_stats.mc_collisions} "
            f"simulated collisions reconstructed"
        )
        for key, value in run_stats.to_dict().items():
            self.logger.debug(f"  {key}: {value}")
        
        context = context.with_results(registry, results, run_stats)
        return self._advance(context)
