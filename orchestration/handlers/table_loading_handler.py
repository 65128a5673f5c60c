"""
Table loading state handler.

Opens the input files assigned to this job and locates their batches.
Tables are read later, batch by batch, while processing.
"""

from orchestration.context import PipelineContext
from orchestration.states import PipelineState
from .base import StateHandler
from domain.exceptions import StrangenessQAError
from services.parsing.table_reader import TableReader
from utils.batching import get_batch_slice


class TableLoadingHandler(StateHandler):
    """
    Handler for LOADING_TABLES state.
    
    Unreadable files are recorded and skipped; the state fails only when
    no file could be opened at all.
    """
    
    def __init__(self, reader: TableReader):
        super().__init__()
        self.reader = reader
    
    def handle(self, context: PipelineContext) -> tuple[PipelineContext, PipelineState]:
        paths = list(context.config.input_config.paths)
        batch_idx = context.config.batch_job_index
        total_batches = context.config.total_batch_jobs
        
        if batch_idx is not None and total_batches is not None:
            self.logger.info(f"Batch mode: job {batch_idx}/{total_batches}")
            paths = get_batch_slice(paths, batch_idx, total_batches)
        
        if not paths:
            raise StrangenessQAError("No input files assigned to this job")
        
        self.logger.info(f"Opening {len(paths)} input files")
        failures = []
        
        def on_error(path: str, error: Exception):
            failures.append((path, str(error)))
        
        batch_refs = self.reader.list_batches(paths, on_error=on_error)
        
        if failures:
            self.logger.warning(f"{len(failures)}/{len(paths)} input files could not be read")
        if not batch_refs:
            raise StrangenessQAError(f"None of the {len(paths)} input files could be read")
        
        self.logger.info(f"Found {len(batch_refs)} batches")
        
        context = context.with_batches(paths, batch_refs, failures)
        return self._advance(context)
