"""
ThreadedBatchProcessor - Orchestrates concurrent batch processing.

Single responsibility: run the batch processor over a stream of batches
in a thread pool, each batch filling its own registry shard, and merge the
shards by summation. Batches are pulled from the input lazily, so only a
bounded number of them is held in memory at once.
"""

import logging
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, as_completed, wait
from contextlib import nullcontext
from typing import Iterable, Optional

from tqdm import tqdm

from domain.tables import BatchTables
from services.histograms.registry import HistogramRegistry
from .batch_processor import BatchResult, StrangenessQAProcessor


class ThreadedBatchProcessor:
    """
    Processes batches concurrently.

    Shards are merged in the calling thread as batches complete; the
    merged registry does not depend on completion order.
    """

    def __init__(
        self,
        processor: StrangenessQAProcessor,
        template: HistogramRegistry,
        max_threads: int,
        show_progress: bool = True,
        max_pending_batches: Optional[int] = None,
    ):
        """
        Initialize threaded processor.

        Args:
            processor: Processor applied to every batch
            template: Registry with the booked histograms; shards copy its booking
            max_threads: Maximum number of concurrent threads
            show_progress: Whether to show progress bar
            max_pending_batches: Batches submitted but not yet merged;
                defaults to twice the number of threads
        """
        if max_threads <= 0:
            raise ValueError(f"max_threads must be positive, got {max_threads}")
        if max_pending_batches is not None and max_pending_batches <= 0:
            raise ValueError(f"max_pending_batches must be positive, got {max_pending_batches}")

        self.processor = processor
        self.template = template
        self.max_threads = max_threads
        self.show_progress = show_progress
        self.max_pending_batches = max_pending_batches or 2 * max_threads
        self.logger = logging.getLogger(self.__class__.__name__)

    def process_batches(
        self,
        batches: Iterable[BatchTables],
        total: Optional[int] = None
    ) -> tuple[HistogramRegistry, list[BatchResult]]:
        """
        Process all batches and merge their histograms.

        Args:
            batches: Batches to process, consumed lazily
            total: Number of batches, for the progress bar

        Returns:
            Tuple of (merged registry, batch results sorted by batch index)
        """
        merged = self.template.empty_copy()
        results = []

        with ThreadPoolExecutor(max_workers=self.max_threads) as executor, \
                self._create_progress_bar(total) as pbar:
            pending = set()
            for tables in batches:
                if len(pending) >= self.max_pending_batches:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    self._collect(done, merged, results, pbar)
                pending.add(executor.submit(self._process_single_batch, tables))
            self._collect(as_completed(pending), merged, results, pbar)

        results.sort(key=lambda result: result.batch_index)
        self.logger.info(f"Processed {len(results)} batches")
        return merged, results

    def _process_single_batch(self, tables: BatchTables) -> tuple[HistogramRegistry, BatchResult]:
        """Process one batch into a fresh shard (runs in thread)."""
        shard = self.template.empty_copy()
        result = self.processor.process(tables, shard)
        return shard, result

    def _collect(self, futures, merged: HistogramRegistry, results: list, pbar):
        for future in futures:
            shard, result = future.result()
            merged.merge(shard)
            results.append(result)
            if self.show_progress:
                pbar.update(1)

    def _create_progress_bar(self, total: Optional[int]):
        if self.show_progress:
            return tqdm(
                total=total,
                desc="Processing batches",
                unit="batch",
                dynamic_ncols=True,
                mininterval=1
            )
        return nullcontext()
