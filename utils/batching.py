"""
Split the input files of a run over PBS array jobs (1-based, as $PBS_ARRAY_INDEX).
"""

import logging

logger = logging.getLogger(__name__)


def get_batch_slice(items: list, batch_index: int, total_batches: int) -> list:
    """
    Contiguous share of ``items`` for job ``batch_index`` of ``total_batches``.

    Shares differ by at most one item, the first ``len(items) % total_batches``
    jobs taking one extra. Jobs beyond the number of items get nothing.
    """
    batch_index, total_batches = int(batch_index), int(total_batches)
    if not 1 <= batch_index <= total_batches:
        raise ValueError(f"batch_index must be 1..{total_batches}, got {batch_index}")

    share, extra = divmod(len(items), total_batches)
    job = batch_index - 1
    start = job * share + min(job, extra)
    stop = start + share + (job < extra)

    logger.debug(f"Job {batch_index}/{total_batches} takes items[{start}:{stop}] of {len(items)}")
    return items[start:stop]
