"""
Batch processing services.
"""

from .batch_processor import BatchResult, StrangenessQAProcessor
from .threaded_processor import ThreadedBatchProcessor

__all__ = ["BatchResult", "StrangenessQAProcessor", "ThreadedBatchProcessor"]
