"""
State handlers for pipeline execution.

Each handler implements logic for a specific pipeline state.
"""

from .base import StateHandler
from .table_loading_handler import TableLoadingHandler
from .processing_handler import ProcessingHandler
from .output_writing_handler import OutputWritingHandler
from .plotting_handler import PlottingHandler

__all__ = [
    "StateHandler",
    "TableLoadingHandler",
    "ProcessingHandler",
    "OutputWritingHandler",
    "PlottingHandler",
]
