"""
Histogram services.

Booking, filling, merging and writing of the QA histograms.
"""

from .registry import Axis, Histogram, HistogramRegistry
from .definitions import book_strangeness_histograms
from .writer import HistogramWriter, merge_output_files, read_output_file

__all__ = [
    "Axis",
    "Histogram",
    "HistogramRegistry",
    "book_strangeness_histograms",
    "HistogramWriter",
    "merge_output_files",
    "read_output_file",
]
