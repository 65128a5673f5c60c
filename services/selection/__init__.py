"""
Event and track selection services.
"""

from .event_selector import EventSelector, EventSelectionStep, EventSelectionCounts
from .track_quality import TrackQualityFilter

__all__ = [
    "EventSelector",
    "EventSelectionStep",
    "EventSelectionCounts",
    "TrackQualityFilter",
]
