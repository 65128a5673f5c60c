"""
EventSelector - Cumulative event gate with per-step counters.

Counters live on the selector instance. They are written to the event
selection histogram with ``emit`` and reset afterwards, so each emission
carries only the collisions seen since the previous one.
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum

from domain.config import EventSelectionConfig
from domain.entities import ReconstructedCollision
from services.histograms.definitions import EVENT_SELECTION
from services.histograms.registry import HistogramRegistry


class EventSelectionStep(IntEnum):
    """Ordered selection steps; the value is the histogram bin centre."""

    ALL = 0
    SEL8 = 1
    VERTEX_Z = 2

    @property
    def label(self) -> str:
        return _STEP_LABELS[self]


_STEP_LABELS = {
    EventSelectionStep.ALL: "All collisions",
    EventSelectionStep.SEL8: "Sel8 cut",
    EventSelectionStep.VERTEX_Z: "posZ cut",
}


@dataclass
class EventSelectionCounts:
    """Number of collisions that reached each step."""

    counts: dict = field(default_factory=lambda: {step: 0 for step in EventSelectionStep})

    def increment(self, step: EventSelectionStep):
        self.counts[step] += 1

    def __getitem__(self, step: EventSelectionStep) -> int:
        return self.counts[step]

    def reset(self):
        for step in EventSelectionStep:
            self.counts[step] = 0

    def as_dict(self) -> dict:
        return {step.label: count for step, count in self.counts.items()}


class EventSelector:
    """
    Applies the sel8 and vertex-z requirements to reconstructed collisions.

    Every collision passes through the steps in order and increments the
    counter of each step it reaches.
    """

    def __init__(self, config: EventSelectionConfig):
        self.config = config
        self.counts = EventSelectionCounts()
        self.logger = logging.getLogger(self.__class__.__name__)

    def select(self, collision: ReconstructedCollision) -> bool:
        self.counts.increment(EventSelectionStep.ALL)
        if self.config.require_sel8 and not collision.sel8:
            self.logger.debug(f"Collision {collision.id} rejected: sel8")
            return False

        self.counts.increment(EventSelectionStep.SEL8)
        if self.config.require_vertex_z and abs(collision.pos_z) > self.config.max_abs_vertex_z:
            self.logger.debug(f"Collision {collision.id} rejected: posZ={collision.pos_z:.2f}")
            return False

        self.counts.increment(EventSelectionStep.VERTEX_Z)
        return True

    def emit(self, registry: HistogramRegistry) -> dict:
        """
        Fill the event selection histogram with the current counts, then reset.

        Returns:
            The emitted counts keyed by step label
        """
        emitted = self.counts.as_dict()
        for step in EventSelectionStep:
            registry.accumulate(EVENT_SELECTION, float(step), weight=self.counts[step])
        self.reset()
        return emitted

    def reset(self):
        self.counts.reset()
