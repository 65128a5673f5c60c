"""
ReconstructionStatusAnnotator - Flags simulated collisions that were reconstructed.

Single responsibility: derive, for every simulated collision of a batch,
whether at least one reconstructed collision points back to it.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from domain.entities import SimulatedCollision, ReconstructedCollision


@dataclass(frozen=True)
class ReconstructionStatus:
    """Ordered simulated-collision id -> has-reconstructed-collision table."""

    entries: tuple[tuple[int, bool], ...]
    reconstructible_ids: frozenset[int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self,
            "reconstructible_ids",
            frozenset(mc_collision_id for mc_collision_id, flag in self.entries if flag),
        )

    def is_reconstructed(self, mc_collision_id: int) -> bool:
        return mc_collision_id in self.reconstructible_ids

    def flags(self) -> list[bool]:
        """Flags aligned with the simulated-collision table."""
        return [flag for _, flag in self.entries]

    def ids(self) -> list[int]:
        return [mc_collision_id for mc_collision_id, _ in self.entries]

    def __len__(self) -> int:
        return len(self.entries)


class ReconstructionStatusAnnotator:
    """Builds a ReconstructionStatus from the two collision tables."""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    def annotate(
        self,
        mc_collisions: Iterable[SimulatedCollision],
        collisions: Iterable[ReconstructedCollision],
    ) -> ReconstructionStatus:
        referenced = {
            collision.mc_collision_id
            for collision in collisions
            if collision.has_mc_collision
        }
        entries = tuple(
            (mc_collision.id, mc_collision.id in referenced)
            for mc_collision in mc_collisions
        )
        status = ReconstructionStatus(entries)
        self.logger.debug(
            f"{len(status.reconstructible_ids)}/{len(status)} simulated collisions reconstructed"
        )
        return status
