"""
Per-batch table collection.

Holds every table of one processing batch together with the mapping-based
indices that replace implicit table joins. Indices are built once when the
batch is created.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional

from .entities import (
    SimulatedCollision,
    ReconstructedCollision,
    Track,
    V0Candidate,
    CascadeCandidate,
    V0Link,
    MCParticle,
)
from .exceptions import TableIntegrityError


@dataclass(frozen=True)
class BatchTables:
    """
    All input tables of one processing batch.

    Candidate tables are expected to be pre-filtered by the source; their
    rows keep the ids they had before filtering. ``link_target_v0s`` holds
    the V0 rows the pre-filter removed but the link table still points to,
    so cascades resolve their V0 against the unfiltered table.
    """

    batch_index: int
    mc_collisions: tuple[SimulatedCollision, ...] = ()
    collisions: tuple[ReconstructedCollision, ...] = ()
    tracks: tuple[Track, ...] = ()
    v0s: tuple[V0Candidate, ...] = ()
    cascades: tuple[CascadeCandidate, ...] = ()
    v0_links: tuple[V0Link, ...] = ()
    link_target_v0s: tuple[V0Candidate, ...] = ()
    mc_particles: tuple[MCParticle, ...] = ()
    source: Optional[str] = None

    _tracks_by_id: dict = field(init=False, repr=False, compare=False)
    _particles_by_id: dict = field(init=False, repr=False, compare=False)
    _v0s_by_id: dict = field(init=False, repr=False, compare=False)
    _links_by_id: dict = field(init=False, repr=False, compare=False)
    _link_targets_by_id: dict = field(init=False, repr=False, compare=False)
    _v0s_by_collision: dict = field(init=False, repr=False, compare=False)
    _cascades_by_collision: dict = field(init=False, repr=False, compare=False)
    _particles_by_mc_collision: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        """Validate the batch index and build lookup indices."""
        if self.batch_index < 0:
            raise ValueError(f"batch_index must be non-negative, got {self.batch_index}")

        # frozen dataclass: indices are attached with object.__setattr__
        object.__setattr__(self, "_tracks_by_id", {t.id: t for t in self.tracks})
        object.__setattr__(self, "_particles_by_id", {p.id: p for p in self.mc_particles})
        object.__setattr__(self, "_v0s_by_id", {v0.id: v0 for v0 in self.v0s})
        object.__setattr__(self, "_links_by_id", {link.id: link for link in self.v0_links})
        object.__setattr__(
            self, "_link_targets_by_id",
            {**{v0.id: v0 for v0 in self.link_target_v0s}, **self._v0s_by_id},
        )
        object.__setattr__(self, "_v0s_by_collision", _group_by(self.v0s, "collision_id"))
        object.__setattr__(self, "_cascades_by_collision", _group_by(self.cascades, "collision_id"))
        object.__setattr__(
            self, "_particles_by_mc_collision", _group_by(self.mc_particles, "mc_collision_id")
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def track(self, track_id: int) -> Track:
        return self._tracks_by_id[track_id]

    def mc_particle(self, particle_id: Optional[int]) -> Optional[MCParticle]:
        """Truth particle for a label, or None for an absent label."""
        if particle_id is None:
            return None
        return self._particles_by_id[particle_id]

    def linked_v0(self, cascade: CascadeCandidate) -> Optional[V0Candidate]:
        """
        Dereference a cascade's V0 through the link table.

        The V0 may be one the source pre-filter removed from ``v0s``.
        Returns None when the cascade has no link row, the link row carries
        no V0, or the V0 row is absent from the batch.
        """
        if cascade.v0_link_id is None:
            return None
        link = self._links_by_id.get(cascade.v0_link_id)
        if link is None or not link.has_v0:
            return None
        return self._link_targets_by_id.get(link.v0_id)

    def v0s_in(self, collision_id: int) -> list[V0Candidate]:
        return self._v0s_by_collision.get(collision_id, [])

    def cascades_in(self, collision_id: int) -> list[CascadeCandidate]:
        return self._cascades_by_collision.get(collision_id, [])

    def particles_in(self, mc_collision_id: int) -> list[MCParticle]:
        return self._particles_by_mc_collision.get(mc_collision_id, [])

    @property
    def event_count(self) -> int:
        return len(self.collisions)

    # ------------------------------------------------------------------
    # Integrity
    # ------------------------------------------------------------------

    def validate(self) -> 'BatchTables':
        """
        Check that every reference resolves.

        Returns:
            self, for chaining

        Raises:
            TableIntegrityError: On the first dangling reference
        """
        mc_collision_ids = {c.id for c in self.mc_collisions}

        for collision in self.collisions:
            if collision.has_mc_collision and collision.mc_collision_id not in mc_collision_ids:
                raise TableIntegrityError(
                    "collisions", collision.id, "mc_collision_id", collision.mc_collision_id
                )

        for track in self.tracks:
            self._check_label("tracks", track.id, track.mc_particle_id)

        for v0 in self.v0s + self.link_target_v0s:
            for reference in ("pos_track_id", "neg_track_id"):
                self._check_track("v0s", v0.id, reference, getattr(v0, reference))
            self._check_label("v0s", v0.id, v0.mc_particle_id)

        for cascade in self.cascades:
            self._check_track("cascades", cascade.id, "bachelor_track_id", cascade.bachelor_track_id)
            self._check_label("cascades", cascade.id, cascade.mc_particle_id)
            if cascade.v0_link_id is not None and cascade.v0_link_id not in self._links_by_id:
                raise TableIntegrityError("cascades", cascade.id, "v0_link_id", cascade.v0_link_id)

        for link in self.v0_links:
            if link.has_v0 and link.v0_id not in self._link_targets_by_id:
                raise TableIntegrityError("v0_links", link.id, "v0_id", link.v0_id)

        for particle in self.mc_particles:
            if particle.mc_collision_id not in mc_collision_ids:
                raise TableIntegrityError(
                    "mc_particles", particle.id, "mc_collision_id", particle.mc_collision_id
                )

        return self

    def _check_track(self, table: str, row_id: int, reference: str, track_id: int):
        if track_id not in self._tracks_by_id:
            raise TableIntegrityError(table, row_id, reference, track_id)

    def _check_label(self, table: str, row_id: int, particle_id: Optional[int]):
        if particle_id is not None and particle_id not in self._particles_by_id:
            raise TableIntegrityError(table, row_id, "mc_particle_id", particle_id)


def _group_by(rows, attribute: str) -> dict[int, list]:
    groups = defaultdict(list)
    for row in rows:
        groups[getattr(row, attribute)].append(row)
    return dict(groups)
