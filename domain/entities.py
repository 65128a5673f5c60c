"""
Table row domain models.

Immutable records for the five entity kinds consumed by the QA
(simulated collisions, reconstructed collisions, tracks, V0 and cascade
candidates, MC particles) plus the V0 link indirection row.

Rows are identified by their index inside a processing batch. Optional
references are None here and -1 on disk.
"""

from dataclasses import dataclass
from typing import Optional
import math

import vector


@dataclass(frozen=True)
class SimulatedCollision:
    """One generated primary interaction."""

    id: int
    pos_x: float = 0.0
    pos_y: float = 0.0
    pos_z: float = 0.0


@dataclass(frozen=True)
class ReconstructedCollision:
    """One reconstructed event with its optional link to a simulated one."""

    id: int
    pos_x: float
    pos_y: float
    pos_z: float
    sel8: bool
    mc_collision_id: Optional[int] = None

    @property
    def has_mc_collision(self) -> bool:
        return self.mc_collision_id is not None

    @property
    def primary_vertex(self) -> vector.VectorObject3D:
        return vector.obj(x=self.pos_x, y=self.pos_y, z=self.pos_z)


@dataclass(frozen=True)
class Track:
    """Reconstructed charged-particle trajectory."""

    id: int
    its_n_cls: int
    tpc_n_cls_crossed_rows: int
    dca_xy: float = 0.0
    dca_z: float = 0.0
    collision_id: Optional[int] = None
    mc_particle_id: Optional[int] = None

    def __post_init__(self):
        if self.its_n_cls < 0:
            raise ValueError(f"its_n_cls must be non-negative, got {self.its_n_cls}")
        if self.tpc_n_cls_crossed_rows < 0:
            raise ValueError(
                f"tpc_n_cls_crossed_rows must be non-negative, got {self.tpc_n_cls_crossed_rows}"
            )

    @property
    def has_mc_particle(self) -> bool:
        return self.mc_particle_id is not None


@dataclass(frozen=True)
class V0Candidate:
    """
    Two-track decay vertex.

    Geometry is stored as the decay position and the candidate momentum so
    that pointing angle and DCA can be evaluated against the primary vertex
    of the event the candidate belongs to.
    """

    id: int
    collision_id: int
    pos_track_id: int
    neg_track_id: int
    x: float
    y: float
    z: float
    px: float
    py: float
    pz: float
    dca_v0_daughters: float
    dca_pos_to_pv: float
    dca_neg_to_pv: float
    m_k0short: float
    m_lambda: float
    m_antilambda: float
    mc_particle_id: Optional[int] = None

    @property
    def has_mc_particle(self) -> bool:
        return self.mc_particle_id is not None

    @property
    def pt(self) -> float:
        return math.hypot(self.px, self.py)

    @property
    def v0_radius(self) -> float:
        return math.hypot(self.x, self.y)

    @property
    def decay_vertex(self) -> vector.VectorObject3D:
        return vector.obj(x=self.x, y=self.y, z=self.z)

    @property
    def momentum(self) -> vector.VectorObject3D:
        return vector.obj(x=self.px, y=self.py, z=self.pz)

    def cos_pa(self, primary_vertex: vector.VectorObject3D) -> float:
        """Cosine of the pointing angle with respect to ``primary_vertex``."""
        return _cos_angle_to_flight(self.decay_vertex, self.momentum, primary_vertex)

    def dca_to_pv(self, primary_vertex: vector.VectorObject3D) -> float:
        return _distance_to_line(self.decay_vertex, self.momentum, primary_vertex)


@dataclass(frozen=True)
class CascadeCandidate:
    """
    Three-track decay: a bachelor track plus a V0.

    The V0 is reached through ``v0_link_id``, a row of the V0 link table,
    which may carry no V0 even when the cascade itself was built.
    """

    id: int
    collision_id: int
    v0_link_id: Optional[int]
    bachelor_track_id: int
    x: float
    y: float
    z: float
    px: float
    py: float
    pz: float
    x_lambda: float
    y_lambda: float
    z_lambda: float
    px_lambda: float
    py_lambda: float
    pz_lambda: float
    dca_v0_daughters: float
    dca_casc_daughters: float
    dca_pos_to_pv: float
    dca_neg_to_pv: float
    dca_bach_to_pv: float
    m_xi: float
    m_omega: float
    mc_particle_id: Optional[int] = None

    @property
    def has_mc_particle(self) -> bool:
        return self.mc_particle_id is not None

    @property
    def pt(self) -> float:
        return math.hypot(self.px, self.py)

    @property
    def v0_radius(self) -> float:
        return math.hypot(self.x_lambda, self.y_lambda)

    @property
    def casc_radius(self) -> float:
        return math.hypot(self.x, self.y)

    @property
    def decay_vertex(self) -> vector.VectorObject3D:
        return vector.obj(x=self.x, y=self.y, z=self.z)

    @property
    def momentum(self) -> vector.VectorObject3D:
        return vector.obj(x=self.px, y=self.py, z=self.pz)

    @property
    def v0_decay_vertex(self) -> vector.VectorObject3D:
        return vector.obj(x=self.x_lambda, y=self.y_lambda, z=self.z_lambda)

    @property
    def v0_momentum(self) -> vector.VectorObject3D:
        return vector.obj(x=self.px_lambda, y=self.py_lambda, z=self.pz_lambda)

    def v0_cos_pa(self, primary_vertex: vector.VectorObject3D) -> float:
        return _cos_angle_to_flight(self.v0_decay_vertex, self.v0_momentum, primary_vertex)

    def casc_cos_pa(self, primary_vertex: vector.VectorObject3D) -> float:
        return _cos_angle_to_flight(self.decay_vertex, self.momentum, primary_vertex)

    def dca_casc_to_pv(self, primary_vertex: vector.VectorObject3D) -> float:
        return _distance_to_line(self.decay_vertex, self.momentum, primary_vertex)


@dataclass(frozen=True)
class V0Link:
    """Indirection row from a cascade to the V0 it was built with."""

    id: int
    v0_id: Optional[int] = None

    @property
    def has_v0(self) -> bool:
        return self.v0_id is not None


@dataclass(frozen=True)
class MCParticle:
    """Generated truth particle."""

    id: int
    mc_collision_id: int
    pdg_code: int
    pt: float
    y: float

    def __post_init__(self):
        if self.pt < 0:
            raise ValueError(f"pt must be non-negative, got {self.pt}")


def _cos_angle_to_flight(decay_vertex, momentum, primary_vertex) -> float:
    """Cosine between the momentum and the primary-to-decay vertex line."""
    flight = decay_vertex - primary_vertex
    norm = flight.mag * momentum.mag
    if norm == 0:
        # decay at the primary vertex or zero momentum
        return 1.0
    return min(1.0, max(-1.0, flight.dot(momentum) / norm))


def _distance_to_line(decay_vertex, momentum, point) -> float:
    """Distance between ``point`` and the line through the decay vertex along the momentum."""
    offset = point - decay_vertex
    p_mag = momentum.mag
    if p_mag == 0:
        return offset.mag
    return offset.cross(momentum).mag / p_mag
