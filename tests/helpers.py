"""
Builders for table rows and batches used across the tests.

Defaults describe a good-quality, truth-matched Lambda decaying 1 cm from
a primary vertex at the origin, with a pointing-angle cosine of 0.97.
"""

import math

import numpy as np
import uproot

from domain.entities import (
    SimulatedCollision,
    ReconstructedCollision,
    Track,
    V0Candidate,
    CascadeCandidate,
    V0Link,
    MCParticle,
)
from domain.tables import BatchTables


def make_collision(id=0, pos_z=0.0, sel8=True, mc_collision_id=0):
    return ReconstructedCollision(
        id=id, pos_x=0.0, pos_y=0.0, pos_z=pos_z, sel8=sel8, mc_collision_id=mc_collision_id
    )


def make_track(id, mc_particle_id=None, its_n_cls=5, tpc_n_cls_crossed_rows=80, dca_xy=0.2):
    return Track(
        id=id,
        its_n_cls=its_n_cls,
        tpc_n_cls_crossed_rows=tpc_n_cls_crossed_rows,
        dca_xy=dca_xy,
        collision_id=0,
        mc_particle_id=mc_particle_id,
    )


def make_particle(id, pdg_code, pt=1.0, y=0.1, mc_collision_id=0):
    return MCParticle(id=id, mc_collision_id=mc_collision_id, pdg_code=pdg_code, pt=pt, y=y)


def make_v0(id=0, pos_track_id=0, neg_track_id=1, mc_particle_id=0, radius=1.0, cos_pa=0.97,
            dca_v0_daughters=0.5, collision_id=0):
    """V0 decaying on the x axis at ``radius`` with unit transverse momentum."""
    return V0Candidate(
        id=id,
        collision_id=collision_id,
        pos_track_id=pos_track_id,
        neg_track_id=neg_track_id,
        x=radius,
        y=0.0,
        z=0.0,
        px=cos_pa,
        py=math.sqrt(1.0 - cos_pa ** 2),
        pz=0.0,
        dca_v0_daughters=dca_v0_daughters,
        dca_pos_to_pv=0.3,
        dca_neg_to_pv=-0.3,
        m_k0short=0.497,
        m_lambda=1.115,
        m_antilambda=1.117,
        mc_particle_id=mc_particle_id,
    )


def make_cascade(id=0, v0_link_id=0, bachelor_track_id=2, mc_particle_id=0, collision_id=0,
                 casc_radius=2.0, v0_radius=3.0):
    """Cascade and its V0 both pointing straight back to the origin."""
    return CascadeCandidate(
        id=id,
        collision_id=collision_id,
        v0_link_id=v0_link_id,
        bachelor_track_id=bachelor_track_id,
        x=casc_radius,
        y=0.0,
        z=0.0,
        px=1.5,
        py=0.0,
        pz=0.0,
        x_lambda=v0_radius,
        y_lambda=0.0,
        z_lambda=0.0,
        px_lambda=1.0,
        py_lambda=0.0,
        pz_lambda=0.0,
        dca_v0_daughters=0.5,
        dca_casc_daughters=0.4,
        dca_pos_to_pv=0.3,
        dca_neg_to_pv=-0.3,
        dca_bach_to_pv=0.2,
        m_xi=1.321,
        m_omega=1.672,
        mc_particle_id=mc_particle_id,
    )


def lambda_batch(y=0.1, pdg_code=3122, batch_index=0, **v0_overrides) -> BatchTables:
    """One collision with one truth-matched V0 of species ``pdg_code``."""
    return BatchTables(
        batch_index=batch_index,
        mc_collisions=(SimulatedCollision(id=0),),
        collisions=(make_collision(),),
        tracks=(make_track(0, mc_particle_id=1), make_track(1, mc_particle_id=2)),
        v0s=(make_v0(**v0_overrides),),
        mc_particles=(
            make_particle(0, pdg_code, pt=1.0, y=y),
            make_particle(1, 2212),
            make_particle(2, -211),
        ),
    )


def cascade_batch(cascades, v0_links=(V0Link(id=0, v0_id=0),), pdg_code=3312) -> BatchTables:
    """
    One collision holding ``cascades``; link 0 resolves to V0 0.

    V0 0 has no truth label, so the source pre-filter has moved it out of
    ``v0s`` into the link targets. Particle 0 is the cascade truth,
    particles 1-3 the daughters.
    """
    return BatchTables(
        batch_index=0,
        mc_collisions=(SimulatedCollision(id=0),),
        collisions=(make_collision(),),
        tracks=(
            make_track(0, mc_particle_id=1),
            make_track(1, mc_particle_id=2),
            make_track(2, mc_particle_id=3),
        ),
        link_target_v0s=(make_v0(mc_particle_id=None),),
        cascades=tuple(cascades),
        v0_links=tuple(v0_links),
        mc_particles=(
            make_particle(0, pdg_code, pt=1.5, y=0.2),
            make_particle(1, 2212),
            make_particle(2, -211),
            make_particle(3, -211),
        ),
    )


def flat_tables(v0_link_target=1, xi_truth=False):
    """
    One collision, three tracks, three V0s, one cascade, three particles.

    V0 1 fails the daughter DCA pre-filter and V0 2 has no truth label, so
    only V0 0 survives. The cascade has no truth label unless ``xi_truth``
    is set, which adds a fourth particle, a Xi-, as its truth.
    """
    lambda_energy = math.sqrt(1.0 + 1.115 ** 2)
    floats = lambda *values: np.array(values, dtype=np.float64)
    particles = {
        "mc_collision_id": [0, 0, 0],
        "pdg_code": [3122, 2212, -211],
        "px": [1.0, 0.8, 0.2],
        "e": [lambda_energy, 1.3, 0.25],
    }
    if xi_truth:
        for column, value in zip(particles, (0, 3312, 1.5, math.sqrt(1.5 ** 2 + 1.32 ** 2))):
            particles[column].append(value)
    n_particles = len(particles["pdg_code"])
    return {
        "mc_collisions": {
            "pos_x": floats(0.0), "pos_y": floats(0.0), "pos_z": floats(0.5),
        },
        "collisions": {
            "pos_x": floats(0.0), "pos_y": floats(0.0), "pos_z": floats(0.0),
            "sel8": np.array([True]),
            "mc_collision_id": np.array([0], dtype=np.int32),
        },
        "tracks": {
            "collision_id": np.array([0, 0, 0], dtype=np.int32),
            "its_n_cls": np.array([5, 6, 7], dtype=np.int32),
            "tpc_n_cls_crossed_rows": np.array([80, 90, 100], dtype=np.int32),
            "dca_xy": floats(0.2, -0.3, 0.4),
            "dca_z": floats(0.1, 0.1, 0.1),
            "mc_particle_id": np.array([1, 2, -1], dtype=np.int32),
        },
        "v0s": {
            "collision_id": np.array([0, 0, 0], dtype=np.int32),
            "pos_track_id": np.array([0, 0, 0], dtype=np.int32),
            "neg_track_id": np.array([1, 1, 1], dtype=np.int32),
            "x": floats(1.0, 2.0, 3.0),
            "y": floats(0.0, 0.0, 0.0),
            "z": floats(0.0, 0.0, 0.0),
            "px": floats(1.0, 1.0, 1.0),
            "py": floats(0.0, 0.0, 0.0),
            "pz": floats(0.0, 0.0, 0.0),
            "dca_v0_daughters": floats(0.5, 0.5, 0.5),
            "dca_pos_to_pv": floats(0.3, 0.05, 0.3),
            "dca_neg_to_pv": floats(-0.3, -0.3, -0.3),
            "m_k0short": floats(0.497, 0.497, 0.497),
            "m_lambda": floats(1.115, 1.115, 1.115),
            "m_antilambda": floats(1.117, 1.117, 1.117),
            "mc_particle_id": np.array([0, 0, -1], dtype=np.int32),
        },
        "cascades": {
            "collision_id": np.array([0], dtype=np.int32),
            "v0_link_id": np.array([0], dtype=np.int32),
            "bachelor_track_id": np.array([2], dtype=np.int32),
            **{name: floats(1.0) for name in (
                "x", "y", "z", "px", "py", "pz",
                "x_lambda", "y_lambda", "z_lambda", "px_lambda", "py_lambda", "pz_lambda",
            )},
            "dca_v0_daughters": floats(0.5),
            "dca_casc_daughters": floats(0.5),
            "dca_pos_to_pv": floats(0.3),
            "dca_neg_to_pv": floats(0.3),
            "dca_bach_to_pv": floats(0.3),
            "m_xi": floats(1.32),
            "m_omega": floats(1.67),
            "mc_particle_id": np.array([3 if xi_truth else -1], dtype=np.int32),
        },
        "v0_links": {
            "v0_id": np.array([v0_link_target], dtype=np.int32),
        },
        "mc_particles": {
            "mc_collision_id": np.array(particles["mc_collision_id"], dtype=np.int32),
            "pdg_code": np.array(particles["pdg_code"], dtype=np.int32),
            "px": floats(*particles["px"]),
            "py": np.zeros(n_particles),
            "pz": np.zeros(n_particles),
            "e": floats(*particles["e"]),
        },
    }


def write_flat_file(path, directories=("",), **kwargs):
    with uproot.recreate(path) as root_file:
        for directory in directories:
            for table, columns in flat_tables(**kwargs).items():
                tree = root_file.mktree(
                    f"{directory}{table}",
                    {name: column.dtype for name, column in columns.items()},
                )
                tree.extend(columns)
    return str(path)


