"""
Physics calculations for decay candidate topology and truth kinematics.

Candidate geometry (cosine of the pointing angle, DCA to a vertex) lives on
the candidate entities; this module turns it into the quantities that are
histogrammed and computes vectorised truth kinematics (pT, rapidity) for MC
particle tables.
"""
import math

import awkward as ak
import numpy as np
import vector

vector.register_awkward()


def pointing_angle(cos_pa: float) -> float:
    """Arc-cosine of a pointing-angle cosine, clipped to the valid domain."""
    return math.acos(min(1.0, max(-1.0, cos_pa)))


def add_truth_kinematics(particles: ak.Array) -> ak.Array:
    """
    Add ``pt`` and ``y`` fields computed from ``px, py, pz, e``.

    Particles whose energy does not exceed |pz| (rapidity undefined) get
    ``y = inf`` so that every rapidity window rejects them.
    """
    momenta = vector.zip({
        "px": particles.px,
        "py": particles.py,
        "pz": particles.pz,
        "E": particles.e,
    })
    valid = particles.e > abs(particles.pz)
    with np.errstate(divide="ignore", invalid="ignore"):
        rapidity = ak.where(valid, momenta.rapidity, np.inf)

    particles = ak.with_field(particles, momenta.pt, "pt")
    return ak.with_field(particles, rapidity, "y")
