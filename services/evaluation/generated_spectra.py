"""
GeneratedSpectrumAccumulator - Truth-level pT spectra of the followed species.

Fills the pure generated spectra from every simulated particle and the
reconstructible spectra from particles of simulated collisions that have a
reconstructed collision. Their ratio is the upper bound on the
reconstruction efficiency set by event reconstruction alone.
"""

import logging
from typing import Iterable

import numpy as np

from domain.config import AnalysisConfig
from domain.entities import MCParticle
from domain.species import Species
from services.histograms.definitions import generated_name, reconstructible_name
from services.histograms.registry import HistogramRegistry
from services.truth.reconstruction_status import ReconstructionStatus


class GeneratedSpectrumAccumulator:
    """Fills hGen<Species> and hGenWithPV<Species>."""

    def __init__(self, analysis: AnalysisConfig):
        self.max_abs_rapidity = analysis.max_abs_rapidity
        self.logger = logging.getLogger(self.__class__.__name__)

    def _accepted(self, particle: MCParticle):
        """Species of an accepted particle, or None."""
        if not abs(particle.y) < self.max_abs_rapidity:
            return None
        return Species.from_pdg(particle.pdg_code)

    def fill_pure_generated(
        self,
        particles: Iterable[MCParticle],
        registry: HistogramRegistry,
    ) -> int:
        """
        Fill generated spectra.

        Returns:
            Number of particles filled
        """
        filled = 0
        for particle in particles:
            species = self._accepted(particle)
            if species is not None:
                registry.accumulate(generated_name(species), particle.pt)
                filled += 1
        return filled

    def fill_reconstructible(
        self,
        particles: Iterable[MCParticle],
        status: ReconstructionStatus,
        registry: HistogramRegistry,
    ) -> int:
        """Fill spectra restricted to reconstructed simulated collisions."""
        filled = 0
        for particle in particles:
            if not status.is_reconstructed(particle.mc_collision_id):
                continue
            species = self._accepted(particle)
            if species is not None:
                registry.accumulate(reconstructible_name(species), particle.pt)
                filled += 1
        return filled


def spectrum_ratio(numerator: np.ndarray, denominator: np.ndarray) -> np.ndarray:
    """Bin-wise ratio, zero where the denominator is empty."""
    ratio = np.zeros_like(denominator, dtype=np.float64)
    np.divide(numerator, denominator, out=ratio, where=denominator > 0)
    return ratio


def efficiency_upper_bound(registry: HistogramRegistry, species: Species) -> np.ndarray:
    """Bin-wise hGenWithPV / hGen for ``species``."""
    return spectrum_ratio(
        registry.values(reconstructible_name(species)),
        registry.values(generated_name(species)),
    )
