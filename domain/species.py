"""
Strange particle species.

Closed enumeration of the species followed by the QA, keyed by PDG code,
with the lookup tables that map each species to its histogram family and
to the candidate mass hypothesis used for its invariant-mass histogram.
"""

from enum import Enum
from operator import attrgetter
from typing import Callable, Optional


class Species(Enum):
    """Strange hadrons followed by the QA, valued by PDG code."""

    K0_SHORT = 310
    LAMBDA = 3122
    ANTI_LAMBDA = -3122
    XI_MINUS = 3312
    XI_PLUS = -3312
    OMEGA_MINUS = 3334
    OMEGA_PLUS = -3334

    @property
    def pdg_code(self) -> int:
        return self.value

    @property
    def family(self) -> str:
        """Histogram family name, e.g. ``"XiMinus"``."""
        return FAMILY_NAMES[self]

    @property
    def is_v0(self) -> bool:
        return self in V0_SPECIES

    @property
    def is_cascade(self) -> bool:
        return self in CASCADE_SPECIES

    @classmethod
    def from_pdg(cls, pdg_code: int) -> Optional['Species']:
        """Return the species for a PDG code, or None if it is not followed."""
        return _BY_PDG.get(pdg_code)

    def __str__(self) -> str:
        return self.family


FAMILY_NAMES = {
    Species.K0_SHORT: "K0Short",
    Species.LAMBDA: "Lambda",
    Species.ANTI_LAMBDA: "AntiLambda",
    Species.XI_MINUS: "XiMinus",
    Species.XI_PLUS: "XiPlus",
    Species.OMEGA_MINUS: "OmegaMinus",
    Species.OMEGA_PLUS: "OmegaPlus",
}

_BY_PDG = {species.value: species for species in Species}

V0_SPECIES = (Species.K0_SHORT, Species.LAMBDA, Species.ANTI_LAMBDA)
CASCADE_SPECIES = (
    Species.XI_MINUS,
    Species.XI_PLUS,
    Species.OMEGA_MINUS,
    Species.OMEGA_PLUS,
)
GENERATED_SPECIES = V0_SPECIES + CASCADE_SPECIES

# Species with a dedicated per-variable QA family
V0_QA_SPECIES = (Species.K0_SHORT, Species.LAMBDA)
CASCADE_QA_SPECIES = (Species.XI_MINUS, Species.OMEGA_MINUS)

# Candidate attribute holding the mass under each species hypothesis.
# Both charge states of a cascade share the same hypothesis.
MASS_HYPOTHESIS_ATTRIBUTES = {
    Species.K0_SHORT: "m_k0short",
    Species.LAMBDA: "m_lambda",
    Species.ANTI_LAMBDA: "m_antilambda",
    Species.XI_MINUS: "m_xi",
    Species.XI_PLUS: "m_xi",
    Species.OMEGA_MINUS: "m_omega",
    Species.OMEGA_PLUS: "m_omega",
}


def mass_hypothesis(species: Species) -> Callable[[object], float]:
    """Getter returning a candidate's invariant mass under ``species``."""
    return attrgetter(MASS_HYPOTHESIS_ATTRIBUTES[species])
