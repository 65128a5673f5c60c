"""
Candidate evaluation and generated spectra.
"""

from .v0_evaluator import V0CandidateEvaluator
from .cascade_evaluator import CascadeCandidateEvaluator
from .generated_spectra import GeneratedSpectrumAccumulator, efficiency_upper_bound

__all__ = [
    "V0CandidateEvaluator",
    "CascadeCandidateEvaluator",
    "GeneratedSpectrumAccumulator",
    "efficiency_upper_bound",
]
