"""
Centralized constants for the strangeness QA calculations.
"""
# Invariant-mass histogram windows (GeV/c^2), keyed by mass hypothesis
MASS_AXIS_RANGES = {
    "m_k0short": (0.400, 0.600),
    "m_lambda": (1.01, 1.21),
    "m_antilambda": (1.01, 1.21),
    "m_xi": (1.22, 1.42),
    "m_omega": (1.57, 1.77),
}

# On-disk value of an absent index reference
NO_INDEX = -1
