"""
Truth-level annotation services.
"""

from .reconstruction_status import ReconstructionStatus, ReconstructionStatusAnnotator

__all__ = ["ReconstructionStatus", "ReconstructionStatusAnnotator"]
