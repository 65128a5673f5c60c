"""
Domain models for the strangeness QA pipeline.

Pure data structures with validation, no business logic.
"""

from .entities import (
    SimulatedCollision,
    ReconstructedCollision,
    Track,
    V0Candidate,
    CascadeCandidate,
    V0Link,
    MCParticle,
)
from .species import Species
from .tables import BatchTables
from .statistics import CandidateOutcome, BatchStatistics, RunStatistics
from .exceptions import StrangenessQAError, ConfigurationError, TableIntegrityError
from .config import (
    PipelineConfig,
    TaskConfig,
    InputConfig,
    EventSelectionConfig,
    TrackQualityConfig,
    V0SelectionConfig,
    CascadeSelectionConfig,
    AnalysisConfig,
    OutputConfig,
)

__all__ = [
    "SimulatedCollision",
    "ReconstructedCollision",
    "Track",
    "V0Candidate",
    "CascadeCandidate",
    "V0Link",
    "MCParticle",
    "Species",
    "BatchTables",
    "CandidateOutcome",
    "BatchStatistics",
    "RunStatistics",
    "StrangenessQAError",
    "ConfigurationError",
    "TableIntegrityError",
    "PipelineConfig",
    "TaskConfig",
    "InputConfig",
    "EventSelectionConfig",
    "TrackQualityConfig",
    "V0SelectionConfig",
    "CascadeSelectionConfig",
    "AnalysisConfig",
    "OutputConfig",
]
