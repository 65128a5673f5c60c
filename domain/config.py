"""
Configuration domain models.

Validated configuration objects for the pipeline.
"""

import os
from dataclasses import dataclass, field, asdict
from typing import Optional

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class TaskConfig:
    """Configuration for which tasks to run."""

    do_reconstructed_qa: bool = False
    do_pure_generated: bool = True
    do_generated_reconstructible: bool = True
    do_write_output: bool = True
    do_plots: bool = False

    def any_processing_enabled(self) -> bool:
        """Check if any processing pass is enabled."""
        return any([
            self.do_reconstructed_qa,
            self.do_pure_generated,
            self.do_generated_reconstructible,
        ])


@dataclass(frozen=True)
class InputConfig:
    """Configuration for the table source."""

    paths: tuple[str, ...]
    schema: str = "o2"
    threads: int = 4
    show_progress_bar: bool = True

    def __post_init__(self):
        """Validate input configuration."""
        if not self.paths:
            raise ValueError("paths cannot be empty")
        if self.threads <= 0:
            raise ValueError(f"threads must be positive, got {self.threads}")


@dataclass(frozen=True)
class EventSelectionConfig:
    """Event gate: sel8 flag and primary vertex z window (cm)."""

    require_sel8: bool = True
    require_vertex_z: bool = True
    max_abs_vertex_z: float = 10.0

    def __post_init__(self):
        if self.max_abs_vertex_z <= 0:
            raise ValueError(f"max_abs_vertex_z must be positive, got {self.max_abs_vertex_z}")


@dataclass(frozen=True)
class TrackQualityConfig:
    """Minimum ITS clusters and TPC crossed rows per daughter track."""

    min_its_clusters: int = 4
    min_tpc_crossed_rows: int = 70

    def __post_init__(self):
        if self.min_its_clusters < 0:
            raise ValueError(f"min_its_clusters must be non-negative, got {self.min_its_clusters}")
        if self.min_tpc_crossed_rows < 0:
            raise ValueError(
                f"min_tpc_crossed_rows must be non-negative, got {self.min_tpc_crossed_rows}"
            )


@dataclass(frozen=True)
class V0SelectionConfig:
    """V0 topological selection."""

    cospa: float = 0.95
    dca_v0_daughters_max: float = 1.0
    dca_pos_to_pv: float = 0.1
    dca_neg_to_pv: float = 0.1
    radius: float = 0.9

    def __post_init__(self):
        if not -1.0 <= self.cospa <= 1.0:
            raise ValueError(f"cospa must be within [-1, 1], got {self.cospa}")
        if self.dca_v0_daughters_max <= 0:
            raise ValueError(f"dca_v0_daughters_max must be positive, got {self.dca_v0_daughters_max}")
        if self.radius < 0:
            raise ValueError(f"radius must be non-negative, got {self.radius}")


@dataclass(frozen=True)
class CascadeSelectionConfig:
    """
    Cascade topological selection.

    ``v0_mass_window`` and ``min_dca_v0_to_pv`` mirror the cascade builder
    settings; they are recorded with the output, not applied here.
    """

    cospa: float = 0.95
    dca_casc_daughters_max: float = 1.0
    dca_bach_to_pv: float = 0.1
    radius: float = 0.5
    v0_mass_window: float = 0.01
    min_dca_v0_to_pv: float = 0.01

    def __post_init__(self):
        if not -1.0 <= self.cospa <= 1.0:
            raise ValueError(f"cospa must be within [-1, 1], got {self.cospa}")
        if self.dca_casc_daughters_max <= 0:
            raise ValueError(
                f"dca_casc_daughters_max must be positive, got {self.dca_casc_daughters_max}"
            )
        if self.radius < 0:
            raise ValueError(f"radius must be non-negative, got {self.radius}")


@dataclass(frozen=True)
class AnalysisConfig:
    """Truth-level acceptance and evaluation policies."""

    max_abs_rapidity: float = 0.5
    fill_v0_dca_to_pv_qa: bool = False
    # Legacy behaviour: a cascade without truth ends the event's cascade loop
    stop_cascades_on_missing_truth: bool = False

    def __post_init__(self):
        if self.max_abs_rapidity <= 0:
            raise ValueError(f"max_abs_rapidity must be positive, got {self.max_abs_rapidity}")


@dataclass(frozen=True)
class OutputConfig:
    """Where results go."""

    output_dir: str = "./output/histograms"
    output_filename: str = "strangeness_qa.root"
    plots_dir: str = "./output/plots"

    def __post_init__(self):
        if not self.output_dir:
            raise ValueError("output_dir cannot be empty")
        if not self.output_filename.endswith(".root"):
            raise ValueError(f"output_filename must end with .root, got {self.output_filename}")

    @property
    def output_path(self) -> str:
        return os.path.join(self.output_dir, self.output_filename)


@dataclass(frozen=True)
class PipelineConfig:
    """
    Complete pipeline configuration.

    Immutable configuration object validated at creation.
    """

    tasks: TaskConfig
    input_config: InputConfig
    event_selection: EventSelectionConfig = field(default_factory=EventSelectionConfig)
    track_quality: TrackQualityConfig = field(default_factory=TrackQualityConfig)
    v0_selection: V0SelectionConfig = field(default_factory=V0SelectionConfig)
    cascade_selection: CascadeSelectionConfig = field(default_factory=CascadeSelectionConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Run metadata
    run_name: str = "strangeness_qa"
    batch_job_index: Optional[int] = None
    total_batch_jobs: Optional[int] = None

    def __post_init__(self):
        """Validate pipeline configuration."""
        if not self.tasks.any_processing_enabled():
            raise ValueError("At least one processing task must be enabled")

        if self.batch_job_index is not None:
            if self.total_batch_jobs is None:
                raise ValueError("total_batch_jobs required when batch_job_index is set")
            if not 1 <= self.batch_job_index <= self.total_batch_jobs:
                raise ValueError(
                    f"batch_job_index ({self.batch_job_index}) must be within "
                    f"1..total_batch_jobs ({self.total_batch_jobs})"
                )

    @property
    def is_batch_job(self) -> bool:
        return self.batch_job_index is not None

    def selection_summary(self) -> dict:
        """Cut settings as a plain dict, persisted next to the output."""
        return {
            "event_selection": asdict(self.event_selection),
            "track_quality": asdict(self.track_quality),
            "v0_selection": asdict(self.v0_selection),
            "cascade_selection": asdict(self.cascade_selection),
            "analysis": asdict(self.analysis),
        }

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'PipelineConfig':
        """
        Create PipelineConfig from a dictionary (e.g., loaded from YAML).

        Args:
            config_dict: Dictionary with configuration values

        Returns:
            Validated PipelineConfig instance

        Raises:
            ConfigurationError: If a required section or key is missing, or a
                section contains unknown keys
        """
        tasks = _build_section(TaskConfig, config_dict.get("tasks", {}), "tasks")

        input_dict = dict(config_dict.get("input", {}))
        if "paths" not in input_dict:
            raise ConfigurationError("input.paths is required")
        paths = input_dict["paths"]
        input_dict["paths"] = (paths,) if isinstance(paths, str) else tuple(paths)
        input_config = _build_section(InputConfig, input_dict, "input")

        run_metadata = config_dict.get("run_metadata", {})

        return cls(
            tasks=tasks,
            input_config=input_config,
            event_selection=_build_section(
                EventSelectionConfig, config_dict.get("event_selection", {}), "event_selection"
            ),
            track_quality=_build_section(
                TrackQualityConfig, config_dict.get("track_quality", {}), "track_quality"
            ),
            v0_selection=_build_section(
                V0SelectionConfig, config_dict.get("v0_selection", {}), "v0_selection"
            ),
            cascade_selection=_build_section(
                CascadeSelectionConfig, config_dict.get("cascade_selection", {}), "cascade_selection"
            ),
            analysis=_build_section(AnalysisConfig, config_dict.get("analysis", {}), "analysis"),
            output=_build_section(OutputConfig, config_dict.get("output", {}), "output"),
            run_name=run_metadata.get("run_name", "strangeness_qa"),
            batch_job_index=run_metadata.get("batch_job_index"),
            total_batch_jobs=run_metadata.get("total_batch_jobs"),
        )


def _build_section(section_cls, values: dict, section_name: str):
    """Instantiate one config section, turning typos into ConfigurationError."""
    if values is None:
        values = {}
    if not isinstance(values, dict):
        raise ConfigurationError(f"Section '{section_name}' must be a mapping, got {type(values).__name__}")
    known = set(section_cls.__dataclass_fields__)
    unknown = set(values) - known
    if unknown:
        raise ConfigurationError(
            f"Unknown keys in section '{section_name}': {sorted(unknown)}"
        )
    return section_cls(**values)
