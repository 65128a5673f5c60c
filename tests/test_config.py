"""
Tests for configuration loading and validation.
"""

import pytest

from domain import ConfigurationError, PipelineConfig, Species
from domain.species import mass_hypothesis
from helpers import make_v0


class TestPipelineConfig:
    """Tests for PipelineConfig.from_dict."""

    def test_from_dict(self, config_dict):
        config = PipelineConfig.from_dict(config_dict)
        assert config.tasks.do_reconstructed_qa is True
        assert config.input_config.paths == ("a.root",)
        assert config.input_config.threads == 2
        assert config.output.output_path.endswith("qa.root")

    def test_defaults(self):
        """Test that omitted sections fall back to their defaults."""
        config = PipelineConfig.from_dict({"input": {"paths": "single.root"}})
        assert config.input_config.paths == ("single.root",)
        assert config.event_selection.max_abs_vertex_z == 10.0
        assert config.track_quality.min_tpc_crossed_rows == 70
        assert config.v0_selection.cospa == 0.95
        assert config.cascade_selection.radius == 0.5
        assert config.analysis.max_abs_rapidity == 0.5
        assert config.analysis.stop_cascades_on_missing_truth is False

    def test_missing_paths_fails(self):
        with pytest.raises(ConfigurationError, match="input.paths is required"):
            PipelineConfig.from_dict({"input": {}})

    def test_unknown_key_fails(self, config_dict):
        """Test that a typo in a section raises ConfigurationError."""
        config_dict["v0_selection"] = {"cosPA": 0.99}
        with pytest.raises(ConfigurationError, match="Unknown keys in section 'v0_selection'"):
            PipelineConfig.from_dict(config_dict)

    def test_section_must_be_mapping(self, config_dict):
        config_dict["analysis"] = [0.5]
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            PipelineConfig.from_dict(config_dict)

    def test_invalid_cospa_fails(self, config_dict):
        config_dict["cascade_selection"] = {"cospa": 1.5}
        with pytest.raises(ValueError, match="cospa must be within"):
            PipelineConfig.from_dict(config_dict)

    def test_no_processing_enabled_fails(self, config_dict):
        config_dict["tasks"] = {
            "do_reconstructed_qa": False,
            "do_pure_generated": False,
            "do_generated_reconstructible": False,
        }
        with pytest.raises(ValueError, match="At least one processing task"):
            PipelineConfig.from_dict(config_dict)

    def test_batch_job_index_out_of_range_fails(self, config_dict):
        config_dict["run_metadata"] = {"batch_job_index": 3, "total_batch_jobs": 2}
        with pytest.raises(ValueError, match="must be within"):
            PipelineConfig.from_dict(config_dict)

    def test_output_filename_must_be_root(self, config_dict):
        config_dict["output"]["output_filename"] = "qa.json"
        with pytest.raises(ValueError, match="must end with .root"):
            PipelineConfig.from_dict(config_dict)

    def test_selection_summary(self, config):
        summary = config.selection_summary()
        assert set(summary) == {
            "event_selection", "track_quality", "v0_selection", "cascade_selection", "analysis",
        }
        assert summary["v0_selection"]["radius"] == 0.9


class TestSpecies:
    """Tests for the species enumeration."""

    def test_from_pdg(self):
        assert Species.from_pdg(3122) is Species.LAMBDA
        assert Species.from_pdg(-3334) is Species.OMEGA_PLUS
        assert Species.from_pdg(211) is None

    def test_families(self):
        assert Species.K0_SHORT.family == "K0Short"
        assert str(Species.XI_PLUS) == "XiPlus"
        assert Species.ANTI_LAMBDA.is_v0
        assert Species.OMEGA_MINUS.is_cascade
        assert not Species.XI_MINUS.is_v0

    def test_mass_hypothesis(self):
        """Test that each species reads its own mass column."""
        v0 = make_v0()
        assert mass_hypothesis(Species.K0_SHORT)(v0) == 0.497
        assert mass_hypothesis(Species.LAMBDA)(v0) == 1.115
        assert mass_hypothesis(Species.ANTI_LAMBDA)(v0) == 1.117
