"""
Tests for CascadeCandidateEvaluator and the cascade loop policies.
"""

from collections import Counter
from dataclasses import replace

import pytest

from domain import CandidateOutcome, PipelineConfig, Species, V0Link
from domain.config import (
    AnalysisConfig,
    CascadeSelectionConfig,
    TrackQualityConfig,
    V0SelectionConfig,
)
from services.evaluation import CascadeCandidateEvaluator
from services.histograms.definitions import mass_name, qa_name
from services.processing import StrangenessQAProcessor
from services.selection import TrackQualityFilter
from helpers import cascade_batch, make_cascade, make_particle, make_track


def _evaluate(tables, registry):
    evaluator = CascadeCandidateEvaluator(
        V0SelectionConfig(),
        CascadeSelectionConfig(),
        AnalysisConfig(),
        TrackQualityFilter(TrackQualityConfig()),
    )
    cascade = tables.cascades[0]
    return evaluator.evaluate(cascade, tables.collisions[0], tables, registry)


def _mass_entries(registry):
    return {name: registry.entries(name) for name in registry.names(prefix="h2dMass") if registry.entries(name)}


class TestCascadeCandidateEvaluator:
    """Tests for the cascade evaluation chain."""

    def test_xi_in_signal_region(self, registry):
        """Test that a good Xi fills nine QA histograms and its mass histogram."""
        outcome = _evaluate(cascade_batch([make_cascade()]), registry)

        assert outcome is CandidateOutcome.IN_SIGNAL_REGION
        qa_names = registry.names(prefix="h2dXiMinusQA")
        assert len(qa_names) == 9
        assert all(registry.entries(name) == 1 for name in qa_names)
        assert _mass_entries(registry) == {mass_name(Species.XI_MINUS): 1}

    def test_omega_uses_omega_mass(self, registry):
        _evaluate(cascade_batch([make_cascade()], pdg_code=3334), registry)
        pt_axis, mass_axis = registry.get(mass_name(Species.OMEGA_MINUS)).axes
        counts = registry.values(mass_name(Species.OMEGA_MINUS))
        assert counts[pt_axis.index(1.5), mass_axis.index(1.672)] == 1.0
        assert registry.entries(qa_name(Species.OMEGA_MINUS, "CascadeRadius")) == 1

    def test_xi_plus_has_no_qa(self, registry):
        _evaluate(cascade_batch([make_cascade()], pdg_code=-3312), registry)
        assert not any(registry.entries(name) for name in registry.names() if "QA" in name)
        assert _mass_entries(registry) == {mass_name(Species.XI_PLUS): 1}

    def test_no_truth(self, registry):
        tables = cascade_batch([make_cascade(mc_particle_id=None)])
        assert _evaluate(tables, registry) is CandidateOutcome.NO_TRUTH

    def test_outside_rapidity(self, registry):
        tables = cascade_batch([make_cascade()])
        particles = (make_particle(0, 3312, y=-0.7),) + tables.mc_particles[1:]
        tables = replace(tables, mc_particles=particles)
        assert _evaluate(tables, registry) is CandidateOutcome.OUTSIDE_RAPIDITY

    @pytest.mark.parametrize("cascade, links", [
        (make_cascade(v0_link_id=0), (V0Link(id=0, v0_id=None),)),
        (make_cascade(v0_link_id=None), ()),
        # link row pointing at a V0 absent from the batch
        (make_cascade(v0_link_id=0), (V0Link(id=0, v0_id=3),)),
    ])
    def test_unresolved_v0_link(self, registry, cascade, links):
        """Test that a cascade whose V0 cannot be reached fills nothing."""
        outcome = _evaluate(cascade_batch([cascade], v0_links=links), registry)
        assert outcome is CandidateOutcome.NO_LINKED_V0
        assert _mass_entries(registry) == {}

    def test_bachelor_track_quality(self, registry):
        """Test that the bachelor needs enough TPC crossed rows."""
        tables = cascade_batch([make_cascade()])
        tracks = tables.tracks[:2] + (make_track(2, mc_particle_id=3, tpc_n_cls_crossed_rows=50),)
        outcome = _evaluate(replace(tables, tracks=tracks), registry)
        assert outcome is CandidateOutcome.FAILED_TRACK_QUALITY

    @pytest.mark.parametrize("overrides", [{"casc_radius": 0.3}, {"v0_radius": 0.5}])
    def test_outside_signal_region(self, registry, overrides):
        outcome = _evaluate(cascade_batch([make_cascade(**overrides)]), registry)
        assert outcome is CandidateOutcome.OUTSIDE_SIGNAL_REGION
        assert registry.entries(qa_name(Species.XI_MINUS, "V0Radius")) == 1
        assert _mass_entries(registry) == {}


class TestCascadeLoopPolicy:
    """Tests for what happens after a cascade without truth."""

    def _cascades(self):
        return [
            make_cascade(id=0),
            make_cascade(id=1, mc_particle_id=None),
            make_cascade(id=2),
        ]

    def _process(self, config_dict, registry, stop):
        config_dict["analysis"] = {"stop_cascades_on_missing_truth": stop}
        processor = StrangenessQAProcessor(PipelineConfig.from_dict(config_dict))
        return processor.process(cascade_batch(self._cascades()), registry)

    def test_continue_policy(self, config_dict, registry):
        """Test that later cascades are still evaluated."""
        result = self._process(config_dict, registry, stop=False)
        outcomes = Counter(dict(result.statistics.cascade_outcomes))
        assert outcomes["in_signal_region"] == 2
        assert outcomes["no_truth"] == 1
        assert registry.entries(mass_name(Species.XI_MINUS)) == 2

    def test_legacy_stop_policy(self, config_dict, registry):
        """Test that the rest of the event's cascades are skipped."""
        result = self._process(config_dict, registry, stop=True)
        outcomes = dict(result.statistics.cascade_outcomes)
        assert outcomes == {"in_signal_region": 1, "no_truth": 1, "not_evaluated": 1}
        assert registry.entries(mass_name(Species.XI_MINUS)) == 1
