"""
Tests for generated spectra, the batch processor and threaded processing.
"""

from dataclasses import replace

import numpy as np
import pytest

from domain import PipelineConfig, SimulatedCollision, Species
from domain.config import AnalysisConfig
from services.evaluation import GeneratedSpectrumAccumulator, efficiency_upper_bound
from services.evaluation.generated_spectra import spectrum_ratio
from services.histograms.definitions import (
    EVENT_SELECTION,
    generated_name,
    mass_name,
    reconstructible_name,
)
from services.processing import StrangenessQAProcessor, ThreadedBatchProcessor
from services.truth import ReconstructionStatusAnnotator
from helpers import lambda_batch, make_collision, make_particle


class TestGeneratedSpectra:
    """Tests for GeneratedSpectrumAccumulator."""

    def test_rapidity_acceptance_without_reconstruction(self, registry):
        """Test three Lambdas at y = 0.1, 0.3, 0.9 with no reconstructed collision."""
        particles = [make_particle(i, 3122, pt=1.0 + i, y=y) for i, y in enumerate((0.1, 0.3, 0.9))]
        status = ReconstructionStatusAnnotator().annotate([SimulatedCollision(id=0)], [])
        accumulator = GeneratedSpectrumAccumulator(AnalysisConfig())

        assert accumulator.fill_pure_generated(particles, registry) == 2
        assert accumulator.fill_reconstructible(particles, status, registry) == 0
        assert registry.values(generated_name(Species.LAMBDA)).sum() == 2
        assert registry.values(reconstructible_name(Species.LAMBDA)).sum() == 0

    def test_reconstructible_subset(self, registry):
        """Test that only particles of reconstructed collisions enter hGenWithPV."""
        particles = [
            make_particle(0, 3312, mc_collision_id=0),
            make_particle(1, 3312, mc_collision_id=1),
            make_particle(2, 211, mc_collision_id=0),
        ]
        status = ReconstructionStatusAnnotator().annotate(
            [SimulatedCollision(id=0), SimulatedCollision(id=1)],
            [make_collision(mc_collision_id=0)],
        )
        accumulator = GeneratedSpectrumAccumulator(AnalysisConfig())
        accumulator.fill_pure_generated(particles, registry)
        accumulator.fill_reconstructible(particles, status, registry)

        assert registry.values(generated_name(Species.XI_MINUS)).sum() == 2
        assert registry.values(reconstructible_name(Species.XI_MINUS)).sum() == 1
        ratio = efficiency_upper_bound(registry, Species.XI_MINUS)
        assert ratio.max() == pytest.approx(0.5)

    def test_spectrum_ratio_empty_bins(self):
        ratio = spectrum_ratio(np.array([1.0, 0.0, 3.0]), np.array([2.0, 0.0, 3.0]))
        np.testing.assert_allclose(ratio, [0.5, 0.0, 1.0])


class TestStrangenessQAProcessor:
    """Tests for one batch going through every pass."""

    def test_process_lambda_batch(self, config, registry):
        result = StrangenessQAProcessor(config).process(lambda_batch(batch_index=3), registry)

        assert result.batch_index == 3
        assert result.status.flags() == [True]
        assert result.event_selection == {"All collisions": 1, "Sel8 cut": 1, "posZ cut": 1}
        assert dict(result.statistics.v0_outcomes) == {"in_signal_region": 1}
        assert result.statistics.selected_collisions == 1
        assert result.statistics.generated_particles == 1
        assert registry.entries(mass_name(Species.LAMBDA)) == 1
        assert registry.values(generated_name(Species.LAMBDA)).sum() == 1
        assert registry.values(reconstructible_name(Species.LAMBDA)).sum() == 1

    def test_rejected_event_skips_candidates(self, config, registry):
        tables = replace(lambda_batch(), collisions=(make_collision(pos_z=15.0),))
        result = StrangenessQAProcessor(config).process(tables, registry)
        assert result.statistics.selected_collisions == 0
        assert result.statistics.v0_outcomes == ()
        assert list(registry.values(EVENT_SELECTION)) == [1.0, 1.0, 0.0]

    def test_reconstructed_qa_disabled(self, config_dict, registry):
        config_dict["tasks"]["do_reconstructed_qa"] = False
        config = PipelineConfig.from_dict(config_dict)
        result = StrangenessQAProcessor(config).process(lambda_batch(), registry)
        assert result.event_selection == {}
        assert registry.entries(EVENT_SELECTION) == 0
        assert registry.values(generated_name(Species.LAMBDA)).sum() == 1


class TestThreadedBatchProcessor:
    """Tests for ThreadedBatchProcessor."""

    def test_invalid_threads_fails(self, config, registry):
        with pytest.raises(ValueError, match="max_threads must be positive"):
            ThreadedBatchProcessor(StrangenessQAProcessor(config), registry, max_threads=0)

    def test_merged_shards_match_sequential(self, config, registry):
        """Test that threaded processing gives the same histograms as a single pass."""
        batches = [
            lambda_batch(batch_index=0),
            lambda_batch(batch_index=1, pdg_code=310),
            lambda_batch(batch_index=2, y=0.45),
            lambda_batch(batch_index=3, cos_pa=0.9),
        ]
        processor = StrangenessQAProcessor(config)

        sequential = registry.empty_copy()
        for tables in batches:
            processor.process(tables, sequential)

        threaded = ThreadedBatchProcessor(processor, registry, max_threads=3, show_progress=False)
        merged, results = threaded.process_batches(batches)

        assert [result.batch_index for result in results] == [0, 1, 2, 3]
        for name in sequential.names():
            np.testing.assert_array_equal(
                merged.values(name, flow=True), sequential.values(name, flow=True)
            )
        # template stays empty
        assert registry.entries(EVENT_SELECTION) == 0

    def test_batches_are_pulled_lazily(self, config, registry):
        """Test that no more than max_pending_batches batches wait to be merged."""
        processed = []
        waiting = []

        class RecordingProcessor(StrangenessQAProcessor):
            def process(self, tables, registry):
                result = super().process(tables, registry)
                processed.append(tables.batch_index)
                return result

        def stream():
            for index in range(10):
                waiting.append(index - len(processed))
                yield lambda_batch(batch_index=index)

        threaded = ThreadedBatchProcessor(
            RecordingProcessor(config), registry, max_threads=2,
            show_progress=False, max_pending_batches=3,
        )
        merged, results = threaded.process_batches(stream())

        assert [result.batch_index for result in results] == list(range(10))
        assert max(waiting) <= 3
        assert merged.entries(mass_name(Species.LAMBDA)) == 10

    def test_invalid_pending_limit_fails(self, config, registry):
        with pytest.raises(ValueError, match="max_pending_batches must be positive"):
            ThreadedBatchProcessor(
                StrangenessQAProcessor(config), registry, max_threads=1, max_pending_batches=0
            )
