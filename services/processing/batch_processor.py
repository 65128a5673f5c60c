"""
StrangenessQAProcessor - Runs every enabled analysis pass over one batch.

Single responsibility: drive event selection, candidate evaluation and the
generated-spectrum passes over the tables of a batch, filling one registry.
"""

import logging
import time
from collections import Counter
from dataclasses import dataclass, field

from domain.config import PipelineConfig
from domain.entities import ReconstructedCollision
from domain.statistics import BatchStatistics, CandidateOutcome
from domain.tables import BatchTables
from services.evaluation.cascade_evaluator import CascadeCandidateEvaluator
from services.evaluation.generated_spectra import GeneratedSpectrumAccumulator
from services.evaluation.v0_evaluator import V0CandidateEvaluator
from services.histograms.registry import HistogramRegistry
from services.selection.event_selector import EventSelector
from services.selection.track_quality import TrackQualityFilter
from services.truth.reconstruction_status import (
    ReconstructionStatus,
    ReconstructionStatusAnnotator,
)


@dataclass(frozen=True)
class BatchResult:
    """Outputs of one batch besides its histograms."""

    batch_index: int
    status: ReconstructionStatus
    statistics: BatchStatistics
    event_selection: dict = field(default_factory=dict)


class StrangenessQAProcessor:
    """
    Processes BatchTables into histogram fills.

    Holds no per-batch state: the event selector and its counters are
    created for each batch, so one processor can serve several threads.
    """

    def __init__(self, config: PipelineConfig):
        self.config = config
        track_filter = TrackQualityFilter(config.track_quality)
        self.annotator = ReconstructionStatusAnnotator()
        self.v0_evaluator = V0CandidateEvaluator(config.v0_selection, config.analysis, track_filter)
        self.cascade_evaluator = CascadeCandidateEvaluator(
            config.v0_selection, config.cascade_selection, config.analysis, track_filter
        )
        self.spectra = GeneratedSpectrumAccumulator(config.analysis)
        self.logger = logging.getLogger(self.__class__.__name__)

    def process(self, tables: BatchTables, registry: HistogramRegistry) -> BatchResult:
        start_time = time.time()
        tasks = self.config.tasks

        status = self.annotator.annotate(tables.mc_collisions, tables.collisions)

        v0_outcomes = Counter()
        cascade_outcomes = Counter()
        selected = 0
        event_selection = {}
        if tasks.do_reconstructed_qa:
            selector = EventSelector(self.config.event_selection)
            for collision in tables.collisions:
                if not selector.select(collision):
                    continue
                selected += 1
                for v0 in tables.v0s_in(collision.id):
                    v0_outcomes[self.v0_evaluator.evaluate(v0, collision, tables, registry)] += 1
                self._evaluate_cascades(collision, tables, registry, cascade_outcomes)
            event_selection = selector.emit(registry)

        generated = 0
        if tasks.do_pure_generated:
            generated = self.spectra.fill_pure_generated(tables.mc_particles, registry)
        if tasks.do_generated_reconstructible:
            self.spectra.fill_reconstructible(tables.mc_particles, status, registry)

        statistics = BatchStatistics.from_counters(
            batch_index=tables.batch_index,
            mc_collisions=len(tables.mc_collisions),
            reconstructible_mc_collisions=len(status.reconstructible_ids),
            collisions=tables.event_count,
            selected_collisions=selected,
            generated_particles=generated,
            processing_time_sec=time.time() - start_time,
            v0_outcomes=v0_outcomes,
            cascade_outcomes=cascade_outcomes,
        )
        self.logger.debug(
            f"Batch {tables.batch_index}: {selected}/{tables.event_count} collisions selected, "
            f"{sum(v0_outcomes.values())} V0s, {sum(cascade_outcomes.values())} cascades"
        )
        return BatchResult(
            batch_index=tables.batch_index,
            status=status,
            statistics=statistics,
            event_selection=event_selection,
        )

    def _evaluate_cascades(
        self,
        collision: ReconstructedCollision,
        tables: BatchTables,
        registry: HistogramRegistry,
        outcomes: Counter,
    ):
        cascades = tables.cascades_in(collision.id)
        for position, cascade in enumerate(cascades):
            outcome = self.cascade_evaluator.evaluate(cascade, collision, tables, registry)
            outcomes[outcome] += 1
            if (
                outcome is CandidateOutcome.NO_TRUTH
                and self.config.analysis.stop_cascades_on_missing_truth
            ):
                remaining = len(cascades) - position - 1
                if remaining:
                    outcomes[CandidateOutcome.NOT_EVALUATED] += remaining
                break
