"""
V0CandidateEvaluator - Truth-matched QA and mass fills for V0 candidates.

Single responsibility: walk one V0 candidate through truth matching,
rapidity acceptance and track quality, then fill the per-variable QA
histograms and, inside the signal region, the invariant-mass histogram of
its true species.
"""

import logging

from domain.config import AnalysisConfig, V0SelectionConfig
from domain.entities import ReconstructedCollision, V0Candidate
from domain.species import Species, V0_QA_SPECIES, mass_hypothesis
from domain.statistics import CandidateOutcome
from domain.tables import BatchTables
from services.calculations.physics_calcs import pointing_angle
from services.histograms.definitions import mass_name, qa_name
from services.histograms.registry import HistogramRegistry
from services.selection.track_quality import TrackQualityFilter


class V0CandidateEvaluator:
    """Evaluates V0 candidates of accepted events."""

    def __init__(
        self,
        selection: V0SelectionConfig,
        analysis: AnalysisConfig,
        track_filter: TrackQualityFilter,
    ):
        self.selection = selection
        self.analysis = analysis
        self.track_filter = track_filter
        self.logger = logging.getLogger(self.__class__.__name__)

    def evaluate(
        self,
        v0: V0Candidate,
        collision: ReconstructedCollision,
        tables: BatchTables,
        registry: HistogramRegistry,
    ) -> CandidateOutcome:
        """
        Evaluate one candidate against the primary vertex of ``collision``.

        Returns:
            The step at which the candidate left the chain
        """
        pos_track = tables.track(v0.pos_track_id)
        neg_track = tables.track(v0.neg_track_id)
        if not (v0.has_mc_particle and pos_track.has_mc_particle and neg_track.has_mc_particle):
            self.logger.debug(f"V0 {v0.id}: no truth association")
            return CandidateOutcome.NO_TRUTH

        truth = tables.mc_particle(v0.mc_particle_id)
        if abs(truth.y) > self.analysis.max_abs_rapidity:
            return CandidateOutcome.OUTSIDE_RAPIDITY

        if not self.track_filter.accept_all(pos_track, neg_track):
            self.logger.debug(f"V0 {v0.id}: daughter track quality")
            return CandidateOutcome.FAILED_TRACK_QUALITY

        primary_vertex = collision.primary_vertex
        cos_pa = v0.cos_pa(primary_vertex)
        species = Species.from_pdg(truth.pdg_code)

        if species in V0_QA_SPECIES:
            pt = v0.pt
            qa_values = {
                "V0Radius": v0.v0_radius,
                "DCAV0Dau": v0.dca_v0_daughters,
                "DCAPosToPV": pos_track.dca_xy,
                "DCANegToPV": neg_track.dca_xy,
                "PointingAngle": pointing_angle(cos_pa),
            }
            if self.analysis.fill_v0_dca_to_pv_qa:
                qa_values["DCAToPV"] = v0.dca_to_pv(primary_vertex)
            for variable, value in qa_values.items():
                registry.accumulate(qa_name(species, variable), pt, value)

        in_signal_region = (
            v0.v0_radius > self.selection.radius
            and cos_pa > self.selection.cospa
            and v0.dca_v0_daughters < self.selection.dca_v0_daughters_max
        )
        if not in_signal_region:
            return CandidateOutcome.OUTSIDE_SIGNAL_REGION

        if species is not None and species.is_v0:
            registry.accumulate(mass_name(species), v0.pt, mass_hypothesis(species)(v0))
        return CandidateOutcome.IN_SIGNAL_REGION
