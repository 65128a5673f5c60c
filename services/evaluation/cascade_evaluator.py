"""
CascadeCandidateEvaluator - Truth-matched QA and mass fills for cascades.

Single responsibility: walk one cascade candidate through truth matching,
rapidity acceptance, V0 link dereferencing and track quality of all three
daughters, then fill QA and signal-region mass histograms.
"""

import logging

from domain.config import AnalysisConfig, CascadeSelectionConfig, V0SelectionConfig
from domain.entities import CascadeCandidate, ReconstructedCollision
from domain.species import Species, CASCADE_QA_SPECIES, mass_hypothesis
from domain.statistics import CandidateOutcome
from domain.tables import BatchTables
from services.calculations.physics_calcs import pointing_angle
from services.histograms.definitions import mass_name, qa_name
from services.histograms.registry import HistogramRegistry
from services.selection.track_quality import TrackQualityFilter


class CascadeCandidateEvaluator:
    """
    Evaluates cascade candidates of accepted events.

    The V0 part of the signal region uses the V0 selection; the cascade
    part uses the cascade selection.
    """

    def __init__(
        self,
        v0_selection: V0SelectionConfig,
        cascade_selection: CascadeSelectionConfig,
        analysis: AnalysisConfig,
        track_filter: TrackQualityFilter,
    ):
        self.v0_selection = v0_selection
        self.cascade_selection = cascade_selection
        self.analysis = analysis
        self.track_filter = track_filter
        self.logger = logging.getLogger(self.__class__.__name__)

    def evaluate(
        self,
        cascade: CascadeCandidate,
        collision: ReconstructedCollision,
        tables: BatchTables,
        registry: HistogramRegistry,
    ) -> CandidateOutcome:
        if not cascade.has_mc_particle:
            self.logger.debug(f"Cascade {cascade.id}: no truth association")
            return CandidateOutcome.NO_TRUTH

        truth = tables.mc_particle(cascade.mc_particle_id)
        if abs(truth.y) > self.analysis.max_abs_rapidity:
            return CandidateOutcome.OUTSIDE_RAPIDITY

        v0 = tables.linked_v0(cascade)
        if v0 is None:
            self.logger.debug(f"Cascade {cascade.id}: no linked V0")
            return CandidateOutcome.NO_LINKED_V0

        daughters = (
            tables.track(v0.pos_track_id),
            tables.track(v0.neg_track_id),
            tables.track(cascade.bachelor_track_id),
        )
        if not self.track_filter.accept_all(*daughters):
            self.logger.debug(f"Cascade {cascade.id}: daughter track quality")
            return CandidateOutcome.FAILED_TRACK_QUALITY

        primary_vertex = collision.primary_vertex
        casc_cos_pa = cascade.casc_cos_pa(primary_vertex)
        species = Species.from_pdg(truth.pdg_code)

        if species in CASCADE_QA_SPECIES:
            pt = cascade.pt
            qa_values = {
                "V0Radius": cascade.v0_radius,
                "CascadeRadius": cascade.casc_radius,
                "DCAV0Dau": cascade.dca_v0_daughters,
                "DCACascDau": cascade.dca_casc_daughters,
                "DCAPosToPV": cascade.dca_pos_to_pv,
                "DCANegToPV": cascade.dca_neg_to_pv,
                "DCABachToPV": cascade.dca_bach_to_pv,
                "DCACascToPV": cascade.dca_casc_to_pv(primary_vertex),
                "PointingAngle": pointing_angle(casc_cos_pa),
            }
            for variable, value in qa_values.items():
                registry.accumulate(qa_name(species, variable), pt, value)

        in_signal_region = (
            cascade.v0_radius > self.v0_selection.radius
            and cascade.casc_radius > self.cascade_selection.radius
            and cascade.v0_cos_pa(primary_vertex) > self.v0_selection.cospa
            and casc_cos_pa > self.cascade_selection.cospa
            and cascade.dca_v0_daughters < self.v0_selection.dca_v0_daughters_max
        )
        if not in_signal_region:
            return CandidateOutcome.OUTSIDE_SIGNAL_REGION

        if species is not None and species.is_cascade:
            registry.accumulate(mass_name(species), cascade.pt, mass_hypothesis(species)(cascade))
        return CandidateOutcome.IN_SIGNAL_REGION
