"""
Source-side candidate pre-filters.

Loose cuts applied column-wise on the awkward tables before any entity is
built. They match the cuts the candidate builders already applied, so they
remove rows the evaluation would reject anyway.
"""

import awkward as ak

from domain.config import CascadeSelectionConfig, V0SelectionConfig
from services.calculations.consts import NO_INDEX


def v0_prefilter_mask(v0s: ak.Array, selection: V0SelectionConfig) -> ak.Array:
    return (
        (v0s.mc_particle_id > NO_INDEX)
        & (abs(v0s.dca_pos_to_pv) > selection.dca_pos_to_pv)
        & (abs(v0s.dca_neg_to_pv) > selection.dca_neg_to_pv)
        & (v0s.dca_v0_daughters < selection.dca_v0_daughters_max)
    )


def cascade_prefilter_mask(
    cascades: ak.Array,
    v0_selection: V0SelectionConfig,
    cascade_selection: CascadeSelectionConfig,
) -> ak.Array:
    return (
        (cascades.mc_particle_id > NO_INDEX)
        & (abs(cascades.dca_pos_to_pv) > v0_selection.dca_pos_to_pv)
        & (abs(cascades.dca_neg_to_pv) > v0_selection.dca_neg_to_pv)
        & (abs(cascades.dca_bach_to_pv) > cascade_selection.dca_bach_to_pv)
        & (cascades.dca_v0_daughters < v0_selection.dca_v0_daughters_max)
        & (cascades.dca_casc_daughters < cascade_selection.dca_casc_daughters_max)
    )
