"""
Histogram naming and booking for the strangeness QA.

Names follow the families written to the output file:
``hGen<Species>``, ``hGenWithPV<Species>``, ``h2dMass<Species>``,
``h2d<Species>QA<Variable>`` and ``hEventSelection``.
"""

from domain.species import (
    Species,
    GENERATED_SPECIES,
    V0_QA_SPECIES,
    CASCADE_QA_SPECIES,
    MASS_HYPOTHESIS_ATTRIBUTES,
)
from services.calculations.consts import MASS_AXIS_RANGES
from .registry import Axis, HistogramRegistry

EVENT_SELECTION = "hEventSelection"
EVENT_SELECTION_LABELS = ("All collisions", "Sel8 cut", "posZ cut")

PT_TITLE = "#it{p}_{T} (GeV/c)"
MASS_TITLE = "Inv. Mass (GeV/c^{2})"

SPECTRUM_PT_AXIS = Axis(100, 0.0, 10.0, PT_TITLE)
QA_PT_AXIS = Axis(10, 0.0, 10.0, PT_TITLE)

# QA variable -> y axis
_RADIUS_AXIS = Axis(200, 0.0, 50.0)
_DAUGHTER_DCA_AXIS = Axis(100, 0.0, 2.0)
_SIGNED_DCA_AXIS = Axis(200, -2.0, 2.0)
_POINTING_ANGLE_AXIS = Axis(200, 0.0, 1.0)

V0_QA_AXES = {
    "V0Radius": _RADIUS_AXIS,
    "DCAV0Dau": _DAUGHTER_DCA_AXIS,
    "DCAPosToPV": _SIGNED_DCA_AXIS,
    "DCANegToPV": _SIGNED_DCA_AXIS,
    "PointingAngle": _POINTING_ANGLE_AXIS,
}
V0_DCA_TO_PV_AXIS = Axis(200, 0.0, 2.0)

CASCADE_QA_AXES = {
    "V0Radius": _RADIUS_AXIS,
    "CascadeRadius": _RADIUS_AXIS,
    "DCAV0Dau": _DAUGHTER_DCA_AXIS,
    "DCACascDau": _DAUGHTER_DCA_AXIS,
    "DCAPosToPV": _SIGNED_DCA_AXIS,
    "DCANegToPV": _SIGNED_DCA_AXIS,
    "DCABachToPV": _SIGNED_DCA_AXIS,
    "DCACascToPV": _SIGNED_DCA_AXIS,
    "PointingAngle": _POINTING_ANGLE_AXIS,
}


def generated_name(species: Species) -> str:
    return f"hGen{species.family}"


def reconstructible_name(species: Species) -> str:
    return f"hGenWithPV{species.family}"


def mass_name(species: Species) -> str:
    return f"h2dMass{species.family}"


def qa_name(species: Species, variable: str) -> str:
    return f"h2d{species.family}QA{variable}"


def mass_axis(species: Species) -> Axis:
    low, high = MASS_AXIS_RANGES[MASS_HYPOTHESIS_ATTRIBUTES[species]]
    return Axis(400, low, high, MASS_TITLE)


def book_strangeness_histograms(
    registry: HistogramRegistry,
    include_v0_dca_to_pv: bool = False,
) -> HistogramRegistry:
    """
    Book the complete histogram set.

    Args:
        registry: Registry to book into
        include_v0_dca_to_pv: Also book ``h2d<Species>QADCAToPV`` for the
            V0 QA species

    Returns:
        The registry, for chaining
    """
    for species in GENERATED_SPECIES:
        registry.book(generated_name(species), (SPECTRUM_PT_AXIS,), generated_name(species))
    for species in GENERATED_SPECIES:
        registry.book(
            reconstructible_name(species), (SPECTRUM_PT_AXIS,), reconstructible_name(species)
        )
    for species in GENERATED_SPECIES:
        registry.book(mass_name(species), (SPECTRUM_PT_AXIS, mass_axis(species)), mass_name(species))

    for species in V0_QA_SPECIES:
        for variable, axis in V0_QA_AXES.items():
            registry.book(qa_name(species, variable), (QA_PT_AXIS, axis), qa_name(species, variable))
        if include_v0_dca_to_pv:
            name = qa_name(species, "DCAToPV")
            registry.book(name, (QA_PT_AXIS, V0_DCA_TO_PV_AXIS), name)

    for species in CASCADE_QA_SPECIES:
        for variable, axis in CASCADE_QA_AXES.items():
            registry.book(qa_name(species, variable), (QA_PT_AXIS, axis), qa_name(species, variable))

    registry.book(
        EVENT_SELECTION,
        (Axis(len(EVENT_SELECTION_LABELS), -0.5, 2.5, labels=EVENT_SELECTION_LABELS),),
        EVENT_SELECTION,
    )
    return registry
