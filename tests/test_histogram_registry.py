"""
Tests for the histogram registry and the booked histogram set.
"""

import numpy as np
import pytest

from domain import Species
from services.histograms import Axis, HistogramRegistry
from services.histograms.definitions import (
    EVENT_SELECTION,
    book_strangeness_histograms,
    generated_name,
    mass_name,
    qa_name,
)


class TestAxis:
    """Tests for Axis binning."""

    def test_index(self):
        axis = Axis(10, 0.0, 10.0)
        assert axis.index(0.0) == 0
        assert axis.index(9.99) == 9
        assert axis.index(-0.1) == -1
        assert axis.index(10.0) == 10

    def test_edges_and_centers(self):
        axis = Axis(4, 0.0, 2.0)
        np.testing.assert_allclose(axis.edges, [0.0, 0.5, 1.0, 1.5, 2.0])
        np.testing.assert_allclose(axis.centers, [0.25, 0.75, 1.25, 1.75])

    def test_invalid_range_fails(self):
        with pytest.raises(ValueError, match="must be greater than low"):
            Axis(10, 1.0, 1.0)

    def test_labels_must_match_bins(self):
        with pytest.raises(ValueError, match="one entry per bin"):
            Axis(3, -0.5, 2.5, labels=("a", "b"))


class TestHistogramRegistry:
    """Tests for booking, filling and merging."""

    def _registry(self):
        registry = HistogramRegistry()
        registry.book("hPt", (Axis(10, 0.0, 10.0),))
        registry.book("h2d", (Axis(10, 0.0, 10.0), Axis(4, 0.0, 2.0)))
        return registry

    def test_accumulate(self):
        registry = self._registry()
        registry.accumulate("hPt", 1.5)
        registry.accumulate("hPt", 1.7, weight=2.0)
        registry.accumulate("h2d", 3.2, 1.9)
        assert registry.values("hPt")[1] == 3.0
        assert registry.entries("hPt") == 2
        assert registry.values("h2d")[3, 3] == 1.0

    def test_out_of_range_goes_to_flow_bins(self):
        registry = self._registry()
        registry.accumulate("hPt", 12.0)
        assert registry.values("hPt").sum() == 0
        assert registry.values("hPt", flow=True)[-1] == 1.0

    def test_zero_weight_fill_is_not_an_entry(self):
        registry = self._registry()
        registry.accumulate("hPt", 1.5, weight=0.0)
        assert registry.entries("hPt") == 0
        assert registry.values("hPt", flow=True).sum() == 0

    def test_sum_of_squared_weights(self):
        registry = self._registry()
        registry.accumulate("hPt", 1.5, weight=2.0)
        registry.accumulate("hPt", 1.6, weight=3.0)
        assert registry.get("hPt").variances()[1] == 13.0

    def test_unknown_name_fails(self):
        """Test that filling an unbooked histogram raises KeyError."""
        registry = self._registry()
        with pytest.raises(KeyError, match="hMissing"):
            registry.accumulate("hMissing", 1.0)

    def test_wrong_dimension_fails(self):
        registry = self._registry()
        with pytest.raises(ValueError, match="has 2 axes"):
            registry.accumulate("h2d", 1.0)

    def test_duplicate_booking_fails(self):
        registry = self._registry()
        with pytest.raises(ValueError, match="already booked"):
            registry.book("hPt", (Axis(5, 0.0, 1.0),))

    def test_merge_equals_sequential_filling(self):
        """Test that merged shards hold the same counts as one registry filled with everything."""
        values = [0.5, 1.5, 1.6, 7.3, 11.0, -1.0]
        sequential = self._registry()
        for value in values:
            sequential.accumulate("hPt", value)

        first = sequential.empty_copy()
        second = sequential.empty_copy()
        for value in values[:3]:
            first.accumulate("hPt", value)
        for value in values[3:]:
            second.accumulate("hPt", value)
        merged = sequential.empty_copy().merge(first).merge(second)

        np.testing.assert_array_equal(
            merged.values("hPt", flow=True), sequential.values("hPt", flow=True)
        )
        assert merged.entries("hPt") == sequential.entries("hPt")

    def test_merge_adopts_missing_histograms(self):
        target = HistogramRegistry()
        source = self._registry()
        source.accumulate("hPt", 2.0)
        target.merge(source)
        assert "hPt" in target
        assert target.values("hPt")[2] == 1.0

    def test_merge_incompatible_binning_fails(self):
        target = HistogramRegistry()
        target.book("hPt", (Axis(5, 0.0, 10.0),))
        with pytest.raises(ValueError, match="binning differs"):
            target.merge(self._registry())

    def test_empty_copy_keeps_booking(self):
        registry = self._registry()
        registry.accumulate("hPt", 1.0)
        copy = registry.empty_copy()
        assert copy.names() == registry.names()
        assert copy.values("hPt").sum() == 0


class TestBooking:
    """Tests for the booked histogram set."""

    def test_book_full_set(self, registry):
        for species in Species:
            assert generated_name(species) in registry
            assert mass_name(species) in registry
        assert len(registry.names(prefix="h2dLambdaQA")) == 5
        assert len(registry.names(prefix="h2dXiMinusQA")) == 9
        assert qa_name(Species.XI_PLUS, "V0Radius") not in registry
        assert EVENT_SELECTION in registry

    def test_v0_dca_to_pv_optional(self):
        registry = book_strangeness_histograms(HistogramRegistry(), include_v0_dca_to_pv=True)
        assert qa_name(Species.K0_SHORT, "DCAToPV") in registry
        assert qa_name(Species.LAMBDA, "DCAToPV") in registry

    def test_mass_axis_window(self, registry):
        pt_axis, mass_axis = registry.get(mass_name(Species.OMEGA_PLUS)).axes
        assert pt_axis.nbins == 100
        assert (mass_axis.low, mass_axis.high) == (1.57, 1.77)
