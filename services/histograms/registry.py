"""
HistogramRegistry - Named fixed-binning histograms backed by ``hist``.

Single responsibility: hold booked histograms and accept weighted fills.
Every axis keeps underflow/overflow bins and every histogram keeps the
sum of squared weights, so merged shards and written files agree bin for
bin.
"""

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Iterator, Optional

import hist
import numpy as np

AXIS_NAMES = ("x", "y", "z")


@dataclass(frozen=True)
class Axis:
    """Uniform binning of one histogram dimension, with optional bin labels."""

    nbins: int
    low: float
    high: float
    title: str = ""
    labels: tuple[str, ...] = ()

    def __post_init__(self):
        """Validate axis definition."""
        if self.nbins <= 0:
            raise ValueError(f"nbins must be positive, got {self.nbins}")
        if self.high <= self.low:
            raise ValueError(f"high ({self.high}) must be greater than low ({self.low})")
        if self.labels and len(self.labels) != self.nbins:
            raise ValueError(
                f"labels must have one entry per bin ({self.nbins}), got {len(self.labels)}"
            )

    @cached_property
    def _regular(self) -> hist.axis.Regular:
        return hist.axis.Regular(self.nbins, self.low, self.high, label=self.title)

    @property
    def edges(self) -> np.ndarray:
        return self._regular.edges

    @property
    def centers(self) -> np.ndarray:
        return self._regular.centers

    def index(self, value: float) -> int:
        """Regular bin of ``value``: -1 below the range, ``nbins`` above it."""
        return int(self._regular.index(value))

    def to_hist(self, name: str) -> hist.axis.Regular:
        return hist.axis.Regular(
            self.nbins, self.low, self.high, name=name, label=self.title,
            underflow=True, overflow=True,
        )


class Histogram:
    """One booked histogram: weighted storage plus the number of fills."""

    def __init__(self, name: str, axes: tuple[Axis, ...], title: str = ""):
        if not axes:
            raise ValueError(f"Histogram '{name}' needs at least one axis")
        if len(axes) > len(AXIS_NAMES):
            raise ValueError(f"Histogram '{name}' has more than {len(AXIS_NAMES)} axes")
        self.name = name
        self.title = title
        self.axes = tuple(axes)
        self.entries = 0
        self._hist = hist.Hist(
            *(axis.to_hist(axis_name) for axis, axis_name in zip(self.axes, AXIS_NAMES)),
            storage=hist.storage.Weight(),
        )

    @property
    def ndim(self) -> int:
        return len(self.axes)

    def fill(self, *values: float, weight: float = 1.0):
        """Add ``weight`` at ``values``; a zero weight leaves the histogram untouched."""
        if len(values) != self.ndim:
            raise ValueError(
                f"Histogram '{self.name}' has {self.ndim} axes, got {len(values)} values"
            )
        if weight == 0:
            return
        self._hist.fill(*values, weight=weight)
        self.entries += 1

    def values(self, flow: bool = False) -> np.ndarray:
        """Sums of weights, without flow bins unless ``flow`` is set."""
        return np.array(self._hist.values(flow=flow), dtype=np.float64)

    def variances(self, flow: bool = False) -> np.ndarray:
        """Sums of squared weights."""
        return np.array(self._hist.variances(flow=flow), dtype=np.float64)

    def set_contents(self, values: np.ndarray, variances: np.ndarray, entries: int):
        """Replace contents including flow bins, e.g. with a histogram read back from file."""
        view = self._hist.view(flow=True)
        view.value[...] = values
        view.variance[...] = variances
        self.entries = int(entries)

    def is_compatible(self, other: 'Histogram') -> bool:
        return self.name == other.name and self.axes == other.axes

    def add(self, other: 'Histogram'):
        if not self.is_compatible(other):
            raise ValueError(f"Cannot merge histogram '{other.name}' into '{self.name}': binning differs")
        self._hist += other._hist
        self.entries += other.entries

    def empty_copy(self) -> 'Histogram':
        return Histogram(self.name, self.axes, self.title)


class HistogramRegistry:
    """
    Registry of named histograms.

    ``accumulate`` is the only write operation used by the analysis code.
    Per-worker shards are created with ``empty_copy`` and combined with
    ``merge``, which sums bin contents.
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._histograms: dict[str, Histogram] = {}

    def book(self, name: str, axes, title: str = "") -> Histogram:
        if name in self._histograms:
            raise ValueError(f"Histogram '{name}' is already booked")
        return self.add(Histogram(name, tuple(axes), title))

    def add(self, histogram: Histogram) -> Histogram:
        """Register an already filled histogram, e.g. one read back from file."""
        if histogram.name in self._histograms:
            raise ValueError(f"Histogram '{histogram.name}' is already booked")
        self._histograms[histogram.name] = histogram
        return histogram

    def accumulate(self, name: str, *values: float, weight: float = 1.0):
        """
        Fill ``name`` at ``values`` with ``weight``.

        Raises:
            KeyError: If no histogram of that name is booked
        """
        histogram = self._histograms.get(name)
        if histogram is None:
            raise KeyError(f"No histogram booked under '{name}'")
        histogram.fill(*values, weight=weight)

    def merge(self, other: 'HistogramRegistry') -> 'HistogramRegistry':
        """Add ``other`` bin-wise into this registry; histograms only in ``other`` are adopted."""
        for name, histogram in other._histograms.items():
            mine = self._histograms.get(name)
            if mine is None:
                mine = histogram.empty_copy()
                self._histograms[name] = mine
            mine.add(histogram)
        self.logger.debug(f"Merged {len(other)} histograms")
        return self

    def empty_copy(self) -> 'HistogramRegistry':
        copy = HistogramRegistry()
        for name, histogram in self._histograms.items():
            copy._histograms[name] = histogram.empty_copy()
        return copy

    def get(self, name: str) -> Histogram:
        return self._histograms[name]

    def values(self, name: str, flow: bool = False) -> np.ndarray:
        return self._histograms[name].values(flow=flow)

    def entries(self, name: str) -> int:
        return self._histograms[name].entries

    def names(self, prefix: Optional[str] = None) -> list[str]:
        if prefix is None:
            return list(self._histograms)
        return [name for name in self._histograms if name.startswith(prefix)]

    def __contains__(self, name: str) -> bool:
        return name in self._histograms

    def __iter__(self) -> Iterator[Histogram]:
        return iter(self._histograms.values())

    def __len__(self) -> int:
        return len(self._histograms)
