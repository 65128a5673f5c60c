"""
HistogramWriter - Persists a histogram registry to a ROOT file.

Histograms are written with uproot as TH1D/TH2D including flow bins,
sums of squared weights, titles and bin labels. The reconstruction status
goes to the ``McCollsExtra`` TTree, and the run configuration and
statistics to a JSON sidecar next to the ROOT file.
"""

import json
import logging
import os
from collections import defaultdict
from typing import Iterable, Optional

import numpy as np
import uproot
from uproot.writing.identify import to_TAxis, to_TH1x, to_TH2x, to_THashList, to_TObjString

from domain.exceptions import StrangenessQAError
from services.truth.reconstruction_status import ReconstructionStatus
from .registry import Axis, Histogram, HistogramRegistry

STATUS_TREE = "McCollsExtra"
STATUS_BRANCHES = {
    "fIndexBatch": np.int32,
    "fIndexMcCollisions": np.int32,
    "fHasRecoCollision": np.bool_,
}
STATUS_COLUMNS = tuple(STATUS_BRANCHES)
HISTOGRAM_CLASSES = ("TH1D", "TH2D")


def status_columns(statuses: Iterable[tuple[int, ReconstructionStatus]]) -> dict[str, np.ndarray]:
    """
    Flatten per-batch status tables into tree columns.

    Args:
        statuses: (batch_index, status) pairs
    """
    batch_indices, ids, flags = [], [], []
    for batch_index, status in statuses:
        batch_indices.extend([batch_index] * len(status))
        ids.extend(status.ids())
        flags.extend(status.flags())
    return {
        "fIndexBatch": np.asarray(batch_indices, dtype=np.int32),
        "fIndexMcCollisions": np.asarray(ids, dtype=np.int32),
        "fHasRecoCollision": np.asarray(flags, dtype=np.bool_),
    }


def metadata_path(output_path: str) -> str:
    root, _ = os.path.splitext(output_path)
    return f"{root}.json"


class HistogramWriter:
    """Writes registries and status tables with uproot."""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    def write(
        self,
        registry: HistogramRegistry,
        output_path: str,
        status: Optional[dict[str, np.ndarray]] = None,
        metadata: Optional[dict] = None,
    ) -> str:
        """
        Write every booked histogram, the status tree and the metadata sidecar.

        Returns:
            The path of the written ROOT file
        """
        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        with uproot.recreate(output_path) as root_file:
            for histogram in registry:
                root_file[histogram.name] = to_root_histogram(histogram)
            if status is not None:
                _write_status_tree(root_file, status)

        self.logger.info(f"Wrote {len(registry)} histograms to {output_path}")
        if metadata is not None:
            self.write_metadata(output_path, metadata)
        return output_path

    def write_metadata(self, output_path: str, metadata: dict) -> str:
        path = metadata_path(output_path)
        with open(path, "w") as f:
            json.dump(metadata, f, indent=2, default=str)
        self.logger.debug(f"Wrote metadata to {path}")
        return path


def _write_status_tree(root_file, status: dict[str, np.ndarray]):
    # mktree pins the TTree layout; plain assignment may produce an RNTuple
    tree = root_file.mktree(STATUS_TREE, STATUS_BRANCHES)
    if len(status["fIndexMcCollisions"]):
        tree.extend({
            column: np.asarray(status[column], dtype=dtype)
            for column, dtype in STATUS_BRANCHES.items()
        })


def _root_axis(axis: Axis, name: str):
    labels = None
    if axis.labels:
        labels = to_THashList([to_TObjString(label) for label in axis.labels])
    return to_TAxis(
        fName=name,
        fTitle=axis.title,
        fNbins=axis.nbins,
        fXmin=axis.low,
        fXmax=axis.high,
        fLabels=labels,
    )


def to_root_histogram(histogram: Histogram):
    """
    TH1D or TH2D carrying flow bins, sums of squared weights and entries.

    Statistics sums cover the in-range bins, as ROOT computes them.
    """
    values = histogram.values(flow=True)
    variances = histogram.variances(flow=True)
    inner = tuple(slice(1, -1) for _ in histogram.axes)
    weights = values[inner]
    tsumw = float(weights.sum())
    tsumw2 = float(variances[inner].sum())
    axes = [_root_axis(axis, name) for axis, name in zip(histogram.axes, ("xaxis", "yaxis"))]

    if histogram.ndim == 1:
        x = histogram.axes[0].centers
        return to_TH1x(
            fName=histogram.name,
            fTitle=histogram.title,
            data=values,
            fEntries=float(histogram.entries),
            fTsumw=tsumw,
            fTsumw2=tsumw2,
            fTsumwx=float((weights * x).sum()),
            fTsumwx2=float((weights * x ** 2).sum()),
            fSumw2=variances,
            fXaxis=axes[0],
        )

    if histogram.ndim == 2:
        x = histogram.axes[0].centers[:, np.newaxis]
        y = histogram.axes[1].centers[np.newaxis, :]
        # ROOT global bin = ix + (nx + 2) * iy
        return to_TH2x(
            fName=histogram.name,
            fTitle=histogram.title,
            data=np.ravel(values, order="F"),
            fEntries=float(histogram.entries),
            fTsumw=tsumw,
            fTsumw2=tsumw2,
            fTsumwx=float((weights * x).sum()),
            fTsumwx2=float((weights * x ** 2).sum()),
            fTsumwy=float((weights * y).sum()),
            fTsumwy2=float((weights * y ** 2).sum()),
            fTsumwxy=float((weights * x * y).sum()),
            fSumw2=np.ravel(variances, order="F"),
            fXaxis=axes[0],
            fYaxis=axes[1],
        )

    raise ValueError(f"Histogram '{histogram.name}' has {histogram.ndim} axes, cannot write it")


def _axis_from_file(root_axis) -> Axis:
    labels = root_axis.labels()
    return Axis(
        int(root_axis.member("fNbins")),
        float(root_axis.member("fXmin")),
        float(root_axis.member("fXmax")),
        str(root_axis.member("fTitle")),
        labels=tuple(str(label) for label in labels) if labels else (),
    )


def histogram_from_file(name: str, root_histogram) -> Histogram:
    """Rebuild a Histogram, flow bins and entries included, from a TH1D/TH2D read by uproot."""
    axes = tuple(_axis_from_file(root_axis) for root_axis in root_histogram.axes)
    histogram = Histogram(name, axes, str(root_histogram.member("fTitle")))
    histogram.set_contents(
        root_histogram.values(flow=True),
        root_histogram.variances(flow=True),
        root_histogram.member("fEntries"),
    )
    return histogram


def read_output_file(path: str) -> tuple[HistogramRegistry, dict[str, np.ndarray]]:
    """
    Load the histograms and status columns of a file written by HistogramWriter.

    Raises:
        StrangenessQAError: If the file holds an object the writer does not produce
    """
    registry = HistogramRegistry()
    status = {}
    with uproot.open(path) as root_file:
        for name, classname in root_file.classnames(cycle=False).items():
            if name == STATUS_TREE and classname == "TTree":
                status = root_file[name].arrays(list(STATUS_COLUMNS), library="np")
            elif classname in HISTOGRAM_CLASSES:
                registry.add(histogram_from_file(name, root_file[name]))
            else:
                raise StrangenessQAError(f"{path}: unexpected {classname} object '{name}'")
    return registry, status


def merge_output_files(input_paths: list[str], output_path: str) -> str:
    """
    Sum histograms across files and concatenate their status trees.

    Histograms with the same name must share binning.

    Returns:
        The path of the merged ROOT file
    """
    logger = logging.getLogger(__name__)
    merged = HistogramRegistry()
    status = defaultdict(list)

    for path in input_paths:
        registry, columns = read_output_file(path)
        try:
            merged.merge(registry)
        except ValueError as e:
            raise ValueError(f"{path} has incompatible binning: {e}") from e
        for column in STATUS_COLUMNS:
            if column in columns:
                status[column].append(columns[column])

    HistogramWriter().write(
        merged,
        output_path,
        status={column: np.concatenate(parts) for column, parts in status.items()} if status else None,
    )
    logger.info(f"Merged {len(input_paths)} files into {output_path}")
    return output_path
