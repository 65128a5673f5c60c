"""
TableReader service - Single responsibility: read input tables from ROOT files.

Reads every table of a processing batch with uproot into awkward arrays,
applies the source-side pre-filters and builds validated BatchTables.
No orchestration logic, no state management.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

import awkward as ak
import numpy as np
import uproot

from domain.config import PipelineConfig
from domain.entities import (
    SimulatedCollision,
    ReconstructedCollision,
    Track,
    V0Candidate,
    CascadeCandidate,
    V0Link,
    MCParticle,
)
from domain.tables import BatchTables
from services.calculations.consts import NO_INDEX
from services.calculations.physics_calcs import add_truth_kinematics
from . import schemas
from .prefilters import cascade_prefilter_mask, v0_prefilter_mask

DATAFRAME_PREFIX = "DF_"

ErrorCallback = Callable[[str, Exception], None]


@dataclass(frozen=True)
class BatchRef:
    """Location of one processing batch: a file and, optionally, a ``DF_*`` directory in it."""

    path: str
    directory: Optional[str]
    batch_index: int

    @property
    def source(self) -> str:
        return f"{self.path}:{self.directory}" if self.directory else self.path


class TableReader:
    """
    Reads BatchTables from ROOT files.

    Each ``DF_*`` directory of a file is one processing batch; a file
    without such directories is a single batch read from its top level.
    Listing batches only opens the files; tables are read one batch at a
    time when the batches are iterated.
    """

    def __init__(self, config: PipelineConfig):
        self.schema = schemas.get_schema(config.input_config.schema)
        self.v0_selection = config.v0_selection
        self.cascade_selection = config.cascade_selection
        self.logger = logging.getLogger(self.__class__.__name__)

    def list_batches(
        self,
        paths: Iterable[str],
        on_error: Optional[ErrorCallback] = None,
    ) -> list[BatchRef]:
        """
        Locate the batches of all files, numbering them consecutively.

        Files that cannot be opened are logged and reported through
        ``on_error``; listing continues with the next file.
        """
        refs = []
        for path in paths:
            try:
                refs.extend(self._list_file(path, first_batch_index=len(refs)))
            except (OSError, ValueError) as e:
                self.logger.warning(f"Failed to open {path}: {e}")
                if on_error:
                    on_error(path, e)
        return refs

    def iter_batches(
        self,
        refs: Iterable[BatchRef],
        on_error: Optional[ErrorCallback] = None,
    ) -> Iterator[BatchTables]:
        """
        Read batches lazily.

        A batch whose tables cannot be read is logged, reported through
        ``on_error`` and skipped. Broken references still raise
        TableIntegrityError.
        """
        for ref in refs:
            try:
                tables = self.read_batch(ref)
            except (OSError, KeyError, ValueError) as e:
                self.logger.warning(f"Failed to read {ref.source}: {e}")
                if on_error:
                    on_error(ref.source, e)
                continue
            yield tables

    def read_files(
        self,
        paths: Iterable[str],
        on_error: Optional[ErrorCallback] = None,
    ) -> Iterator[BatchTables]:
        """Read all batches of all files; unreadable files and batches are skipped."""
        yield from self.iter_batches(self.list_batches(paths, on_error), on_error)

    def read_file(self, path: str, first_batch_index: int = 0) -> Iterator[BatchTables]:
        for ref in self._list_file(path, first_batch_index):
            yield self.read_batch(ref)

    def read_batch(self, ref: BatchRef) -> BatchTables:
        with uproot.open(ref.path) as root_file:
            directory = root_file[ref.directory] if ref.directory else root_file
            return self._read_directory(directory, ref.batch_index, ref.source)

    def _list_file(self, path: str, first_batch_index: int) -> list[BatchRef]:
        with uproot.open(path) as root_file:
            directories = sorted(
                key for key in root_file.keys(recursive=False, cycle=False)
                if key.startswith(DATAFRAME_PREFIX)
            )
        if not directories:
            return [BatchRef(path, None, first_batch_index)]
        return [
            BatchRef(path, directory, first_batch_index + offset)
            for offset, directory in enumerate(directories)
        ]

    def _read_directory(self, directory, batch_index: int, source: str) -> BatchTables:
        arrays = {}
        for table, layout in self.schema.items():
            columns = layout["columns"]
            raw = directory[layout["tree"]].arrays(list(columns.values()), library="ak")
            arrays[table] = ak.zip(
                {name: raw[column] for name, column in columns.items()}, depth_limit=1
            )

        tables = self.build_tables(arrays, batch_index, source)
        self.logger.debug(
            f"{source}: {tables.event_count} collisions, {len(tables.v0s)} V0s, "
            f"{len(tables.cascades)} cascades"
        )
        return tables

    def build_tables(
        self,
        arrays: dict[str, ak.Array],
        batch_index: int,
        source: Optional[str] = None,
    ) -> BatchTables:
        """
        Build validated BatchTables from per-table awkward arrays.

        Args:
            arrays: Logical table name -> record array with entity field names
            batch_index: Index of the batch within the run
            source: Description of where the arrays came from

        Raises:
            TableIntegrityError: If a reference does not resolve
        """
        particles = arrays["mc_particles"]
        if "pt" not in particles.fields or "y" not in particles.fields:
            particles = add_truth_kinematics(particles)

        v0s = arrays["v0s"]
        v0_ids = np.arange(len(v0s))
        v0_mask = ak.to_numpy(v0_prefilter_mask(v0s, self.v0_selection))
        linked_ids = ak.to_numpy(arrays["v0_links"].v0_id)
        linked_ids = linked_ids[(linked_ids > NO_INDEX) & (linked_ids < len(v0s))]
        link_target_mask = np.isin(v0_ids, linked_ids) & ~v0_mask

        cascades = arrays["cascades"]
        cascade_ids = np.arange(len(cascades))
        cascade_mask = ak.to_numpy(
            cascade_prefilter_mask(cascades, self.v0_selection, self.cascade_selection)
        )

        tables = BatchTables(
            batch_index=batch_index,
            mc_collisions=tuple(
                SimulatedCollision(id=i, **row)
                for i, row in enumerate(_rows(arrays["mc_collisions"], "mc_collisions"))
            ),
            collisions=tuple(
                ReconstructedCollision(id=i, **row)
                for i, row in enumerate(_rows(arrays["collisions"], "collisions"))
            ),
            tracks=tuple(
                Track(id=i, **row)
                for i, row in enumerate(_rows(arrays["tracks"], "tracks"))
            ),
            v0s=tuple(
                V0Candidate(id=int(i), **row)
                for i, row in zip(v0_ids[v0_mask], _rows(v0s[v0_mask], "v0s"))
            ),
            link_target_v0s=tuple(
                V0Candidate(id=int(i), **row)
                for i, row in zip(
                    v0_ids[link_target_mask], _rows(v0s[link_target_mask], "v0s")
                )
            ),
            cascades=tuple(
                CascadeCandidate(id=int(i), **row)
                for i, row in zip(cascade_ids[cascade_mask], _rows(cascades[cascade_mask], "cascades"))
            ),
            v0_links=tuple(
                V0Link(id=i, **row)
                for i, row in enumerate(_rows(arrays["v0_links"], "v0_links"))
            ),
            mc_particles=tuple(
                MCParticle(
                    id=i,
                    mc_collision_id=int(row["mc_collision_id"]),
                    pdg_code=int(row["pdg_code"]),
                    pt=float(row["pt"]),
                    y=float(row["y"]),
                )
                for i, row in enumerate(ak.to_list(particles))
            ),
            source=source,
        )
        return tables.validate()


def _rows(array: ak.Array, table: str) -> list[dict]:
    """Records as dicts with absent references mapped to None."""
    optional = schemas.OPTIONAL_REFERENCES.get(table, [])
    rows = ak.to_list(array)
    for row in rows:
        for name in optional:
            if row[name] is None or row[name] <= NO_INDEX:
                row[name] = None
    return rows
