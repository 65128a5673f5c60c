"""
Statistics-related domain models.

Immutable summaries of what each processing batch did with its events and
candidates, and their aggregation over a run.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable


class CandidateOutcome(Enum):
    """Where a candidate left the evaluation chain."""

    NO_TRUTH = "no_truth"
    OUTSIDE_RAPIDITY = "outside_rapidity"
    NO_LINKED_V0 = "no_linked_v0"
    FAILED_TRACK_QUALITY = "failed_track_quality"
    OUTSIDE_SIGNAL_REGION = "outside_signal_region"
    IN_SIGNAL_REGION = "in_signal_region"
    NOT_EVALUATED = "not_evaluated"

    @property
    def reached_qa(self) -> bool:
        """True if the candidate got as far as the QA fill."""
        return self in (CandidateOutcome.OUTSIDE_SIGNAL_REGION, CandidateOutcome.IN_SIGNAL_REGION)


def _outcome_counts(counts: dict) -> tuple[tuple[str, int], ...]:
    return tuple(sorted((outcome.value, n) for outcome, n in counts.items() if n))


@dataclass(frozen=True)
class BatchStatistics:
    """Counts for one processed batch."""

    batch_index: int
    mc_collisions: int
    reconstructible_mc_collisions: int
    collisions: int
    selected_collisions: int
    generated_particles: int
    processing_time_sec: float
    v0_outcomes: tuple[tuple[str, int], ...] = field(default_factory=tuple)
    cascade_outcomes: tuple[tuple[str, int], ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Validate batch statistics."""
        if self.batch_index < 0:
            raise ValueError(f"batch_index must be non-negative, got {self.batch_index}")
        if self.reconstructible_mc_collisions > self.mc_collisions:
            raise ValueError(
                f"reconstructible_mc_collisions ({self.reconstructible_mc_collisions}) "
                f"cannot exceed mc_collisions ({self.mc_collisions})"
            )
        if self.selected_collisions > self.collisions:
            raise ValueError(
                f"selected_collisions ({self.selected_collisions}) "
                f"cannot exceed collisions ({self.collisions})"
            )
        if self.processing_time_sec < 0:
            raise ValueError(f"processing_time_sec must be non-negative, got {self.processing_time_sec}")

    @classmethod
    def from_counters(
        cls,
        batch_index: int,
        mc_collisions: int,
        reconstructible_mc_collisions: int,
        collisions: int,
        selected_collisions: int,
        generated_particles: int,
        processing_time_sec: float,
        v0_outcomes: dict,
        cascade_outcomes: dict,
    ) -> 'BatchStatistics':
        """Build from {CandidateOutcome: count} mappings."""
        return cls(
            batch_index=batch_index,
            mc_collisions=mc_collisions,
            reconstructible_mc_collisions=reconstructible_mc_collisions,
            collisions=collisions,
            selected_collisions=selected_collisions,
            generated_particles=generated_particles,
            processing_time_sec=processing_time_sec,
            v0_outcomes=_outcome_counts(v0_outcomes),
            cascade_outcomes=_outcome_counts(cascade_outcomes),
        )

    def to_dict(self) -> dict:
        return {
            "batch_index": self.batch_index,
            "mc_collisions": self.mc_collisions,
            "reconstructible_mc_collisions": self.reconstructible_mc_collisions,
            "collisions": self.collisions,
            "selected_collisions": self.selected_collisions,
            "generated_particles": self.generated_particles,
            "processing_time_sec": round(self.processing_time_sec, 3),
            "v0_outcomes": dict(self.v0_outcomes),
            "cascade_outcomes": dict(self.cascade_outcomes),
        }


@dataclass(frozen=True)
class RunStatistics:
    """
    Aggregated statistics over all batches of a run.

    Immutable snapshot built once processing has finished.
    """

    total_batches: int
    failed_sources: tuple[tuple[str, str], ...]
    mc_collisions: int
    reconstructible_mc_collisions: int
    collisions: int
    selected_collisions: int
    generated_particles: int
    v0_outcomes: tuple[tuple[str, int], ...]
    cascade_outcomes: tuple[tuple[str, int], ...]
    total_time_sec: float
    start_time: datetime
    end_time: datetime

    def __post_init__(self):
        if self.end_time < self.start_time:
            raise ValueError("end_time must be after start_time")

    @classmethod
    def from_batches(
        cls,
        batches: Iterable[BatchStatistics],
        start_time: datetime,
        end_time: datetime,
        failed_sources: Iterable[tuple[str, str]] = (),
    ) -> 'RunStatistics':
        batches = list(batches)
        return cls(
            total_batches=len(batches),
            failed_sources=tuple(failed_sources),
            mc_collisions=sum(b.mc_collisions for b in batches),
            reconstructible_mc_collisions=sum(b.reconstructible_mc_collisions for b in batches),
            collisions=sum(b.collisions for b in batches),
            selected_collisions=sum(b.selected_collisions for b in batches),
            generated_particles=sum(b.generated_particles for b in batches),
            v0_outcomes=_sum_outcomes(b.v0_outcomes for b in batches),
            cascade_outcomes=_sum_outcomes(b.cascade_outcomes for b in batches),
            total_time_sec=(end_time - start_time).total_seconds(),
            start_time=start_time,
            end_time=end_time,
        )

    @property
    def reconstructible_fraction(self) -> float:
        """Fraction of simulated collisions with a reconstructed collision."""
        if self.mc_collisions == 0:
            return 0.0
        return self.reconstructible_mc_collisions / self.mc_collisions

    @property
    def selection_rate(self) -> float:
        """Percentage of reconstructed collisions passing the event selection."""
        if self.collisions == 0:
            return 0.0
        return (self.selected_collisions / self.collisions) * 100

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_batches": self.total_batches,
            "failed_sources": {source: error for source, error in self.failed_sources},
            "mc_collisions": self.mc_collisions,
            "reconstructible_mc_collisions": self.reconstructible_mc_collisions,
            "reconstructible_fraction": f"{self.reconstructible_fraction:.3f}",
            "collisions": self.collisions,
            "selected_collisions": self.selected_collisions,
            "selection_rate": f"{self.selection_rate:.1f}%",
            "generated_particles": self.generated_particles,
            "v0_outcomes": dict(self.v0_outcomes),
            "cascade_outcomes": dict(self.cascade_outcomes),
            "total_time_sec": f"{self.total_time_sec:.1f}",
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
        }


def _sum_outcomes(outcome_tuples) -> tuple[tuple[str, int], ...]:
    totals: dict[str, int] = {}
    for outcomes in outcome_tuples:
        for name, count in outcomes:
            totals[name] = totals.get(name, 0) + count
    return tuple(sorted(totals.items()))
