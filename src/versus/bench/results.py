"""Benchmark result data structures.

Hierarchy::

    Trial                      one timed, sampled command execution
      → AggregatedResult       mean/best/peak over a scenario's trials
    ResultsStore               (scenario, side, operation) → AggregatedResult
                               (scenario, side) → RepositorySizeMeasurement
    ComparisonResult           winner + improvement for one comparison
    WinnersStore               (scenario, operation) → ComparisonResult

Both stores are write-once per key and live for one harness run.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator

from versus.bench.config import Operation


class Side(enum.Enum):
    """Which of the two measured tools a result belongs to."""

    CANDIDATE = "candidate"
    BASELINE = "baseline"


class Winner(enum.Enum):
    """Outcome of a comparison."""

    CANDIDATE = "CANDIDATE"
    BASELINE = "BASELINE"
    TIE = "TIE"

    @property
    def inverse(self) -> Winner:
        """The winner had the operands been swapped."""
        if self is Winner.CANDIDATE:
            return Winner.BASELINE
        if self is Winner.BASELINE:
            return Winner.CANDIDATE
        return Winner.TIE


# ---------------------------------------------------------------------------
# Trial and aggregate
# ---------------------------------------------------------------------------


@dataclass
class Trial:
    """One timed, sampled execution of one command."""

    duration_ms: int
    peak_memory_mb: int
    avg_memory_mb: int = 0
    exit_code: int = 0
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        """False if the command failed; its timing is still kept."""
        return self.exit_code == 0 and not self.timed_out


@dataclass
class AggregatedResult:
    """Reduction of one (scenario, tool, operation) triple's trials."""

    avg_duration_ms: int
    best_duration_ms: int
    avg_memory_mb: int
    peak_memory_mb: int
    trial_count: int = 1
    failed_trials: int = 0

    @property
    def has_failures(self) -> bool:
        return self.failed_trials > 0


@dataclass
class RepositorySizeMeasurement:
    """On-disk footprint of one tool's repository metadata."""

    tool: str
    size_kb: int


@dataclass
class ComparisonResult:
    """Winner of one (scenario, operation) comparison.

    ``improvement_pct`` is relative to the losing side's value;
    ``difference`` is the absolute gap in the metric's own unit
    (milliseconds, or kilobytes for storage).
    """

    winner: Winner
    improvement_pct: int = 0
    difference: int = 0


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class ResultsStore:
    """Aggregated results and repository sizes for one harness run."""

    def __init__(self) -> None:
        self._results: dict[tuple[str, Side, Operation], AggregatedResult] = {}
        self._sizes: dict[tuple[str, Side], RepositorySizeMeasurement] = {}

    def record(
        self,
        scenario_key: str,
        side: Side,
        operation: Operation,
        result: AggregatedResult,
    ) -> None:
        """Store a result.  Each triple can be written only once."""
        key = (scenario_key, side, operation)
        if key in self._results:
            raise ValueError(
                f"Result for {scenario_key}/{side.value}/{operation.value} already recorded"
            )
        self._results[key] = result

    def get(
        self,
        scenario_key: str,
        side: Side,
        operation: Operation,
    ) -> AggregatedResult | None:
        return self._results.get((scenario_key, side, operation))

    def record_size(
        self,
        scenario_key: str,
        side: Side,
        measurement: RepositorySizeMeasurement,
    ) -> None:
        key = (scenario_key, side)
        if key in self._sizes:
            raise ValueError(f"Size for {scenario_key}/{side.value} already recorded")
        self._sizes[key] = measurement

    def size(self, scenario_key: str, side: Side) -> RepositorySizeMeasurement | None:
        return self._sizes.get((scenario_key, side))

    def __len__(self) -> int:
        return len(self._results)

    def __contains__(self, key: object) -> bool:
        return key in self._results


class WinnersStore:
    """Comparison outcomes for one harness run."""

    def __init__(self) -> None:
        self._winners: dict[tuple[str, Operation], ComparisonResult] = {}

    def record(self, scenario_key: str, operation: Operation, result: ComparisonResult) -> None:
        """Store a comparison.  Each pair can be written only once."""
        key = (scenario_key, operation)
        if key in self._winners:
            raise ValueError(f"Winner for {scenario_key}/{operation.value} already recorded")
        self._winners[key] = result

    def get(self, scenario_key: str, operation: Operation) -> ComparisonResult | None:
        return self._winners.get((scenario_key, operation))

    def items(self) -> Iterator[tuple[tuple[str, Operation], ComparisonResult]]:
        return iter(self._winners.items())

    def __len__(self) -> int:
        return len(self._winners)

    def __contains__(self, key: object) -> bool:
        return key in self._winners
