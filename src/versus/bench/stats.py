"""Reduction of raw trials into aggregated statistics.

Means are truncated to whole units, consistently for durations and
memory.  No outliers are discarded: every trial, including those whose
command failed, contributes to the aggregate.
"""

from __future__ import annotations

from typing import Sequence

from versus.bench.results import AggregatedResult, Trial


def mean_floor(values: Sequence[int]) -> int:
    """Arithmetic mean truncated toward zero (values are non-negative)."""
    if not values:
        raise ValueError("mean of an empty sequence")
    return sum(values) // len(values)


def aggregate(trials: Sequence[Trial]) -> AggregatedResult:
    """Reduce a non-empty list of trials.

    - ``avg_duration_ms``: mean of the durations.
    - ``best_duration_ms``: minimum duration.
    - ``avg_memory_mb``: mean of the per-trial average memory.
    - ``peak_memory_mb``: maximum of the per-trial peaks.

    Raises:
        ValueError: If *trials* is empty.
    """
    if not trials:
        raise ValueError("Cannot aggregate an empty list of trials")

    durations = [t.duration_ms for t in trials]
    avg_memory = [min(t.avg_memory_mb, t.peak_memory_mb) for t in trials]

    return AggregatedResult(
        avg_duration_ms=mean_floor(durations),
        best_duration_ms=min(durations),
        avg_memory_mb=mean_floor(avg_memory),
        peak_memory_mb=max(t.peak_memory_mb for t in trials),
        trial_count=len(trials),
        failed_trials=sum(1 for t in trials if not t.ok),
    )
