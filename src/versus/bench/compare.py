"""Pairwise comparison of candidate and baseline results.

Every metric compared here is lower-is-better.  The side with the
strictly smaller value wins; equal values tie.  The improvement is
always expressed relative to the losing side::

    improvement_pct = round((loser - winner) * 100 / loser)

rounded half up and kept within [1, 99] for a decisive result, so that
an improvement of exactly 0 means a tie.
"""

from __future__ import annotations


from versus.bench.config import Operation
from versus.bench.results import (
    AggregatedResult,
    ComparisonResult,
    RepositorySizeMeasurement,
    Winner,
)


def improvement_pct(winner_value: int, loser_value: int) -> int:
    """Percentage by which *winner_value* beats *loser_value*.

    Requires ``0 <= winner_value < loser_value``.
    """
    gap = loser_value - winner_value
    # Integer half-up rounding of gap * 100 / loser.
    pct = (gap * 200 + loser_value) // (2 * loser_value)
    return min(max(pct, 1), 99)


def compare_metric(candidate: int, baseline: int) -> ComparisonResult:
    """Compare two lower-is-better values.

    Args:
        candidate: The candidate tool's value.
        baseline: The baseline tool's value.

    Returns:
        ComparisonResult naming the winner, the improvement relative to
        the loser, and the absolute difference.
    """
    if candidate < 0 or baseline < 0:
        raise ValueError(f"Metrics must be non-negative (got {candidate}, {baseline})")
    if candidate == baseline:
        return ComparisonResult(winner=Winner.TIE)
    if candidate < baseline:
        return ComparisonResult(
            winner=Winner.CANDIDATE,
            improvement_pct=improvement_pct(candidate, baseline),
            difference=baseline - candidate,
        )
    return ComparisonResult(
        winner=Winner.BASELINE,
        improvement_pct=improvement_pct(baseline, candidate),
        difference=candidate - baseline,
    )


def compare_durations(
    candidate: AggregatedResult,
    baseline: AggregatedResult,
) -> ComparisonResult:
    """Compare two aggregated results on average duration."""
    return compare_metric(candidate.avg_duration_ms, baseline.avg_duration_ms)


def compare_storage(
    candidate: RepositorySizeMeasurement,
    baseline: RepositorySizeMeasurement,
) -> ComparisonResult:
    """Compare repository footprints; ``difference`` is the KB saved."""
    return compare_metric(candidate.size_kb, baseline.size_kb)


def compare_overall(
    candidate: dict[Operation, AggregatedResult],
    baseline: dict[Operation, AggregatedResult],
) -> ComparisonResult | None:
    """Compare the summed average durations of all operations both sides ran.

    Returns None if the sides have no operation in common.
    """
    common = [op for op in candidate if op in baseline]
    if not common:
        return None
    total_candidate = sum(candidate[op].avg_duration_ms for op in common)
    total_baseline = sum(baseline[op].avg_duration_ms for op in common)
    return compare_metric(total_candidate, total_baseline)
