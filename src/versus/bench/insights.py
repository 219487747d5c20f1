"""Cross-scenario analysis of comparison outcomes.

Consumes the winners recorded for every (scenario, operation) pair and
produces win/loss/tie totals, an overall champion, per-category and
per-group win rates, a storage win rate, and threshold-triggered
recommendation lines.  All rates are floored integer percentages taken
from the candidate's point of view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from versus.bench.config import Category, InsightConfig, Operation, Scenario
from versus.bench.results import Winner, WinnersStore


@dataclass
class WinTally:
    """Win/loss/tie counts for a set of comparisons."""

    candidate_wins: int = 0
    baseline_wins: int = 0
    ties: int = 0

    @property
    def total(self) -> int:
        return self.candidate_wins + self.baseline_wins + self.ties

    def add(self, winner: Winner) -> None:
        if winner is Winner.CANDIDATE:
            self.candidate_wins += 1
        elif winner is Winner.BASELINE:
            self.baseline_wins += 1
        else:
            self.ties += 1

    @property
    def candidate_rate(self) -> int | None:
        """Candidate wins over all comparisons (ties included), or None if empty."""
        if self.total == 0:
            return None
        return self.candidate_wins * 100 // self.total


@dataclass
class CategoryInsight:
    """Win rate for one category or group of categories."""

    label: str
    categories: list[Category]
    tally: WinTally
    is_group: bool = False

    @property
    def win_rate(self) -> int | None:
        return self.tally.candidate_rate


@dataclass
class Recommendation:
    """One qualitative finding."""

    kind: str  # "strength", "caveat", "adopt", "info"
    title: str
    detail: str = ""


@dataclass
class Insights:
    """Everything the final report needs beyond the raw tables."""

    tally: WinTally
    champion: Winner | None = None  # None = close competition
    victory_rate: int | None = None
    categories: list[CategoryInsight] = field(default_factory=list)
    groups: list[CategoryInsight] = field(default_factory=list)
    storage: WinTally = field(default_factory=WinTally)
    recommendations: list[Recommendation] = field(default_factory=list)

    @property
    def storage_rate(self) -> int | None:
        return self.storage.candidate_rate


def champion_of(tally: WinTally) -> tuple[Winner | None, int | None]:
    """Overall champion and its victory rate.

    The victory rate is wins / (wins + losses) * 100; ties are excluded
    from the denominator.  Returns (None, None) on equal win counts.
    """
    decided = tally.candidate_wins + tally.baseline_wins
    if tally.candidate_wins > tally.baseline_wins:
        return Winner.CANDIDATE, tally.candidate_wins * 100 // decided
    if tally.baseline_wins > tally.candidate_wins:
        return Winner.BASELINE, tally.baseline_wins * 100 // decided
    return None, None


def _tally_for(
    scenarios: Sequence[Scenario],
    winners: WinnersStore,
    operations: Sequence[Operation],
) -> WinTally:
    tally = WinTally()
    for scenario in scenarios:
        for op in operations:
            result = winners.get(scenario.key, op)
            if result is not None:
                tally.add(result.winner)
    return tally


def synthesize(
    scenarios: Sequence[Scenario],
    winners: WinnersStore,
    *,
    operations: Sequence[Operation] = (Operation.ADD, Operation.COMMIT),
    config: InsightConfig | None = None,
    candidate_name: str = "candidate",
    baseline_name: str = "baseline",
) -> Insights:
    """Analyse all recorded winners.

    Args:
        scenarios: The scenarios of the run, in order.
        winners: Comparison outcomes keyed by (scenario key, operation).
        operations: Timed operations that count towards win rates.
            Storage is tallied separately.
        config: Thresholds and category groups.
        candidate_name: Display name used in recommendation text.
        baseline_name: Display name used in recommendation text.
    """
    cfg = config or InsightConfig()

    tally = _tally_for(scenarios, winners, operations)
    champion, victory_rate = champion_of(tally)

    categories: list[CategoryInsight] = []
    for category in Category:
        members = [s for s in scenarios if s.category is category]
        cat_tally = _tally_for(members, winners, operations)
        if cat_tally.total:
            categories.append(CategoryInsight(category.label, [category], cat_tally))

    groups: list[CategoryInsight] = []
    for label, group_categories in cfg.category_groups.items():
        members = [s for s in scenarios if s.category in group_categories]
        group_tally = _tally_for(members, winners, operations)
        if group_tally.total:
            groups.append(
                CategoryInsight(label, list(group_categories), group_tally, is_group=True)
            )

    storage = _tally_for(scenarios, winners, [Operation.STORAGE])

    insights = Insights(
        tally=tally,
        champion=champion,
        victory_rate=victory_rate,
        categories=categories,
        groups=groups,
        storage=storage,
    )
    insights.recommendations = recommend(
        insights,
        cfg,
        candidate_name=candidate_name,
        baseline_name=baseline_name,
    )
    return insights


_SHORT_OPERATION_CATEGORIES = frozenset({Category.SMALL, Category.MEDIUM})


def _caveat_detail(
    entry: CategoryInsight, rate: int, candidate_name: str, subject: str
) -> str:
    detail = f"{candidate_name} wins only {rate}% of {subject} operations"
    if set(entry.categories) <= _SHORT_OPERATION_CATEGORIES:
        return detail + "; startup overhead dominates short operations."
    return detail + "; per-file throughput lags on bulk data."


def recommend(
    insights: Insights,
    config: InsightConfig,
    *,
    candidate_name: str,
    baseline_name: str,
) -> list[Recommendation]:
    """Derive recommendation lines from win rates and thresholds."""
    recs: list[Recommendation] = []

    for entry in insights.categories + insights.groups:
        rate = entry.win_rate
        if rate is None:
            continue
        subject = entry.label.lower()
        if rate > config.strength_threshold:
            recs.append(
                Recommendation(
                    kind="strength",
                    title=f"{candidate_name} excels at {subject}",
                    detail=(
                        f"Wins {rate}% of {subject} operations; "
                        f"consider {candidate_name} for this workload."
                    ),
                )
            )
        elif rate < config.caveat_threshold:
            recs.append(
                Recommendation(
                    kind="caveat",
                    title=f"{baseline_name} has advantages with {subject}",
                    detail=_caveat_detail(entry, rate, candidate_name, subject),
                )
            )

    if insights.champion is Winner.CANDIDATE:
        recs.append(
            Recommendation(
                kind="adopt",
                title=f"Consider {candidate_name} for new projects, especially with large files",
            )
        )
        recs.append(
            Recommendation(
                kind="adopt",
                title=f"{candidate_name} shows superior performance in its target scenarios",
            )
        )

    recs.append(
        Recommendation(
            kind="info",
            title="Both tools have their strengths; choose based on your workflow",
        )
    )
    recs.append(
        Recommendation(kind="info", title="This benchmark reflects current optimization levels")
    )
    return recs
