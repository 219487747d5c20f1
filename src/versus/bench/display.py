"""Terminal formatting for harness results.

Produces the environment preamble, per-scenario result tables, the
executive summary, the category breakdown and the recommendation list.
Winners are coloured with :func:`click.style`; the report writer strips
the styling before mirroring to the log.
"""

from __future__ import annotations

from typing import Sequence

import click

from versus.bench.config import HarnessConfig, Operation, Scenario
from versus.bench.insights import CategoryInsight, Insights
from versus.bench.results import (
    AggregatedResult,
    ComparisonResult,
    ResultsStore,
    Side,
    Winner,
    WinnersStore,
)
from versus.bench.system import SystemProfile, ToolProfile, format_system_profile
from versus.formatting import (
    format_banner,
    format_ms,
    format_section_header,
    format_size,
    format_table,
)

_FAILED_MARK = "*"


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------


def winner_label(winner: Winner, candidate_name: str, baseline_name: str) -> str:
    if winner is Winner.CANDIDATE:
        return candidate_name.upper()
    if winner is Winner.BASELINE:
        return baseline_name.upper()
    return "TIE"


def _styled_winner(text: str, winner: Winner) -> str:
    if winner is Winner.CANDIDATE:
        return click.style(text, fg="green")
    if winner is Winner.BASELINE:
        return click.style(text, fg="red")
    return click.style(text, fg="yellow")


def _format_rate(rate: int | None) -> str:
    return "N/A" if rate is None else f"{rate}%"


def _duration_cell(result: AggregatedResult | None) -> str:
    if result is None:
        return "N/A"
    cell = f"{result.avg_duration_ms}"
    if result.has_failures:
        cell += _FAILED_MARK
    return cell


def _memory_cell(baseline: AggregatedResult | None, candidate: AggregatedResult | None) -> str:
    base = "-" if baseline is None else str(baseline.avg_memory_mb)
    cand = "-" if candidate is None else str(candidate.avg_memory_mb)
    return f"{base}/{cand}MB"


def _pad_styled(text: str, width: int, winner: Winner) -> str:
    # Pad before styling so escape codes don't break alignment.
    return _styled_winner(text.ljust(width), winner)


# ---------------------------------------------------------------------------
# Preamble
# ---------------------------------------------------------------------------


def format_preamble(
    config: HarnessConfig,
    system: SystemProfile,
    candidate: ToolProfile,
    baseline: ToolProfile,
) -> str:
    """Title, test date, tool versions, trial counts and host profile."""
    title = f"{candidate.name.upper()} vs {baseline.name.upper()}: Performance Benchmark Suite"
    lines = [format_banner(title), ""]
    lines.append(f"Testing date: {system.timestamp}")
    lines.append("")
    lines.append(format_section_header("Environment Check"))
    lines.append(f"Candidate: {candidate.name} {candidate.version} ({candidate.path})")
    lines.append(f"Baseline:  {baseline.name} {baseline.version} ({baseline.path})")
    runs = ", ".join(f"{op.operation.value}={op.runs}" for op in config.operations)
    lines.append(f"Runs per operation: {runs}")
    lines.append(f"Command timeout: {config.timeout}s")
    lines.append(f"Scenarios: {len(config.scenarios)}")
    lines.append("")
    lines.append(format_system_profile(system))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Per-scenario output
# ---------------------------------------------------------------------------


def format_scenario_header(index: int, total: int, scenario: Scenario) -> str:
    return format_section_header(
        f"[{index}/{total}] {scenario.description} ({scenario.label}, "
        f"{format_size(scenario.total_bytes)} total)"
    )


def format_scenario_table(
    scenario: Scenario,
    results: ResultsStore,
    winners: WinnersStore,
    *,
    operations: Sequence[Operation],
    candidate_name: str,
    baseline_name: str,
) -> str:
    """Per-operation table for one scenario, followed by a storage row.

    Columns: operation, baseline metric, candidate metric, winner,
    improvement, average memory (baseline/candidate).
    """
    headers = [
        "Operation",
        f"{baseline_name} (ms)",
        f"{candidate_name} (ms)",
        "Winner",
        "Improvement",
        "Memory",
    ]
    rows: list[list[str]] = []
    row_winners: list[Winner] = []
    any_failed = False

    for op in operations:
        base = results.get(scenario.key, Side.BASELINE, op)
        cand = results.get(scenario.key, Side.CANDIDATE, op)
        comparison = winners.get(scenario.key, op)
        any_failed = any_failed or bool(
            (base and base.has_failures) or (cand and cand.has_failures)
        )
        winner = comparison.winner if comparison else Winner.TIE
        rows.append(
            [
                op.value,
                _duration_cell(base),
                _duration_cell(cand),
                winner_label(winner, candidate_name, baseline_name) if comparison else "N/A",
                f"{comparison.improvement_pct}%" if comparison else "-",
                _memory_cell(base, cand),
            ]
        )
        row_winners.append(winner)

    storage = winners.get(scenario.key, Operation.STORAGE)
    base_size = results.size(scenario.key, Side.BASELINE)
    cand_size = results.size(scenario.key, Side.CANDIDATE)
    if storage is not None and base_size is not None and cand_size is not None:
        rows.append(
            [
                Operation.STORAGE.value,
                f"{base_size.size_kb}KB",
                f"{cand_size.size_kb}KB",
                winner_label(storage.winner, candidate_name, baseline_name),
                f"{storage.difference}KB",
                "-",
            ]
        )
        row_winners.append(storage.winner)

    table = format_table(headers, rows, alignments=["l", "r", "r", "l", "r", "r"])

    # Colour the winner column after layout.
    lines = table.split("\n")
    width = max(len(headers[3]), *(len(r[3]) for r in rows)) if rows else len(headers[3])
    for i, (row, winner) in enumerate(zip(rows, row_winners)):
        line = lines[i + 2]
        plain = row[3].ljust(width)
        lines[i + 2] = line.replace(plain, _pad_styled(row[3], width, winner), 1)

    if any_failed:
        lines.append(
            f"  {_FAILED_MARK} includes trials where the command failed or timed out; "
            "their timings are kept"
        )
    return "\n".join(lines)


def format_overall_verdict(
    overall: ComparisonResult | None,
    *,
    candidate_total_ms: int,
    baseline_total_ms: int,
    candidate_name: str,
    baseline_name: str,
) -> str:
    """One-line verdict on the summed operation times of a scenario."""
    if overall is None:
        return "  No common operations to compare."
    if overall.winner is Winner.CANDIDATE:
        text = (
            f"  {candidate_name.upper()} WINS OVERALL: {overall.improvement_pct}% faster "
            f"({candidate_total_ms}ms vs {baseline_total_ms}ms)"
        )
    elif overall.winner is Winner.BASELINE:
        text = (
            f"  {baseline_name} wins overall: {overall.improvement_pct}% faster "
            f"({baseline_total_ms}ms vs {candidate_total_ms}ms)"
        )
    else:
        text = f"  Overall tie ({candidate_total_ms}ms each)"
    return _styled_winner(text, overall.winner)


def format_scenario_skipped(scenario: Scenario, reason: str) -> str:
    return click.style(f"  ⚠ Scenario {scenario.label} skipped: {reason}", fg="yellow")


# ---------------------------------------------------------------------------
# Final report
# ---------------------------------------------------------------------------


def format_executive_summary(
    insights: Insights,
    *,
    candidate_name: str,
    baseline_name: str,
) -> str:
    """Win/loss/tie totals, champion and victory rate."""
    tally = insights.tally
    lines = [format_section_header("EXECUTIVE SUMMARY")]
    lines.append(f"Total Operations Tested: {tally.total}")
    lines.append(click.style(f"{candidate_name} victories: {tally.candidate_wins}", fg="green"))
    lines.append(click.style(f"{baseline_name} victories: {tally.baseline_wins}", fg="red"))
    lines.append(click.style(f"Ties: {tally.ties}", fg="yellow"))
    lines.append("")

    if insights.champion is None:
        lines.append(click.style("RESULT: CLOSE COMPETITION", fg="yellow", bold=True))
    else:
        name = winner_label(insights.champion, candidate_name, baseline_name)
        lines.append(_styled_winner(f"OVERALL CHAMPION: {name}", insights.champion))
        lines.append(f"Victory Rate: {_format_rate(insights.victory_rate)}")
    return "\n".join(lines)


def format_scenario_breakdown(
    scenarios: Sequence[Scenario],
    results: ResultsStore,
    winners: WinnersStore,
    *,
    operation: Operation,
    candidate_name: str,
    baseline_name: str,
) -> str:
    """One row per scenario for a single operation."""
    headers = [
        "Scenario",
        f"{baseline_name} {operation.value}",
        f"{candidate_name} {operation.value}",
        f"{operation.value} Winner",
        "Improvement",
    ]
    rows: list[list[str]] = []
    for scenario in scenarios:
        base = results.get(scenario.key, Side.BASELINE, operation)
        cand = results.get(scenario.key, Side.CANDIDATE, operation)
        comparison = winners.get(scenario.key, operation)
        rows.append(
            [
                scenario.label,
                format_ms(base.avg_duration_ms) if base else "N/A",
                format_ms(cand.avg_duration_ms) if cand else "N/A",
                winner_label(comparison.winner, candidate_name, baseline_name)
                if comparison
                else "N/A",
                f"{comparison.improvement_pct}%" if comparison else "-",
            ]
        )
    return "\n".join(
        [
            format_section_header(f"PERFORMANCE BREAKDOWN ({operation.value})"),
            format_table(headers, rows, alignments=["l", "r", "r", "l", "r"]),
        ]
    )


def format_category_table(insights: Insights, *, candidate_name: str) -> str:
    """Per-category and per-group win rates."""
    headers = ["Category", "Ops", f"{candidate_name} wins", "Losses", "Ties", "Win rate"]

    def _row(entry: CategoryInsight) -> list[str]:
        t = entry.tally
        label = f"{entry.label} (group)" if entry.is_group else entry.label
        return [
            label,
            str(t.total),
            str(t.candidate_wins),
            str(t.baseline_wins),
            str(t.ties),
            _format_rate(entry.win_rate),
        ]

    rows = [_row(e) for e in insights.categories] + [_row(e) for e in insights.groups]
    lines = [
        format_section_header("CATEGORY BREAKDOWN"),
        format_table(headers, rows, alignments=["l", "r", "r", "r", "r", "r"]),
    ]
    if insights.storage.total:
        lines.append("")
        lines.append(
            f"Storage efficiency: {candidate_name} wins {_format_rate(insights.storage_rate)} "
            f"of {insights.storage.total} scenarios"
        )
    return "\n".join(lines)


_RECOMMENDATION_STYLE = {
    "strength": ("🚀", "green"),
    "caveat": ("⚠", "yellow"),
    "adopt": ("✅", "green"),
    "info": ("ℹ", "blue"),
}


def format_recommendations(insights: Insights) -> str:
    lines = [format_section_header("KEY INSIGHTS & RECOMMENDATIONS")]
    for rec in insights.recommendations:
        icon, colour = _RECOMMENDATION_STYLE.get(rec.kind, ("•", "white"))
        lines.append(click.style(f"{icon} {rec.title}", fg=colour))
        if rec.detail:
            lines.append(f"    {rec.detail}")
    return "\n".join(lines)


def format_final_report(
    scenarios: Sequence[Scenario],
    results: ResultsStore,
    winners: WinnersStore,
    insights: Insights,
    *,
    operations: Sequence[Operation],
    candidate_name: str,
    baseline_name: str,
) -> str:
    """Everything printed after the last scenario."""
    parts = [
        format_banner("COMPREHENSIVE PERFORMANCE ANALYSIS REPORT"),
        format_executive_summary(
            insights, candidate_name=candidate_name, baseline_name=baseline_name
        ),
    ]
    for op in operations:
        parts.append(
            format_scenario_breakdown(
                scenarios,
                results,
                winners,
                operation=op,
                candidate_name=candidate_name,
                baseline_name=baseline_name,
            )
        )
    parts.append(format_category_table(insights, candidate_name=candidate_name))
    parts.append(format_recommendations(insights))
    return "\n\n".join(parts)
