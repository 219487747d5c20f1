"""Harness execution engine.

Orchestrates:
1. Configuration validation and prerequisite checks
2. System and tool profiling (report preamble)
3. Per scenario: fixture generation, per-tool repository setup,
   sampled trials for each tracked operation, footprint measurement
4. Per-scenario comparison and incremental report output
5. Cross-scenario insights and the final report

Scenarios run strictly one after another; within a scenario the
baseline is measured before the candidate.  Every working directory is
removed in a ``finally`` block so an interrupted run leaves nothing
behind but the partial results log.
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from versus.bench.compare import compare_durations, compare_overall, compare_storage
from versus.bench.config import (
    HarnessConfig,
    Operation,
    OperationDef,
    Scenario,
    ToolDef,
    validate_config,
)
from versus.bench.display import (
    format_final_report,
    format_overall_verdict,
    format_preamble,
    format_scenario_header,
    format_scenario_skipped,
    format_scenario_table,
)
from versus.bench.errors import (
    CleanupFailure,
    CommandExecutionFailure,
    FixtureGenerationFailure,
)
from versus.bench.fixtures import (
    build_fixture,
    copy_fixture,
    directory_size_kb,
    fixture_paths,
    remove_tree,
    write_revision_file,
)
from versus.bench.insights import Insights, synthesize
from versus.bench.report import ReportWriter
from versus.bench.results import (
    AggregatedResult,
    ComparisonResult,
    RepositorySizeMeasurement,
    ResultsStore,
    Side,
    Trial,
    WinnersStore,
)
from versus.bench.stats import aggregate
from versus.bench.system import (
    SystemProfile,
    capture_system_profile,
    capture_tool_profile,
    check_prerequisites,
)
from versus.bench.trials import TrialSpec, run_trials

log = logging.getLogger("versus")


# ---------------------------------------------------------------------------
# Progress callback
# ---------------------------------------------------------------------------


@dataclass
class HarnessProgress:
    """Progress info passed to the callback after every trial."""

    scenario: str
    tool: str
    operation: str
    trial: int  # 1-based
    total_trials: int
    scenarios_done: int
    scenarios_total: int
    duration_ms: int = 0
    status: str = ""


# Type alias for the progress callback.
ProgressCallback = Any  # Callable[[HarnessProgress], None] | None


# ---------------------------------------------------------------------------
# Run results
# ---------------------------------------------------------------------------


@dataclass
class ScenarioOutcome:
    """What happened to one scenario."""

    scenario: Scenario
    overall: ComparisonResult | None = None
    skipped: bool = False
    skip_reason: str = ""


@dataclass
class HarnessResult:
    """Everything a completed run produced."""

    results: ResultsStore
    winners: WinnersStore
    system: SystemProfile
    outcomes: list[ScenarioOutcome] = field(default_factory=list)
    insights: Insights | None = None

    @property
    def completed(self) -> list[ScenarioOutcome]:
        return [o for o in self.outcomes if not o.skipped]

    @property
    def skipped(self) -> list[ScenarioOutcome]:
        return [o for o in self.outcomes if o.skipped]


# ---------------------------------------------------------------------------
# Untimed commands
# ---------------------------------------------------------------------------


def run_setup_command(command: list[str], *, cwd: Path, timeout: float) -> None:
    """Run a command whose duration is not measured.

    Used for ``init``, tool configuration and restaging.

    Raises:
        CommandExecutionFailure: On nonzero exit, timeout, or if the
            command cannot be started.
    """
    log.debug("Setup: %s (in %s)", " ".join(command), cwd)
    try:
        proc = subprocess.run(
            command,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise CommandExecutionFailure(command, -1, f"timed out after {timeout}s") from exc
    except OSError as exc:
        raise CommandExecutionFailure(command, 127, str(exc)) from exc
    if proc.returncode != 0:
        detail = (proc.stderr or "").strip().splitlines()
        raise CommandExecutionFailure(command, proc.returncode, detail[-1] if detail else "")


# ---------------------------------------------------------------------------
# HarnessRunner
# ---------------------------------------------------------------------------


class HarnessRunner:
    """Executes a comparison run according to a HarnessConfig.

    Usage::

        config = HarnessConfig(...)
        with ReportWriter(config.results_log) as report:
            result = HarnessRunner(config, report).run()
    """

    def __init__(
        self,
        config: HarnessConfig,
        report: ReportWriter,
        progress_callback: ProgressCallback = None,
    ) -> None:
        self.config = config
        self.report = report
        self.progress: Any = progress_callback or self._default_progress
        self.results = ResultsStore()
        self.winners = WinnersStore()
        self.run_dir: Path | None = None

    @property
    def timed_operations(self) -> list[OperationDef]:
        return [op for op in self.config.operations if op.operation is not Operation.STORAGE]

    def run(self) -> HarnessResult:
        """Execute every scenario and render the final report.

        Returns:
            A HarnessResult with the stores, outcomes and insights.

        Raises:
            ValueError: If configuration is invalid.
            PrerequisiteMissing: If a tool or the process table is
                unavailable.  Raised before any scenario runs.
        """
        # Phase 1: Validate configuration.
        errors = validate_config(self.config)
        fatal = [e for e in errors if e.severity == "error"]
        warnings = [e for e in errors if e.severity == "warning"]
        for w in warnings:
            log.warning("Config warning: %s: %s", w.field, w.message)
        if fatal:
            messages = [f"  {e.field}: {e.message}" for e in fatal]
            raise ValueError("Invalid harness configuration:\n" + "\n".join(messages))

        # Phase 2: Prerequisites.
        check_prerequisites(list(self.config.tools))

        # Phase 3: Environment preamble.
        log.info("Capturing system profile...")
        system = capture_system_profile()
        candidate = capture_tool_profile(self.config.candidate)
        baseline = capture_tool_profile(self.config.baseline)
        self.report.emit(format_preamble(self.config, system, candidate, baseline))
        self.report.emit()
        self.report.flush()

        result = HarnessResult(results=self.results, winners=self.winners, system=system)

        # Phase 4: Scenarios.
        # Scratch space is a fresh directory inside work_dir; only that
        # directory (and work_dir itself, if this run created it) is removed.
        work_dir = self.config.work_dir
        created_work_dir = not work_dir.exists()
        work_dir.mkdir(parents=True, exist_ok=True)
        self.run_dir = Path(tempfile.mkdtemp(prefix="versus-", dir=work_dir))
        try:
            total = len(self.config.scenarios)
            for index, scenario in enumerate(self.config.scenarios):
                self.report.emit(format_scenario_header(index + 1, total, scenario))
                outcome = self._run_scenario_safely(scenario, index)
                result.outcomes.append(outcome)
                self.report.emit()
                self.report.flush()
        finally:
            self._cleanup(self.run_dir)
            if created_work_dir:
                self._cleanup(work_dir)

        # Phase 5: Insights and final report.
        completed = [o.scenario for o in result.completed]
        timed = [op.operation for op in self.timed_operations]
        result.insights = synthesize(
            completed,
            self.winners,
            operations=timed,
            config=self.config.insights,
            candidate_name=self.config.candidate.name,
            baseline_name=self.config.baseline.name,
        )
        self.report.emit(
            format_final_report(
                completed,
                self.results,
                self.winners,
                result.insights,
                operations=timed,
                candidate_name=self.config.candidate.name,
                baseline_name=self.config.baseline.name,
            )
        )
        self.report.flush()
        log.info(
            "Run complete: %d scenarios measured, %d skipped",
            len(result.completed),
            len(result.skipped),
        )
        return result

    def _run_scenario_safely(self, scenario: Scenario, index: int) -> ScenarioOutcome:
        """Run one scenario; setup failures skip it instead of aborting the run."""
        assert self.run_dir is not None
        scenario_dir = self.run_dir / scenario.key
        try:
            return self._run_scenario(scenario, index, scenario_dir)
        except (FixtureGenerationFailure, CommandExecutionFailure) as exc:
            log.warning("Skipping scenario %s: %s", scenario.key, exc)
            self.report.emit(format_scenario_skipped(scenario, str(exc)))
            return ScenarioOutcome(scenario=scenario, skipped=True, skip_reason=str(exc))
        finally:
            self._cleanup(scenario_dir)

    def _run_scenario(self, scenario: Scenario, index: int, scenario_dir: Path) -> ScenarioOutcome:
        fixture_dir = build_fixture(scenario, scenario_dir)

        measured: dict[Side, dict[Operation, AggregatedResult]] = {}
        sizes: dict[Side, RepositorySizeMeasurement] = {}
        sides = ((Side.BASELINE, self.config.baseline), (Side.CANDIDATE, self.config.candidate))
        for side, tool in sides:
            measured[side], sizes[side] = self._measure_tool(
                scenario, index, tool, fixture_dir, scenario_dir
            )

        # Nothing is written to the stores until both tools have finished,
        # so a skipped scenario leaves no partial entries behind.
        for side, _tool in sides:
            for op, agg in measured[side].items():
                self.results.record(scenario.key, side, op, agg)
            self.results.record_size(scenario.key, side, sizes[side])

        candidate = measured[Side.CANDIDATE]
        baseline = measured[Side.BASELINE]
        for op in candidate:
            if op in baseline:
                self.winners.record(scenario.key, op, compare_durations(candidate[op], baseline[op]))
        self.winners.record(
            scenario.key,
            Operation.STORAGE,
            compare_storage(sizes[Side.CANDIDATE], sizes[Side.BASELINE]),
        )
        overall = compare_overall(candidate, baseline)

        names = {
            "candidate_name": self.config.candidate.name,
            "baseline_name": self.config.baseline.name,
        }
        self.report.emit(
            format_scenario_table(
                scenario,
                self.results,
                self.winners,
                operations=[op.operation for op in self.timed_operations],
                **names,
            )
        )
        common = [op for op in candidate if op in baseline]
        self.report.emit(
            format_overall_verdict(
                overall,
                candidate_total_ms=sum(candidate[op].avg_duration_ms for op in common),
                baseline_total_ms=sum(baseline[op].avg_duration_ms for op in common),
                **names,
            )
        )
        return ScenarioOutcome(scenario=scenario, overall=overall)

    def _measure_tool(
        self,
        scenario: Scenario,
        index: int,
        tool: ToolDef,
        fixture_dir: Path,
        scenario_dir: Path,
    ) -> tuple[dict[Operation, AggregatedResult], RepositorySizeMeasurement]:
        """Set up a fresh repository for *tool* and run every timed operation."""
        repo = scenario_dir / f"{tool.name}_repo"
        try:
            repo.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FixtureGenerationFailure(
                f"Could not create {tool.name} repository in {scenario_dir}: {exc}"
            ) from exc
        timeout = self.config.timeout

        log.info("Initializing %s repository in %s", tool.name, repo)
        run_setup_command(tool.init_command(), cwd=repo, timeout=timeout)
        for command in tool.setup_commands:
            run_setup_command(command, cwd=repo, timeout=timeout)

        files_dir = copy_fixture(fixture_dir, repo)
        rel_paths = [str(p.relative_to(repo)) for p in fixture_paths(files_dir)]

        aggregated: dict[Operation, AggregatedResult] = {}
        for op_def in self.timed_operations:
            if op_def.operation is Operation.ADD:
                command = tool.add_command(rel_paths)
            else:
                command = tool.commit_command(self.config.commit_message)

            def _restage(number: int) -> None:
                if number < 2:
                    return
                revision = write_revision_file(files_dir, number)
                run_setup_command(
                    tool.add_command([str(revision.relative_to(repo))]),
                    cwd=repo,
                    timeout=timeout,
                )

            def _on_trial(number: int, trial: Trial) -> None:
                self.progress(
                    HarnessProgress(
                        scenario=scenario.key,
                        tool=tool.name,
                        operation=op_def.operation.value,
                        trial=number,
                        total_trials=op_def.runs,
                        scenarios_done=index,
                        scenarios_total=len(self.config.scenarios),
                        duration_ms=trial.duration_ms,
                        status="ok" if trial.ok else "failed",
                    )
                )

            spec = TrialSpec(
                command=command,
                process_name=tool.process_name,
                runs=op_def.runs,
                cwd=repo,
                timeout=timeout,
                sample_interval_s=self.config.sample_interval_s,
            )
            trials = run_trials(
                spec,
                before_trial=_restage if op_def.restage else None,
                on_trial=_on_trial,
            )
            aggregated[op_def.operation] = aggregate(trials)

        size = RepositorySizeMeasurement(
            tool=tool.name,
            size_kb=directory_size_kb(repo / tool.metadata_dir),
        )
        log.debug("%s footprint for %s: %dKB", tool.name, scenario.key, size.size_kb)
        self._cleanup(repo)
        return aggregated, size

    @staticmethod
    def _cleanup(path: Path) -> None:
        try:
            remove_tree(path)
        except CleanupFailure as exc:
            log.warning("Cleanup: %s", exc)

    @staticmethod
    def _default_progress(progress: HarnessProgress) -> None:
        """Default progress callback: log each trial."""
        scenario_progress = f"[{progress.scenarios_done + 1}/{progress.scenarios_total}]"
        line = (
            f"  {scenario_progress} {progress.scenario:12s} "
            f"{progress.tool:10s} {progress.operation:7s} "
            f"{progress.trial}/{progress.total_trials} "
        )
        if progress.duration_ms:
            line += f"{progress.duration_ms:8d}ms "
        if progress.status:
            line += f"[{progress.status}]"
        log.info(line)
