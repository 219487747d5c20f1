"""Repeated, sampled execution of one measured command.

The trial runner only times and samples.  Anything that must happen
between repetitions (for example staging fresh changes before another
commit) is supplied by the orchestrator as a ``before_trial`` hook and
runs outside the timed window.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from versus.bench.results import Trial
from versus.bench.sampler import MemorySampler
from versus.bench.timing import run_timed

log = logging.getLogger("versus")

# Called with the 1-based trial number before that trial is timed.
BeforeTrial = Callable[[int], None]


@dataclass
class TrialSpec:
    """What to measure and how often."""

    command: list[str]
    process_name: str
    runs: int
    cwd: Path | None = None
    timeout: float = 600
    sample_interval_s: float = 0.05


def measure_once(spec: TrialSpec) -> Trial:
    """Time and sample a single execution of ``spec.command``.

    The sampler is started before the command and always stopped when
    it returns, raises, or times out.
    """
    with MemorySampler(spec.process_name, interval=spec.sample_interval_s) as sampler:
        timed = run_timed(spec.command, cwd=spec.cwd, timeout=spec.timeout)
    usage = sampler.usage

    trial = Trial(
        duration_ms=timed.duration_ms,
        peak_memory_mb=int(usage.peak_mb),
        avg_memory_mb=int(usage.avg_mb),
        exit_code=timed.exit_code,
        timed_out=timed.timed_out,
    )
    if not trial.ok:
        reason = "timed out" if trial.timed_out else f"exited with {trial.exit_code}"
        log.warning(
            "%s %s; keeping its timing (%dms)",
            " ".join(spec.command[:2]),
            reason,
            trial.duration_ms,
        )
    return trial


def run_trials(
    spec: TrialSpec,
    *,
    before_trial: BeforeTrial | None = None,
    on_trial: Callable[[int, Trial], None] | None = None,
) -> list[Trial]:
    """Measure ``spec.command`` ``spec.runs`` times.

    Args:
        spec: Command, process name, trial count and limits.
        before_trial: Untimed hook invoked before each trial.
        on_trial: Called with (trial number, Trial) after each trial.

    Returns:
        All trials, in execution order; none are discarded.
    """
    if spec.runs < 1:
        raise ValueError(f"Need at least one trial (got {spec.runs})")

    trials: list[Trial] = []
    for number in range(1, spec.runs + 1):
        if before_trial is not None:
            before_trial(number)
        trial = measure_once(spec)
        log.debug(
            "Run %d/%d: %dms, %dMB peak",
            number,
            spec.runs,
            trial.duration_ms,
            trial.peak_memory_mb,
        )
        trials.append(trial)
        if on_trial is not None:
            on_trial(number, trial)
    return trials
