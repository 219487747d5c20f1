"""Wall-clock timing of a single measured command.

The command's output is discarded and its exit status is recorded but
never fails the measurement: a nonzero exit still yields a duration.
A timeout kills the whole process group so a hung tool cannot stall the
run.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger("versus")


@dataclass
class TimedResult:
    """Result of a timed subprocess execution."""

    duration_ms: int
    exit_code: int
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


def run_timed(
    command: list[str],
    *,
    cwd: str | Path | None = None,
    env: dict[str, str] | None = None,
    timeout: float = 600,
) -> TimedResult:
    """Execute *command* synchronously and measure its wall-clock time.

    Args:
        command: Argument list; no shell is involved.
        cwd: Working directory for the subprocess.
        env: Extra environment variables layered over ``os.environ``.
        timeout: Maximum execution time in seconds.

    Returns:
        TimedResult with the elapsed time in whole milliseconds.  A
        command that could not be started reports exit code 127.
    """
    run_env = dict(os.environ)
    if env:
        run_env.update(env)

    start = time.monotonic_ns()
    try:
        proc = subprocess.Popen(
            command,
            cwd=str(cwd) if cwd else None,
            env=run_env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as exc:
        log.warning("Could not start %s: %s", command[0], exc)
        return TimedResult(duration_ms=_elapsed_ms(start), exit_code=127)

    timed_out = False
    try:
        exit_code = proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        timed_out = True
        log.warning("Command timed out after %ss: %s", timeout, " ".join(command))
        _kill_process_group(proc.pid)
        try:
            proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
        exit_code = -1
    except BaseException:
        # Interrupted while waiting: don't leave the tool running.
        _kill_process_group(proc.pid)
        proc.wait()
        raise

    return TimedResult(duration_ms=_elapsed_ms(start), exit_code=exit_code, timed_out=timed_out)


def _elapsed_ms(start_ns: int) -> int:
    return max(0, (time.monotonic_ns() - start_ns) // 1_000_000)


def _kill_process_group(pid: int) -> None:
    """Attempt to kill the entire process group."""
    try:
        os.killpg(os.getpgid(pid), signal.SIGKILL)
    except (ProcessLookupError, PermissionError, OSError):
        pass
