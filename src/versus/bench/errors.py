"""Exceptions raised by the benchmark engine."""

from __future__ import annotations


class BenchError(RuntimeError):
    """Base class for benchmark harness errors."""


class FixtureGenerationFailure(BenchError):
    """A scenario's fixture files could not be written.

    Aborts the current scenario only.
    """


class CommandExecutionFailure(BenchError):
    """An untimed setup command (init, configuration, restaging) failed.

    Measured commands never raise this; their exit codes are recorded on
    the trial instead.
    """

    def __init__(self, command: list[str], exit_code: int, detail: str = "") -> None:
        self.command = command
        self.exit_code = exit_code
        self.detail = detail
        message = f"Command {' '.join(command)!r} failed with exit code {exit_code}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class PrerequisiteMissing(BenchError):
    """A measured tool or required OS capability is unavailable."""


class CleanupFailure(BenchError):
    """A working directory could not be removed."""
