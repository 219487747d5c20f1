"""Report output: standard output mirrored to an append-only log.

Lines may carry ANSI styling (from :func:`click.style`); the log copy has
it stripped.  The log is opened once when the harness starts and flushed
after each scenario so an interrupted run still leaves a readable
partial log.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType
from typing import IO, Callable

import click

log = logging.getLogger("versus")


class ReportWriter:
    """Writes report text to the console and a plain-text log file.

    Args:
        log_path: Results log; created if missing, always appended to.
            ``None`` disables mirroring.
        echo: Console writer, :func:`click.echo` by default.
    """

    def __init__(
        self,
        log_path: Path | None,
        *,
        echo: Callable[[str], None] | None = None,
    ) -> None:
        self.log_path = log_path
        self._echo = echo or click.echo
        self._fh: IO[str] | None = None

    def open(self) -> ReportWriter:
        if self.log_path is not None and self._fh is None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self.log_path, "a", encoding="utf-8")
            log.debug("Mirroring report to %s", self.log_path)
        return self

    def emit(self, text: str = "") -> None:
        """Write *text* (one or more lines) to both destinations."""
        self._echo(text)
        if self._fh is not None:
            self._fh.write(click.unstyle(text) + "\n")

    def flush(self) -> None:
        if self._fh is not None:
            self._fh.flush()

    def close(self) -> None:
        if self._fh is not None:
            self._fh.flush()
            self._fh.close()
            self._fh = None

    def __enter__(self) -> ReportWriter:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
