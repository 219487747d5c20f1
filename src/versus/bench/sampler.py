"""Background memory sampling of a measured tool.

A :class:`MemorySampler` polls the process table at a fixed interval,
summing the resident set size of every process whose name matches the
tool, and keeps the per-poll samples plus the running peak.  It is used
as a context manager around exactly one measured command, so the polling
thread is stopped and joined on every exit path::

    with MemorySampler("git", interval=0.05) as sampler:
        timed = run_timed(["git", "add", "."])
    usage = sampler.usage
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from types import TracebackType
from typing import Callable

import psutil

log = logging.getLogger("versus")

_BYTES_PER_MB = 1024 * 1024


@dataclass
class MemoryUsage:
    """Memory readings for one sampled command, in megabytes."""

    peak_mb: float = 0.0
    avg_mb: float = 0.0
    samples: int = 0


def process_memory_mb(process_name: str) -> float:
    """Total RSS in MB of all running processes named *process_name*."""
    total = 0
    for proc in psutil.process_iter(["name", "memory_info"]):
        try:
            info = proc.info
            if info.get("name") != process_name:
                continue
            mem = info.get("memory_info")
            if mem is not None:
                total += mem.rss
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue
    return total / _BYTES_PER_MB


class MemorySampler:
    """Cancellable polling loop measuring a tool's memory footprint.

    Args:
        process_name: Process name to match in the process table.
        interval: Seconds between polls.
        probe: Function returning the current memory in MB for a process
            name.  Defaults to :func:`process_memory_mb`.
    """

    def __init__(
        self,
        process_name: str,
        *,
        interval: float = 0.05,
        probe: Callable[[str], float] | None = None,
    ) -> None:
        self.process_name = process_name
        self.interval = interval
        self._probe = probe or process_memory_mb
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._samples: list[float] = []
        self._peak = 0.0
        self._lock = threading.Lock()
        self._usage: MemoryUsage | None = None

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("MemorySampler can only be started once")
        self._thread = threading.Thread(
            target=self._run,
            name=f"versus-sampler-{self.process_name}",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> MemoryUsage:
        """Signal the loop to stop, wait for it, and freeze the readings.

        Safe to call more than once.
        """
        if self._usage is not None:
            return self._usage
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
        with self._lock:
            samples = self._samples
            self._samples = []
            avg = sum(samples) / len(samples) if samples else 0.0
            self._usage = MemoryUsage(peak_mb=self._peak, avg_mb=avg, samples=len(samples))
        return self._usage

    @property
    def usage(self) -> MemoryUsage:
        if self._usage is None:
            raise RuntimeError("MemorySampler is still running")
        return self._usage

    def _run(self) -> None:
        while True:
            try:
                value = self._probe(self.process_name)
            except psutil.Error as exc:
                log.debug("Memory probe failed: %s", exc)
                value = 0.0
            with self._lock:
                self._samples.append(value)
                if value > self._peak:
                    self._peak = value
            if self._stop.wait(self.interval):
                return

    def __enter__(self) -> MemorySampler:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()
