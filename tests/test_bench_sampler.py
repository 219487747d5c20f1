"""Tests for versus.bench.sampler: background memory sampling."""

from __future__ import annotations

import os
import threading
import time
import unittest
from types import SimpleNamespace
from unittest.mock import patch

import psutil

from versus.bench.sampler import MemorySampler, process_memory_mb


def _fake_proc(name: str, rss: int) -> SimpleNamespace:
    return SimpleNamespace(info={"name": name, "memory_info": SimpleNamespace(rss=rss)})


class TestProcessMemory(unittest.TestCase):
    def test_sums_matching_processes(self) -> None:
        procs = [
            _fake_proc("git", 10 * 1024 * 1024),
            _fake_proc("git", 5 * 1024 * 1024),
            _fake_proc("bash", 100 * 1024 * 1024),
        ]
        with patch("versus.bench.sampler.psutil.process_iter", return_value=procs):
            self.assertEqual(process_memory_mb("git"), 15.0)

    def test_no_match_is_zero(self) -> None:
        with patch("versus.bench.sampler.psutil.process_iter", return_value=[]):
            self.assertEqual(process_memory_mb("git"), 0.0)

    def test_vanished_process_skipped(self) -> None:
        class Vanishing:
            @property
            def info(self) -> dict:
                raise psutil.NoSuchProcess(pid=1)

        procs = [Vanishing(), _fake_proc("git", 1024 * 1024)]
        with patch("versus.bench.sampler.psutil.process_iter", return_value=procs):
            self.assertEqual(process_memory_mb("git"), 1.0)

    def test_real_process_table(self) -> None:
        name = psutil.Process(os.getpid()).name()
        self.assertGreater(process_memory_mb(name), 0)


class TestMemorySampler(unittest.TestCase):
    def test_peak_and_average(self) -> None:
        values = iter([10.0, 30.0, 20.0])

        def probe(_name: str) -> float:
            return next(values, 20.0)

        with MemorySampler("tool", interval=0.01, probe=probe) as sampler:
            time.sleep(0.1)
        usage = sampler.usage
        self.assertEqual(usage.peak_mb, 30.0)
        self.assertGreaterEqual(usage.samples, 3)
        self.assertLessEqual(usage.avg_mb, usage.peak_mb)
        self.assertGreater(usage.avg_mb, 10.0)

    def test_samples_at_least_once(self) -> None:
        with MemorySampler("tool", interval=10, probe=lambda _n: 7.0) as sampler:
            pass
        self.assertEqual(sampler.usage.samples, 1)
        self.assertEqual(sampler.usage.peak_mb, 7.0)

    def test_stopped_promptly(self) -> None:
        sampler = MemorySampler("tool", interval=10, probe=lambda _n: 1.0)
        sampler.start()
        start = time.monotonic()
        sampler.stop()
        self.assertLess(time.monotonic() - start, 2.0)

    def test_stopped_on_exception(self) -> None:
        before = threading.active_count()
        with self.assertRaises(RuntimeError):
            with MemorySampler("tool", interval=0.01, probe=lambda _n: 1.0) as sampler:
                raise RuntimeError("command blew up")
        self.assertIsNotNone(sampler.usage)
        self.assertEqual(threading.active_count(), before)

    def test_stop_idempotent(self) -> None:
        sampler = MemorySampler("tool", interval=0.01, probe=lambda _n: 2.0)
        sampler.start()
        first = sampler.stop()
        self.assertIs(sampler.stop(), first)

    def test_start_twice(self) -> None:
        sampler = MemorySampler("tool", interval=0.01, probe=lambda _n: 2.0)
        sampler.start()
        try:
            with self.assertRaises(RuntimeError):
                sampler.start()
        finally:
            sampler.stop()

    def test_usage_while_running(self) -> None:
        sampler = MemorySampler("tool", interval=0.01, probe=lambda _n: 2.0)
        sampler.start()
        try:
            with self.assertRaises(RuntimeError):
                _ = sampler.usage
        finally:
            sampler.stop()

    def test_probe_error_counts_as_zero(self) -> None:
        def probe(_name: str) -> float:
            raise psutil.AccessDenied()

        with MemorySampler("tool", interval=10, probe=probe) as sampler:
            pass
        self.assertEqual(sampler.usage.peak_mb, 0.0)
        self.assertEqual(sampler.usage.samples, 1)

    def test_no_tool_running(self) -> None:
        with MemorySampler("versus-no-such-process-xyz", interval=0.01) as sampler:
            time.sleep(0.03)
        self.assertEqual(sampler.usage.peak_mb, 0.0)
        self.assertEqual(sampler.usage.avg_mb, 0.0)
