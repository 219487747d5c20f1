"""Tests for versus.bench.system: environment profiling and prerequisites."""

from __future__ import annotations

import subprocess
import sys
import unittest
from unittest.mock import MagicMock, patch

import psutil

from versus.bench.config import ToolDef
from versus.bench.errors import PrerequisiteMissing
from versus.bench.system import (
    SystemProfile,
    capture_system_profile,
    capture_tool_profile,
    check_prerequisites,
    format_system_profile,
)


class TestCaptureSystemProfile(unittest.TestCase):
    def test_returns_profile(self) -> None:
        profile = capture_system_profile()
        self.assertIsInstance(profile, SystemProfile)
        self.assertGreater(profile.cpu_cores_logical, 0)
        self.assertGreater(profile.ram_total_gb, 0)
        self.assertTrue(profile.host_python_version)
        self.assertTrue(profile.timestamp)

    @patch("versus.bench.system.psutil.virtual_memory", side_effect=OSError("no /proc"))
    def test_degrades_without_memory_info(self, _mock: MagicMock) -> None:
        profile = capture_system_profile()
        self.assertEqual(profile.ram_total_gb, 0.0)


class TestCaptureToolProfile(unittest.TestCase):
    def test_version_first_line(self) -> None:
        tool = ToolDef(
            name="py",
            executable=sys.executable,
            version_args=["-c", "print('py 9.9'); print('extra')"],
        )
        profile = capture_tool_profile(tool)
        self.assertEqual(profile.version, "py 9.9")
        self.assertEqual(profile.path, sys.executable)

    def test_version_failure_is_unknown(self) -> None:
        tool = ToolDef(
            name="py",
            executable=sys.executable,
            version_args=["-c", "raise SystemExit(2)"],
        )
        self.assertEqual(capture_tool_profile(tool).version, "unknown")

    def test_missing_executable(self) -> None:
        tool = ToolDef(name="nope", executable="/nonexistent/versus-tool-xyz")
        with self.assertLogs("versus", level="WARNING"):
            profile = capture_tool_profile(tool)
        self.assertEqual(profile.version, "unknown")

    @patch(
        "versus.bench.system.subprocess.run",
        side_effect=subprocess.TimeoutExpired(cmd="x", timeout=1),
    )
    def test_timeout(self, _mock: MagicMock) -> None:
        tool = ToolDef(name="slow", executable=sys.executable)
        with self.assertLogs("versus", level="WARNING"):
            self.assertEqual(capture_tool_profile(tool).version, "unknown")


class TestCheckPrerequisites(unittest.TestCase):
    def test_available(self) -> None:
        check_prerequisites([ToolDef(name="py", executable=sys.executable)])

    def test_missing_tool(self) -> None:
        tools = [
            ToolDef(name="py", executable=sys.executable),
            ToolDef(name="ghost", executable="versus-no-such-tool-xyz"),
        ]
        with self.assertRaises(PrerequisiteMissing) as ctx:
            check_prerequisites(tools)
        self.assertIn("ghost", str(ctx.exception))

    @patch("versus.bench.system.psutil.process_iter", side_effect=psutil.AccessDenied())
    def test_process_table_denied(self, _mock: MagicMock) -> None:
        with self.assertRaises(PrerequisiteMissing):
            check_prerequisites([ToolDef(name="py", executable=sys.executable)])

    @patch("versus.bench.system.psutil.process_iter", return_value=iter([]))
    def test_process_table_empty(self, _mock: MagicMock) -> None:
        with self.assertRaises(PrerequisiteMissing):
            check_prerequisites([ToolDef(name="py", executable=sys.executable)])


class TestFormatSystemProfile(unittest.TestCase):
    def _profile(self, **kwargs: object) -> SystemProfile:
        defaults: dict[str, object] = {
            "cpu_model": "TestCPU",
            "cpu_cores_physical": 4,
            "cpu_cores_logical": 8,
            "ram_total_gb": 16.0,
            "ram_available_gb": 12.5,
            "os_name": "Linux",
            "os_release": "6.1",
            "host_python_version": "3.12.1",
            "hostname": "bench-host",
        }
        defaults.update(kwargs)
        return SystemProfile(**defaults)  # type: ignore[arg-type]

    def test_contents(self) -> None:
        text = format_system_profile(self._profile())
        self.assertIn("TestCPU (4 cores / 8 threads)", text)
        self.assertIn("16.0 GB total, 12.5 GB available", text)
        self.assertIn("Linux 6.1", text)
        self.assertIn("bench-host", text)

    def test_no_threads_when_equal(self) -> None:
        text = format_system_profile(self._profile(cpu_cores_logical=4))
        self.assertNotIn("threads", text)

    def test_default_profile_renders(self) -> None:
        text = format_system_profile(SystemProfile())
        self.assertIn("CPU:      unknown", text)
