"""Tests for versus.cli: the command-line entry point."""

from __future__ import annotations

import signal
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from versus import __version__
from versus.bench.errors import PrerequisiteMissing
from versus.cli import main


class TestHelp(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = CliRunner()

    def test_help_long(self) -> None:
        with patch("versus.bench.runner.HarnessRunner") as runner_cls:
            result = self.runner.invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("--profile", result.output)
        self.assertIn("--quick", result.output)
        runner_cls.assert_not_called()

    def test_help_short(self) -> None:
        result = self.runner.invoke(main, ["-h"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Usage:", result.output)

    def test_version(self) -> None:
        result = self.runner.invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn(__version__, result.output)


class TestMain(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = CliRunner()
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _invoke(self, args: list[str], run_effect: object = None) -> tuple[object, MagicMock]:
        with patch("versus.bench.runner.HarnessRunner") as runner_cls:
            runner_cls.return_value.run.side_effect = run_effect
            result = self.runner.invoke(
                main, args + ["--results-log", str(self.tmpdir / "results.log")]
            )
        return result, runner_cls

    def test_no_arguments_runs_default_suite(self) -> None:
        result, runner_cls = self._invoke([])
        self.assertEqual(result.exit_code, 0, result.output)
        config = runner_cls.call_args.args[0]
        self.assertEqual(len(config.scenarios), 7)
        self.assertEqual(config.candidate.name, "blaze")
        self.assertEqual(config.baseline.name, "git")
        self.assertIn("Results appended to", result.output)

    def test_overrides(self) -> None:
        work = self.tmpdir / "scratch"
        result, runner_cls = self._invoke(["--work-dir", str(work), "--timeout", "30", "--quick"])
        self.assertEqual(result.exit_code, 0, result.output)
        config = runner_cls.call_args.args[0]
        self.assertEqual(config.work_dir, work)
        self.assertEqual(config.timeout, 30)
        self.assertEqual(len(config.scenarios), 3)
        self.assertEqual(config.results_log, self.tmpdir / "results.log")

    def test_profile(self) -> None:
        profile = self.tmpdir / "versus.yaml"
        profile.write_text(
            "candidate: {name: hg, metadata_dir: .hg}\n"
            "scenarios:\n"
            "  - 5,2KB,Tiny,SMALL\n"
        )
        result, runner_cls = self._invoke(["--profile", str(profile)])
        self.assertEqual(result.exit_code, 0, result.output)
        config = runner_cls.call_args.args[0]
        self.assertEqual(config.candidate.name, "hg")
        self.assertEqual([s.key for s in config.scenarios], ["5_2KB"])

    def test_bad_profile_exits_1(self) -> None:
        profile = self.tmpdir / "bad.yaml"
        profile.write_text("scenarios: not-a-list\n")
        result, runner_cls = self._invoke(["--profile", str(profile)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error:", result.output)
        runner_cls.assert_not_called()

    def test_missing_prerequisite_exits_1(self) -> None:
        result, _ = self._invoke([], run_effect=PrerequisiteMissing("Command not found: blaze"))
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Command not found: blaze", result.output)

    def test_invalid_config_exits_1(self) -> None:
        result, _ = self._invoke([], run_effect=ValueError("Invalid harness configuration"))
        self.assertEqual(result.exit_code, 1)

    def test_interrupt_exits_130(self) -> None:
        result, _ = self._invoke([], run_effect=KeyboardInterrupt)
        self.assertEqual(result.exit_code, 130)
        self.assertIn("interrupted", result.output)

    def test_sigterm_handler_restored(self) -> None:
        before = signal.getsignal(signal.SIGTERM)
        self._invoke([])
        self.assertEqual(signal.getsignal(signal.SIGTERM), before)

    def test_sigterm_becomes_system_exit(self) -> None:
        def _terminate() -> None:
            handler = signal.getsignal(signal.SIGTERM)
            assert callable(handler)
            handler(signal.SIGTERM, None)

        result, _ = self._invoke([], run_effect=_terminate)
        self.assertEqual(result.exit_code, 128 + signal.SIGTERM)
