"""Command-line interface for versus.

A single command that runs the full scenario suite with no arguments.
"""

from __future__ import annotations

import signal
from pathlib import Path
from types import FrameType

import click

from versus import __version__
from versus.logging import setup_logging


def _raise_on_sigterm(signum: int, frame: FrameType | None) -> None:
    # Unwind through the runner's finally blocks so working dirs are removed.
    raise SystemExit(128 + signum)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__)
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, path_type=Path),
    help="YAML profile defining scenarios, tools and operations.",
)
@click.option(
    "--work-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Scratch directory for fixtures and repositories (default: perf_analysis).",
)
@click.option(
    "--results-log",
    type=click.Path(path_type=Path),
    default=None,
    help="Append-only results log (default: performance_results.log).",
)
@click.option(
    "--timeout",
    type=int,
    default=None,
    help="Per-command timeout in seconds (default: 600).",
)
@click.option("--quick", is_flag=True, help="Small/medium scenarios only, at most 2 runs each.")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Write DEBUG-level diagnostics to this file.",
)
def main(
    profile_path: Path | None,
    work_dir: Path | None,
    results_log: Path | None,
    timeout: int | None,
    quick: bool,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """versus: compare a candidate version-control tool against a baseline.

    Generates synthetic file sets, times ``add`` and ``commit`` for both
    tools while sampling their memory, measures repository footprint and
    prints a comparative report that is also appended to the results log.

    \b
    Examples:
        # Full default suite (blaze vs git)
        versus

        # Fast pass over the small scenarios
        versus --quick

        # Custom tools and scenarios
        versus --profile versus.yaml --results-log results.log
    """
    from versus.bench.config import config_from_profile, load_profile, quick_config
    from versus.bench.errors import PrerequisiteMissing
    from versus.bench.report import ReportWriter
    from versus.bench.runner import HarnessRunner

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    cli_overrides: dict[str, object] = {
        "timeout": timeout,
        "work_dir": work_dir,
        "results_log": results_log,
    }
    try:
        profile_data = load_profile(profile_path) if profile_path else {}
        config = config_from_profile(profile_data, cli_overrides=cli_overrides)
    except (FileNotFoundError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    if quick:
        config = quick_config(config)

    previous = signal.signal(signal.SIGTERM, _raise_on_sigterm)
    try:
        with ReportWriter(config.results_log) as report:
            HarnessRunner(config, report).run()
    except (ValueError, PrerequisiteMissing) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nRun interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904
    finally:
        signal.signal(signal.SIGTERM, previous)

    click.echo()
    click.echo(f"Results appended to: {config.results_log}")
