"""Harness configuration and profile loading.

Handles:
- The static, ordered scenario list and its categories.
- Candidate/baseline tool definitions and tracked operations.
- Insight thresholds and category groupings.
- Loading overrides from YAML profiles and merging CLI options.
- Validating the final configuration before execution.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

log = logging.getLogger("versus")


# ---------------------------------------------------------------------------
# Categories and operations
# ---------------------------------------------------------------------------


class Category(enum.Enum):
    """Coarse workload-size classification of a scenario."""

    SMALL = "SMALL"
    MEDIUM = "MEDIUM"
    LARGE_SCALE = "LARGE_SCALE"
    LARGE_FILES = "LARGE_FILES"
    HUGE_FILES = "HUGE_FILES"

    @property
    def label(self) -> str:
        """Human-readable name, e.g. ``"Large scale"``."""
        return self.value.replace("_", " ").capitalize()


class Operation(enum.Enum):
    """Operations measured per scenario."""

    ADD = "ADD"
    COMMIT = "COMMIT"
    STORAGE = "STORAGE"


# ---------------------------------------------------------------------------
# Scenario
# ---------------------------------------------------------------------------

_SIZE_UNITS: dict[str, int] = {
    "B": 1,
    "KB": 1024,
    "MB": 1024 * 1024,
    "GB": 1024 * 1024 * 1024,
}

_SIZE_RE = re.compile(r"^\s*(\d+)\s*([KMG]?B)\s*$", re.IGNORECASE)


def parse_size(text: str) -> int:
    """Convert a size with a unit tag (``"100KB"``) to a byte count.

    Units are binary multiples: ``B``, ``KB``, ``MB``, ``GB``.

    Raises:
        ValueError: If *text* has no recognised unit or is not positive.
    """
    match = _SIZE_RE.match(text)
    if not match:
        raise ValueError(f"Invalid file size '{text}'. Expected e.g. '1KB', '100MB'.")
    count = int(match.group(1))
    if count <= 0:
        raise ValueError(f"File size must be positive (got '{text}').")
    return count * _SIZE_UNITS[match.group(2).upper()]


@dataclass(frozen=True)
class Scenario:
    """One workload run against both tools."""

    file_count: int
    file_size: str  # with unit tag, e.g. "100KB"
    description: str
    category: Category

    @property
    def key(self) -> str:
        """Stable identifier, e.g. ``"10_1KB"``."""
        return f"{self.file_count}_{self.file_size}"

    @property
    def size_bytes(self) -> int:
        """Size of each fixture file in bytes."""
        return parse_size(self.file_size)

    @property
    def total_bytes(self) -> int:
        return self.file_count * self.size_bytes

    @property
    def label(self) -> str:
        """Short display label, e.g. ``"10×1KB"``."""
        return f"{self.file_count}×{self.file_size}"


DEFAULT_SCENARIOS: tuple[Scenario, ...] = (
    Scenario(10, "1KB", "Small files (startup overhead test)", Category.SMALL),
    Scenario(50, "10KB", "Medium small files", Category.MEDIUM),
    Scenario(100, "100KB", "Medium files (typical development)", Category.MEDIUM),
    Scenario(500, "100KB", "Bulk medium files", Category.LARGE_SCALE),
    Scenario(1000, "100KB", "Large scale repository", Category.LARGE_SCALE),
    Scenario(100, "1MB", "Large files", Category.LARGE_FILES),
    Scenario(15, "100MB", "Huge files", Category.HUGE_FILES),
)


# ---------------------------------------------------------------------------
# Tools and operations
# ---------------------------------------------------------------------------


@dataclass
class ToolDef:
    """A measured command-line tool.

    The tool is driven only through ``init``, ``add <paths>`` and
    ``commit -m <message>``; its on-disk footprint is the size of
    *metadata_dir* inside the repository.
    """

    name: str
    executable: str = ""  # defaults to name
    metadata_dir: str = ""  # defaults to ".<name>"
    process_name: str = ""  # defaults to the executable's basename
    setup_commands: list[list[str]] = field(default_factory=list)
    version_args: list[str] = field(default_factory=lambda: ["--version"])

    def __post_init__(self) -> None:
        if not self.executable:
            self.executable = self.name
        if not self.metadata_dir:
            self.metadata_dir = f".{self.name}"
        if not self.process_name:
            self.process_name = Path(self.executable).name

    def init_command(self) -> list[str]:
        return [self.executable, "init"]

    def add_command(self, paths: list[str]) -> list[str]:
        return [self.executable, "add", *paths]

    def commit_command(self, message: str) -> list[str]:
        return [self.executable, "commit", "-m", message]

    def version_command(self) -> list[str]:
        return [self.executable, *self.version_args]


def default_candidate() -> ToolDef:
    return ToolDef(name="blaze")


def default_baseline() -> ToolDef:
    return ToolDef(
        name="git",
        setup_commands=[
            ["git", "config", "user.email", "benchmark@versus.invalid"],
            ["git", "config", "user.name", "Benchmark Suite"],
        ],
    )


@dataclass
class OperationDef:
    """A tracked operation and how many trials it gets."""

    operation: Operation
    runs: int
    # Re-establish preconditions (fresh staged changes) before every
    # trial after the first.
    restage: bool = False


def default_operations() -> list[OperationDef]:
    return [
        OperationDef(Operation.ADD, runs=3),
        OperationDef(Operation.COMMIT, runs=2, restage=True),
    ]


# ---------------------------------------------------------------------------
# Insight configuration
# ---------------------------------------------------------------------------


def default_category_groups() -> dict[str, list[Category]]:
    return {
        "Small/medium files": [Category.SMALL, Category.MEDIUM],
        "Large files": [Category.LARGE_SCALE, Category.LARGE_FILES, Category.HUGE_FILES],
    }


@dataclass
class InsightConfig:
    """Thresholds and partitions used by the insight synthesizer."""

    # Candidate win rate (percent) above which a strength is reported.
    strength_threshold: int = 70
    # Candidate win rate (percent) below which a caveat is reported.
    caveat_threshold: int = 30
    category_groups: dict[str, list[Category]] = field(default_factory=default_category_groups)


# ---------------------------------------------------------------------------
# HarnessConfig
# ---------------------------------------------------------------------------


@dataclass
class HarnessConfig:
    """Resolved configuration for a harness run."""

    scenarios: list[Scenario] = field(default_factory=lambda: list(DEFAULT_SCENARIOS))
    candidate: ToolDef = field(default_factory=default_candidate)
    baseline: ToolDef = field(default_factory=default_baseline)
    operations: list[OperationDef] = field(default_factory=default_operations)
    insights: InsightConfig = field(default_factory=InsightConfig)

    timeout: int = 600  # Per-command timeout in seconds
    sample_interval_s: float = 0.05
    commit_message: str = "Test commit"

    work_dir: Path = field(default_factory=lambda: Path("perf_analysis"))
    results_log: Path = field(default_factory=lambda: Path("performance_results.log"))

    @property
    def tools(self) -> tuple[ToolDef, ToolDef]:
        """(baseline, candidate) in execution order."""
        return (self.baseline, self.candidate)

    def runs_for(self, operation: Operation) -> int:
        for op in self.operations:
            if op.operation is operation:
                return op.runs
        return 0


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: HarnessConfig) -> list[ValidationError]:
    """Validate a harness configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if not config.scenarios:
        errors.append(ValidationError(field="scenarios", message="No scenarios defined."))

    seen_keys: set[str] = set()
    for idx, scenario in enumerate(config.scenarios):
        if scenario.file_count <= 0:
            errors.append(
                ValidationError(
                    field=f"scenarios[{idx}].file_count",
                    message=f"File count must be positive (got {scenario.file_count}).",
                )
            )
        try:
            parse_size(scenario.file_size)
        except ValueError as exc:
            errors.append(ValidationError(field=f"scenarios[{idx}].file_size", message=str(exc)))
        if scenario.key in seen_keys:
            errors.append(
                ValidationError(
                    field=f"scenarios[{idx}]",
                    message=f"Duplicate scenario '{scenario.key}'; later results would be lost.",
                )
            )
        seen_keys.add(scenario.key)

    if config.candidate.name == config.baseline.name:
        errors.append(
            ValidationError(
                field="candidate.name",
                message=f"Candidate and baseline must differ (both '{config.candidate.name}').",
            )
        )
    if config.candidate.metadata_dir == config.baseline.metadata_dir:
        errors.append(
            ValidationError(
                field="candidate.metadata_dir",
                message="Candidate and baseline share a metadata directory.",
                severity="warning",
            )
        )

    tracked = [op.operation for op in config.operations]
    for required in (Operation.ADD, Operation.COMMIT):
        if required not in tracked:
            errors.append(
                ValidationError(
                    field="operations",
                    message=f"Operation {required.value} is not tracked.",
                )
            )
    for op in config.operations:
        if op.operation is Operation.STORAGE:
            errors.append(
                ValidationError(
                    field="operations",
                    message="STORAGE is measured once per scenario and cannot be timed.",
                )
            )
        if op.runs < 1:
            errors.append(
                ValidationError(
                    field=f"operations.{op.operation.value}.runs",
                    message=f"Need at least 1 trial (got {op.runs}).",
                )
            )

    if config.timeout <= 0:
        errors.append(
            ValidationError(
                field="timeout",
                message=f"Timeout must be positive (got {config.timeout}).",
            )
        )

    if config.sample_interval_s <= 0:
        errors.append(
            ValidationError(
                field="sample_interval",
                message=f"Sample interval must be positive (got {config.sample_interval_s}).",
            )
        )

    ins = config.insights
    if not 0 <= ins.caveat_threshold <= ins.strength_threshold <= 100:
        errors.append(
            ValidationError(
                field="insights",
                message=(
                    "Thresholds must satisfy 0 <= caveat <= strength <= 100 "
                    f"(got caveat={ins.caveat_threshold}, strength={ins.strength_threshold})."
                ),
            )
        )

    return errors


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a harness profile from a YAML file.

    Profile format::

        timeout: 300
        sample_interval: 0.05
        scenarios:
          - {file_count: 10, file_size: 1KB, description: "Small", category: SMALL}
        candidate:
          name: blaze
          metadata_dir: .blaze
        baseline:
          name: git
          setup_commands:
            - [git, config, user.email, bench@example.com]
        operations:
          ADD: {runs: 3}
          COMMIT: {runs: 2, restage: true}
        insights:
          strength_threshold: 70
          caveat_threshold: 30
          category_groups:
            Small files: [SMALL, MEDIUM]

    Returns:
        The parsed YAML as a dict.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


def _parse_category(value: Any) -> Category:
    try:
        return Category(str(value).upper())
    except ValueError:
        valid = ", ".join(c.value for c in Category)
        raise ValueError(f"Unknown category '{value}'. Valid: {valid}") from None


def _parse_scenario(data: Any) -> Scenario:
    if isinstance(data, str):
        # "10,1KB,Small files,SMALL": the compact tuple form.
        parts = [p.strip() for p in data.split(",")]
        if len(parts) != 4:
            raise ValueError(f"Scenario string must have 4 fields: '{data}'")
        data = dict(zip(("file_count", "file_size", "description", "category"), parts))
    if not isinstance(data, dict):
        raise ValueError(f"Scenario must be a mapping or string, got {type(data).__name__}")
    try:
        return Scenario(
            file_count=int(data["file_count"]),
            file_size=str(data["file_size"]),
            description=str(data.get("description", "")),
            category=_parse_category(data["category"]),
        )
    except KeyError as exc:
        raise ValueError(f"Scenario is missing field {exc}") from None


def _parse_tool(data: Any, default: ToolDef) -> ToolDef:
    if data is None:
        return default
    if isinstance(data, str):
        return _parse_tool({"name": data}, default)
    if not isinstance(data, dict):
        raise ValueError(f"Tool definition must be a mapping, got {type(data).__name__}")

    name = data.get("name", default.name)
    same_tool = name == default.name
    setup = data.get("setup_commands", default.setup_commands if same_tool else [])
    if not isinstance(setup, list) or not all(isinstance(c, list) for c in setup):
        raise ValueError(f"Tool '{name}': setup_commands must be a list of argument lists")

    return ToolDef(
        name=name,
        executable=data.get("executable", default.executable if same_tool else ""),
        metadata_dir=data.get("metadata_dir", default.metadata_dir if same_tool else ""),
        process_name=data.get("process_name", ""),
        setup_commands=[[str(arg) for arg in cmd] for cmd in setup],
        version_args=list(data.get("version_args", ["--version"])),
    )


def _parse_operations(data: Any) -> list[OperationDef]:
    if not isinstance(data, dict):
        raise ValueError("Profile 'operations' must be a mapping of OPERATION -> settings")
    defaults = {op.operation: op for op in default_operations()}
    ops: list[OperationDef] = []
    for name, settings in data.items():
        try:
            operation = Operation(str(name).upper())
        except ValueError:
            raise ValueError(f"Unknown operation '{name}'") from None
        settings = settings or {}
        base = defaults.get(operation, OperationDef(operation, runs=1))
        ops.append(
            OperationDef(
                operation=operation,
                runs=int(settings.get("runs", base.runs)),
                restage=bool(settings.get("restage", base.restage)),
            )
        )
    return ops


def _parse_insights(data: Any) -> InsightConfig:
    if not isinstance(data, dict):
        raise ValueError("Profile 'insights' must be a mapping")
    cfg = InsightConfig()
    if "strength_threshold" in data:
        cfg.strength_threshold = int(data["strength_threshold"])
    if "caveat_threshold" in data:
        cfg.caveat_threshold = int(data["caveat_threshold"])
    if "category_groups" in data:
        groups = data["category_groups"] or {}
        if not isinstance(groups, dict):
            raise ValueError("insights.category_groups must be a mapping of label -> categories")
        cfg.category_groups = {
            str(label): [_parse_category(c) for c in cats] for label, cats in groups.items()
        }
    return cfg


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> HarnessConfig:
    """Build a HarnessConfig from a parsed YAML profile.

    CLI overrides take precedence over profile values for timeout,
    work_dir and results_log.
    """
    cli = cli_overrides or {}
    config = HarnessConfig()

    if "scenarios" in profile_data:
        scenarios = profile_data["scenarios"]
        if not isinstance(scenarios, list):
            raise ValueError("Profile 'scenarios' must be a list")
        config.scenarios = [_parse_scenario(s) for s in scenarios]

    config.candidate = _parse_tool(profile_data.get("candidate"), config.candidate)
    config.baseline = _parse_tool(profile_data.get("baseline"), config.baseline)

    if "operations" in profile_data:
        config.operations = _parse_operations(profile_data["operations"])
    if "insights" in profile_data:
        config.insights = _parse_insights(profile_data["insights"])

    timeout = cli.get("timeout")
    if timeout is None:
        timeout = profile_data.get("timeout", config.timeout)
    config.timeout = int(timeout)
    config.sample_interval_s = float(
        profile_data.get("sample_interval", config.sample_interval_s)
    )
    config.commit_message = str(profile_data.get("commit_message", config.commit_message))

    if cli.get("work_dir"):
        config.work_dir = Path(cli["work_dir"])
    elif profile_data.get("work_dir"):
        config.work_dir = Path(profile_data["work_dir"])

    if cli.get("results_log"):
        config.results_log = Path(cli["results_log"])
    elif profile_data.get("results_log"):
        config.results_log = Path(profile_data["results_log"])

    return config


# ---------------------------------------------------------------------------
# Quick mode helper
# ---------------------------------------------------------------------------


def quick_config(config: HarnessConfig) -> HarnessConfig:
    """Apply quick mode settings for rapid iteration.

    Keeps only SMALL and MEDIUM scenarios and caps every operation at
    two trials.
    """
    config.scenarios = [
        s for s in config.scenarios if s.category in (Category.SMALL, Category.MEDIUM)
    ]
    config.operations = [replace(op, runs=min(op.runs, 2)) for op in config.operations]
    return config
