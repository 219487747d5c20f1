"""Environment characterization and prerequisite checks.

Captures the host (CPU, memory, OS, Python) and the versions of the two
measured tools so the report can be put in context, and verifies before
any scenario runs that both tools and the process-table query are
available.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
import socket
import subprocess
import time
from dataclasses import dataclass

import psutil

from versus.bench.config import ToolDef
from versus.bench.errors import PrerequisiteMissing

log = logging.getLogger("versus")


# ---------------------------------------------------------------------------
# SystemProfile
# ---------------------------------------------------------------------------


@dataclass
class SystemProfile:
    """Characterization of the machine running the harness."""

    cpu_model: str = "unknown"
    cpu_cores_physical: int = 0
    cpu_cores_logical: int = 0
    ram_total_gb: float = 0.0
    ram_available_gb: float = 0.0
    os_name: str = ""
    os_release: str = ""
    host_python_version: str = ""
    load_avg_1m: float = 0.0
    hostname: str = ""
    timestamp: str = ""


def capture_system_profile() -> SystemProfile:
    """Capture the current system profile.  Never raises."""
    profile = SystemProfile(
        cpu_model=platform.processor() or platform.machine() or "unknown",
        cpu_cores_logical=os.cpu_count() or 0,
        os_name=platform.system(),
        os_release=platform.release(),
        host_python_version=platform.python_version(),
        hostname=socket.gethostname(),
        timestamp=time.strftime("%Y-%m-%d %H:%M:%S"),
    )

    try:
        profile.cpu_cores_physical = psutil.cpu_count(logical=False) or 0
        mem = psutil.virtual_memory()
        profile.ram_total_gb = round(mem.total / 1024**3, 1)
        profile.ram_available_gb = round(mem.available / 1024**3, 1)
    except (psutil.Error, OSError) as exc:
        log.debug("Could not read CPU/memory info: %s", exc)

    try:
        profile.load_avg_1m = round(os.getloadavg()[0], 2)
    except (AttributeError, OSError):
        pass

    return profile


# ---------------------------------------------------------------------------
# Tool profiles
# ---------------------------------------------------------------------------


@dataclass
class ToolProfile:
    """A measured tool as found on this machine."""

    name: str
    path: str
    version: str = "unknown"


def capture_tool_profile(tool: ToolDef, *, timeout: float = 10) -> ToolProfile:
    """Resolve *tool* on PATH and query its version string."""
    path = shutil.which(tool.executable) or tool.executable
    profile = ToolProfile(name=tool.name, path=path)
    try:
        proc = subprocess.run(
            tool.version_command(),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        output = (proc.stdout or proc.stderr).strip()
        if proc.returncode == 0 and output:
            profile.version = output.splitlines()[0]
    except (subprocess.TimeoutExpired, OSError) as exc:
        log.warning("Could not query %s version: %s", tool.name, exc)
    return profile


# ---------------------------------------------------------------------------
# Prerequisites
# ---------------------------------------------------------------------------


def check_prerequisites(tools: list[ToolDef]) -> None:
    """Fail fast if anything the harness depends on is unavailable.

    Raises:
        PrerequisiteMissing: If a tool executable is not found, or the
            process table cannot be queried for memory sampling.
    """
    missing = [t for t in tools if shutil.which(t.executable) is None]
    if missing:
        names = ", ".join(f"{t.name} ({t.executable})" for t in missing)
        raise PrerequisiteMissing(f"Command not found on PATH: {names}")

    try:
        procs = list(psutil.process_iter(["name", "memory_info"]))
    except (psutil.Error, OSError) as exc:
        raise PrerequisiteMissing(f"Cannot query the process table: {exc}") from exc
    if not procs:
        raise PrerequisiteMissing("Process table query returned no processes")


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def format_system_profile(profile: SystemProfile) -> str:
    """Format a system profile for terminal display."""
    cores = f"{profile.cpu_cores_physical} cores"
    if profile.cpu_cores_logical != profile.cpu_cores_physical:
        cores += f" / {profile.cpu_cores_logical} threads"
    lines = [
        f"CPU:      {profile.cpu_model} ({cores})",
        f"RAM:      {profile.ram_total_gb:.1f} GB total, "
        f"{profile.ram_available_gb:.1f} GB available",
        f"OS:       {profile.os_name} {profile.os_release}",
        f"Load:     {profile.load_avg_1m}",
        f"Host:     Python {profile.host_python_version} on {profile.hostname}",
    ]
    return "\n".join(lines)
