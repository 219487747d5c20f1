"""Deterministic fixture generation for scenarios.

Each scenario materializes ``file_count`` files of exactly ``size_bytes``
bytes.  Content rotates on ``index % 3``:

- 0: a highly compressible repeating pattern,
- 1: pseudo-random bytes, base64 encoded,
- 2: a structured record (header metadata, base64 filler wrapped at 80
  columns, footer).

Content is a pure function of the scenario key and file index.  The only
exception is the ``timestamp=`` header line of the structured variant,
whose width is fixed so it never changes the file size.
"""

from __future__ import annotations

import base64
import logging
import os
import random
import shutil
import time
from pathlib import Path
from typing import Iterator

from versus.bench.config import Scenario
from versus.bench.errors import CleanupFailure, FixtureGenerationFailure

log = logging.getLogger("versus")

_CHUNK_BYTES = 1024 * 1024
_LINE_WIDTH = 80
_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


def fixture_dir_name(scenario: Scenario) -> str:
    return f"test_files_{scenario.key}"


def fixture_file_name(scenario: Scenario, index: int) -> str:
    return f"file_{index}_{scenario.file_size}.txt"


# ---------------------------------------------------------------------------
# Content generators (infinite byte streams)
# ---------------------------------------------------------------------------


def _pattern_stream(index: int) -> Iterator[bytes]:
    line = f"PATTERN_{index}_{'A' * 50}\n".encode()
    block = line * max(1, _CHUNK_BYTES // len(line))
    while True:
        yield block


def _random_b64_stream(rng: random.Random, size: int, *, wrap: int = 0) -> Iterator[bytes]:
    # 3 raw bytes encode to 4 characters; keep raw chunks a multiple of
    # 3 (and of the wrap width) so chunk boundaries never insert padding.
    # Chunks are capped at _CHUNK_BYTES but never much larger than *size*.
    raw_len = -(-min(size, _CHUNK_BYTES) // 4) * 3
    if wrap:
        raw_per_line = wrap // 4 * 3
        raw_len = -(-raw_len // raw_per_line) * raw_per_line
    while True:
        encoded = base64.b64encode(rng.randbytes(raw_len))
        if wrap:
            lines = [encoded[i : i + wrap] for i in range(0, len(encoded), wrap)]
            yield b"\n".join(lines) + b"\n"
        else:
            yield encoded


def _structured_header(scenario: Scenario, index: int, timestamp: str) -> bytes:
    return (
        f"# File {index} - Mixed content with headers and data\n"
        f"timestamp={timestamp}\n"
        f"size={scenario.file_size}\n"
        f"index={index}\n"
        "content_start\n"
    ).encode()


_STRUCTURED_FOOTER = b"content_end\n"


def _take(stream: Iterator[bytes], size: int) -> Iterator[bytes]:
    """Yield exactly *size* bytes from *stream*."""
    remaining = size
    while remaining > 0:
        chunk = next(stream)
        if len(chunk) > remaining:
            chunk = chunk[:remaining]
        remaining -= len(chunk)
        yield chunk


def file_content(
    scenario: Scenario,
    index: int,
    *,
    timestamp: str,
) -> Iterator[bytes]:
    """Stream the content of fixture file *index* (1-based).

    The concatenated chunks are exactly ``scenario.size_bytes`` long.
    """
    size = scenario.size_bytes
    rng = random.Random(f"{scenario.key}:{index}")
    variant = index % 3

    if variant == 0:
        yield from _take(_pattern_stream(index), size)
        return
    if variant == 1:
        yield from _take(_random_b64_stream(rng, size), size)
        return

    header = _structured_header(scenario, index, timestamp)
    filler = size - len(header) - len(_STRUCTURED_FOOTER)
    if filler < 0:
        # Too small for the full record: truncate the record itself.
        yield (header + _STRUCTURED_FOOTER)[:size]
        return
    yield header
    yield from _take(_random_b64_stream(rng, filler, wrap=_LINE_WIDTH), filler)
    yield _STRUCTURED_FOOTER


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def build_fixture(
    scenario: Scenario,
    target_dir: Path,
    *,
    timestamp: str | None = None,
) -> Path:
    """Materialize the fixture files for *scenario* under *target_dir*.

    Args:
        scenario: The scenario to build.
        target_dir: Parent directory; files go into
            ``target_dir / test_files_<key>``.
        timestamp: Value of the structured variant's timestamp line.
            Defaults to the current local time.

    Returns:
        The fixture directory.

    Raises:
        FixtureGenerationFailure: If any file could not be written.
    """
    stamp = timestamp or time.strftime(_TIMESTAMP_FORMAT)
    fixture_dir = target_dir / fixture_dir_name(scenario)
    log.info(
        "Creating %d × %s test files in %s...",
        scenario.file_count,
        scenario.file_size,
        fixture_dir,
    )

    try:
        fixture_dir.mkdir(parents=True, exist_ok=True)
        for index in range(1, scenario.file_count + 1):
            path = fixture_dir / fixture_file_name(scenario, index)
            with open(path, "wb") as fh:
                for chunk in file_content(scenario, index, timestamp=stamp):
                    fh.write(chunk)
    except OSError as exc:
        raise FixtureGenerationFailure(
            f"Could not generate fixture for scenario {scenario.key}: {exc}"
        ) from exc

    log.debug("Fixture %s ready (%d bytes)", fixture_dir, scenario.total_bytes)
    return fixture_dir


def fixture_paths(fixture_dir: Path) -> list[Path]:
    """Fixture files in index order."""

    def _index(path: Path) -> int:
        try:
            return int(path.name.split("_")[1])
        except (IndexError, ValueError):
            return 0

    return sorted((p for p in fixture_dir.iterdir() if p.is_file()), key=_index)


def copy_fixture(fixture_dir: Path, repo_dir: Path) -> Path:
    """Duplicate the fixture content into *repo_dir*.

    Each tool gets its own byte-identical copy; the source fixture is
    never shared by reference.

    Raises:
        FixtureGenerationFailure: If the copy fails.
    """
    dest = repo_dir / fixture_dir.name
    try:
        shutil.copytree(fixture_dir, dest)
    except OSError as exc:
        raise FixtureGenerationFailure(
            f"Could not copy fixture into {repo_dir}: {exc}"
        ) from exc
    return dest


def write_revision_file(fixture_dir: Path, revision: int) -> Path:
    """Write a small new file so the next commit has fresh changes.

    Raises:
        FixtureGenerationFailure: If the file cannot be written.
    """
    path = fixture_dir / f"revision_{revision}.txt"
    try:
        path.write_text(f"revision {revision}\n")
    except OSError as exc:
        raise FixtureGenerationFailure(f"Could not write {path}: {exc}") from exc
    return path


# ---------------------------------------------------------------------------
# Cleanup and footprint
# ---------------------------------------------------------------------------


def remove_tree(path: Path) -> None:
    """Remove a directory tree if it exists.

    Raises:
        CleanupFailure: If the tree exists and could not be removed.
    """
    if not path.exists():
        return
    shutil.rmtree(path, ignore_errors=True)
    if path.exists():
        raise CleanupFailure(f"Could not remove {path}")


def directory_size_kb(path: Path) -> int:
    """Disk usage of *path* in KiB, counted like ``du -sk``.

    Returns 0 if *path* does not exist.
    """
    if not path.is_dir():
        return 0
    total = 0
    seen: set[tuple[int, int]] = set()
    for root, dirs, files in os.walk(path):
        for name in dirs + files:
            try:
                st = os.lstat(os.path.join(root, name))
            except OSError:
                continue
            ident = (st.st_dev, st.st_ino)
            if ident in seen:
                continue
            seen.add(ident)
            blocks = getattr(st, "st_blocks", None)
            total += blocks * 512 if blocks is not None else st.st_size
    return total // 1024
