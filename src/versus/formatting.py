"""Shared text formatting helpers for versus.

Provides functions for formatting durations, sizes, tables
and section headers used by the report renderer and the CLI.
"""

from __future__ import annotations


def format_ms(ms: int | None) -> str:
    """Format a millisecond duration: ``'850ms'``, ``'12.40s'``, ``'2m 05s'``."""
    if ms is None:
        return "N/A"
    if ms < 1000:
        return f"{ms}ms"
    seconds = ms / 1000
    if seconds < 60:
        return f"{seconds:.2f}s"
    total = int(seconds)
    return f"{total // 60}m {total % 60:02d}s"


def format_size(num_bytes: int) -> str:
    """Format a byte count with the largest whole binary unit.

    Examples: ``'512B'``, ``'10KB'``, ``'1MB'``, ``'1GB'``.
    """
    for unit, factor in (("GB", 1024**3), ("MB", 1024**2), ("KB", 1024)):
        if num_bytes >= factor:
            return f"{num_bytes // factor}{unit}"
    return f"{num_bytes}B"


def format_table(
    headers: list[str],
    rows: list[list[str]],
    *,
    alignments: list[str] | None = None,
    max_col_width: dict[int, int] | None = None,
    indent: int = 2,
    separator: str = " │ ",
) -> str:
    """Format a list of rows as an aligned text table.

    Auto-calculates column widths from content. Truncates columns that
    exceed *max_col_width* (with ``'...'`` suffix). Right-aligns columns
    marked ``'r'`` in *alignments*.  A rule line separates the header
    from the rows.

    Args:
        headers: Column header strings.
        rows: List of rows, each a list of cell strings.
        alignments: Per-column alignment: ``'l'``, ``'r'``, or ``'c'``.
        max_col_width: Column index to max width mapping.
        indent: Number of leading spaces per line.
        separator: Text placed between columns.

    Returns:
        The formatted table as a string.
    """
    if not headers:
        return ""

    ncols = len(headers)
    if alignments is None:
        alignments = ["l"] * ncols
    alignments = list(alignments)
    while len(alignments) < ncols:
        alignments.append("l")

    max_widths = max_col_width or {}

    proc_headers = list(headers)
    proc_rows: list[list[str]] = []
    for row in rows:
        padded = list(row) + [""] * (ncols - len(row))
        proc_rows.append(padded[:ncols])

    for ci, max_w in max_widths.items():
        if ci < ncols:
            proc_headers[ci] = truncate(proc_headers[ci], max_w)
            for row in proc_rows:
                row[ci] = truncate(row[ci], max_w)

    widths = [len(h) for h in proc_headers]
    for row in proc_rows:
        for ci, cell in enumerate(row):
            widths[ci] = max(widths[ci], len(cell))

    prefix = " " * indent

    def _format_cell(text: str, width: int, align: str) -> str:
        if align == "r":
            return text.rjust(width)
        if align == "c":
            return text.center(width)
        return text.ljust(width)

    lines: list[str] = []
    header_line = separator.join(
        _format_cell(proc_headers[i], widths[i], alignments[i]) for i in range(ncols)
    )
    lines.append((prefix + header_line).rstrip())

    rule_joint = separator.replace(" ", "─").replace("│", "┼")
    lines.append(prefix + rule_joint.join("─" * w for w in widths))

    for row in proc_rows:
        row_line = separator.join(
            _format_cell(row[i], widths[i], alignments[i]) for i in range(ncols)
        )
        lines.append((prefix + row_line).rstrip())

    return "\n".join(lines)


def format_section_header(title: str, width: int = 60) -> str:
    """Format a section header: ``'▶ Title'`` over a rule line."""
    return f"▶ {title}\n" + "─" * width


def format_banner(title: str, width: int = 80) -> str:
    """Format a centred title between two ``=`` rules."""
    rule = "=" * width
    return f"{rule}\n{title.center(width).rstrip()}\n{rule}"


def truncate(text: str, max_len: int, suffix: str = "...") -> str:
    """Truncate text to *max_len*, adding *suffix* if truncated."""
    if len(text) <= max_len:
        return text
    if max_len <= len(suffix):
        return suffix[:max_len]
    return text[: max_len - len(suffix)] + suffix
