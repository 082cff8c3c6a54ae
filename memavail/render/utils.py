"""
memavail.render.utils
AUTHOR: carter-vin

Formatting helpers for renderers
"""

from __future__ import annotations

from memavail.render.base import RenderOptions


def format_cell(
    value_kb: int | None,
    total_kb: int | None,
    *,
    is_total: bool,
    options: RenderOptions,
) -> str:
    """
    One report cell

    - kB -> scale, floored like free(1)
    - percentage mode keeps the total column as a raw value
    """
    if value_kb is None:
        return "N/A"

    if not options.show_percent or is_total:
        return str(value_kb * 1024 // options.scale)

    if not total_kb:
        return "-"
    return f"{value_kb / total_kb * 100:.0f}%"


def format_table(rows: list[list[str]]) -> str:
    """
    Left aligned columns separated by two spaces
    """
    if not rows:
        return ""
    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
    lines: list[str] = []
    for row in rows:
        padded = [row[i].ljust(widths[i]) for i in range(len(row))]
        lines.append("  ".join(padded).rstrip())
    return "\n".join(lines)
