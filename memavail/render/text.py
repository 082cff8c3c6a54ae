"""
memavail.render.text
AUTHOR: carter-vin

free(1)-style text renderer
"""

from __future__ import annotations

from memavail.render.base import Renderer, RenderOptions
from memavail.render.utils import format_cell
from memavail.report import EXTENDED_CACHE_ROWS, EXTENDED_ROWS, MEM_COLUMNS, SWAP_COLUMNS, FreeReport

_MEM_ROW_FMT = "%-7s" + " %10s" * len(MEM_COLUMNS)
_SWAP_ROW_FMT = "%-7s" + " %10s" * len(SWAP_COLUMNS)
_AVAIL_ROW_FMT = "%-18s %10s %10s"
_EXTENDED_ROW_FMT = "%-18s %10s"


class TextRenderer(Renderer):
    name = "text"

    def render(self, report: FreeReport, *, options: RenderOptions) -> str:
        mem_total = report.mem["total"]
        swap_total = report.swap["total"]

        def cell(value, total, column: str = "") -> str:
            return format_cell(value, total, is_total=column == "total", options=options)

        lines: list[str] = [
            _MEM_ROW_FMT % ("", *MEM_COLUMNS),
            _MEM_ROW_FMT % ("Mem:", *(cell(report.mem[c], mem_total, c) for c in MEM_COLUMNS)),
            _AVAIL_ROW_FMT
            % (
                "  -/+ avail",
                cell(report.avail["used"], mem_total),
                cell(report.avail["free"], mem_total),
            ),
            _SWAP_ROW_FMT
            % ("Swap:", *(cell(report.swap[c], swap_total, c) for c in SWAP_COLUMNS)),
        ]

        if not options.show_extended:
            return "\n".join(lines)

        lines.append("")
        lines.append("Extended memory usage info:")
        for key in EXTENDED_ROWS:
            lines.append(_EXTENDED_ROW_FMT % (f"  {key}", cell(report.extended[key], mem_total)))

        lines.append("")
        lines.append("Extended caches info:")
        for key in EXTENDED_CACHE_ROWS:
            lines.append(
                _EXTENDED_ROW_FMT % (f"  {key}", cell(report.extended_caches[key], mem_total))
            )

        return "\n".join(lines)
