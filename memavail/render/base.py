"""
memavail.render.base
AUTHOR: carter-vin

Renderer interface
"""

from __future__ import annotations

from dataclasses import dataclass

from memavail.report import FreeReport

SCALE_BYTES = 1
SCALE_KB = 1024
SCALE_MB = 1024 * 1024
SCALE_GB = 1024 * 1024 * 1024


@dataclass(frozen=True)
class RenderOptions:
    """
    Display options
    - scale: bytes per displayed unit
    - show_percent: cells as a percentage of the row total
    - show_extended: append the extended sections
    """

    scale: int = SCALE_KB
    show_percent: bool = False
    show_extended: bool = False


class Renderer:
    name: str = "base"

    def render(self, report: FreeReport, *, options: RenderOptions) -> str:
        raise NotImplementedError
