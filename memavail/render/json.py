"""
memavail.render.json
AUTHOR: carter-vin

JSON renderer, values always in kB
"""

from __future__ import annotations

from memavail.render.base import Renderer, RenderOptions
from memavail.report import FreeReport, report_to_json


class JsonRenderer(Renderer):
    name = "json"

    def render(self, report: FreeReport, *, options: RenderOptions) -> str:
        return report_to_json(report)
