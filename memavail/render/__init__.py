"""memavail.render registry."""

from __future__ import annotations

from memavail.render.json import JsonRenderer
from memavail.render.text import TextRenderer

_RENDERERS = {
    "json": JsonRenderer(),
    "text": TextRenderer(),
}


def get_renderer(name: str):
    if name not in _RENDERERS:
        raise ValueError(f"unknown renderer: {name}")
    return _RENDERERS[name]


def renderer_names() -> list[str]:
    return sorted(_RENDERERS)
