"""Output format renderers."""

from container_diff.models.options import OutputFormat
from container_diff.renderers.base import RenderContext, Renderer, format_size
from container_diff.renderers.json import JSONRenderer
from container_diff.renderers.terminal import TerminalRenderer

__all__ = [
    "OutputFormat",
    "RenderContext",
    "Renderer",
    "JSONRenderer",
    "TerminalRenderer",
    "format_size",
]
