"""Base renderer protocol and types."""

from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from container_diff.models.options import OutputFormat
from container_diff.models.report import AnalysisReport


class RenderContext(BaseModel):
    """Context for rendering operations."""

    model_config = {"frozen": True}

    format: OutputFormat = Field(default=OutputFormat.TEXT, description="Output format")
    verbose: bool = Field(default=False, description="Show package locations (text only)")
    color: bool = Field(default=True, description="Enable color output (text only)")
    retained: list[Path] = Field(default_factory=list, description="Retained snapshot roots to report")


@runtime_checkable
class Renderer(Protocol):
    """Protocol for output renderers.

    Renderers turn an AnalysisReport into human-readable or
    machine-readable output. Both built-in renderers walk the report's
    alphabetical views, never its raw result list.

    Example:
        class CountRenderer:
            @property
            def format(self) -> OutputFormat:
                return OutputFormat.TEXT

            def render(self, report: AnalysisReport, context: RenderContext) -> str:
                return f"{len(report.results)} result(s)"
    """

    @property
    def format(self) -> OutputFormat:
        """The output format this renderer produces."""
        ...

    def render(self, report: AnalysisReport, context: RenderContext) -> str:
        """Render a report to a string.

        Args:
            report: The report to render
            context: Rendering context with options

        Returns:
            Rendered string output
        """
        ...


def format_size(size: int | None) -> str:
    """Format a byte count for display, using decimal units."""
    if size is None:
        return "unknown"
    value = float(size)
    for unit in ("B", "kB", "MB", "GB"):
        if value < 1000 or unit == "GB":
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1000
    return f"{size} B"
