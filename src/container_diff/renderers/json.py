"""JSON renderer for container-diff output."""

from __future__ import annotations

import json

from container_diff.models.options import OutputFormat
from container_diff.models.report import AnalysisReport
from container_diff.renderers.base import RenderContext


class JSONRenderer:
    """Renderer for JSON output format.

    Emits one JSON array holding one object per analyzer, ordered by
    analyzer name. Failed analyzers are not part of the array; the CLI
    reports them separately.

    Example:
        renderer = JSONRenderer()
        print(renderer.render(report, RenderContext(format=OutputFormat.JSON)))
    """

    @property
    def format(self) -> OutputFormat:
        """The output format this renderer produces."""
        return OutputFormat.JSON

    def render(self, report: AnalysisReport, context: RenderContext) -> str:
        """Render a report to a JSON string.

        Args:
            report: The report to render
            context: Rendering context with options

        Returns:
            JSON string
        """
        return json.dumps(
            report.structured(),
            indent=2,
            ensure_ascii=False,
        )
