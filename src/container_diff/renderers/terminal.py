"""Terminal renderer for container-diff output."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from container_diff.models.filesystem import DirectoryEntry
from container_diff.models.image import LayerCommand
from container_diff.models.options import OutputFormat
from container_diff.models.packages import PackageRecord
from container_diff.models.report import AnalysisReport
from container_diff.models.results import (
    AnalyzeResult,
    DiffResult,
    FileAnalyzeResult,
    FileDiffResult,
    HistoryAnalyzeResult,
    HistoryDiffResult,
    PackageAnalyzeResult,
    PackageDiffResult,
)
from container_diff.renderers.base import RenderContext, format_size


class TerminalRenderer:
    """Renderer for rich terminal output.

    Prints one section per analyzer, in alphabetical order, followed by
    any analyzer failures.

    Example:
        renderer = TerminalRenderer()
        renderer.render(report, context)
    """

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the terminal renderer.

        Args:
            console: Rich console to use. Creates a new one if None.
        """
        self._console = console or Console()

    @property
    def format(self) -> OutputFormat:
        """The output format this renderer produces."""
        return OutputFormat.TEXT

    def render(self, report: AnalysisReport, context: RenderContext) -> str:
        """Render a report to the terminal.

        Note: This method prints to the console and returns an empty string.
        For capturing output, use Console.capture().

        Args:
            report: The report to render
            context: Rendering context

        Returns:
            Empty string (output is printed to console)
        """
        for name, result in report.ordered():
            self._console.print()
            self._console.print(f"[bold]-----{escape(name)}-----[/bold]")
            if isinstance(result, DiffResult):
                self._render_diff(result, context)
            else:
                self._render_analysis(result, context)

        if report.failures:
            self._console.print()
            self._console.print("[bold red]Failed analyzers[/bold red]")
            for failure in report.failures:
                self._console.print(f"  [red]x[/red] {escape(failure.analyzer)}: {escape(str(failure.error))}")

        for root in context.retained:
            self._console.print(f"[dim]Image filesystem retained at {escape(str(root))}[/dim]")

        return ""

    def _render_analysis(self, result: AnalyzeResult, context: RenderContext) -> None:
        if isinstance(result, PackageAnalyzeResult):
            records = [record for versions in result.analysis.values() for record in versions.values()]
            title = f"Packages found in {result.image}"
            self._print_packages(title, records, context)
        elif isinstance(result, FileAnalyzeResult):
            self._print_entries(f"Files found in {result.image}", result.analysis)
        elif isinstance(result, HistoryAnalyzeResult):
            self._print_history(f"Docker history lines found in {result.image}", result.analysis)
        else:
            self._console.print_json(result.model_dump_json())

    def _render_diff(self, result: DiffResult, context: RenderContext) -> None:
        if result.is_empty:
            self._console.print(
                f"No {escape(result.analyzer)} differences between {escape(result.image1)} and {escape(result.image2)}"
            )
            return

        if isinstance(result, PackageDiffResult):
            self._print_packages(f"Packages found only in {result.image1}", result.removed, context)
            self._print_packages(f"Packages found only in {result.image2}", result.added, context)
            if result.changed:
                table = Table(title=escape(f"Packages with different metadata in {result.image1} and {result.image2}"))
                table.add_column("Name", style="bold")
                table.add_column("Version")
                table.add_column("Size (image1)", justify="right")
                table.add_column("Size (image2)", justify="right")
                for change in result.changed:
                    table.add_row(
                        escape(change.name),
                        escape(change.version),
                        format_size(change.before.size),
                        format_size(change.after.size),
                    )
                self._console.print(table)
        elif isinstance(result, FileDiffResult):
            self._print_entries(f"Files found only in {result.image1}", result.removed)
            self._print_entries(f"Files found only in {result.image2}", result.added)
            if result.changed:
                table = Table(title="Files found in both images with different content")
                table.add_column("Path", style="bold")
                table.add_column("Size (image1)", justify="right")
                table.add_column("Size (image2)", justify="right")
                for change in result.changed:
                    table.add_row(
                        escape(change.path),
                        format_size(change.before.size),
                        format_size(change.after.size),
                    )
                self._console.print(table)
        elif isinstance(result, HistoryDiffResult):
            self._print_history(f"Docker history lines found only in {result.image1}", result.removed)
            self._print_history(f"Docker history lines found only in {result.image2}", result.added)
        else:
            self._console.print_json(result.model_dump_json())

    def _print_packages(self, title: str, records: list[PackageRecord], context: RenderContext) -> None:
        if not records:
            self._console.print(f"{escape(title)}: [dim]None[/dim]")
            return

        table = Table(title=escape(title))
        table.add_column("Name", style="bold")
        table.add_column("Version")
        table.add_column("Size", justify="right")
        if context.verbose:
            table.add_column("Location", style="dim")

        for record in records:
            row = [escape(record.name), escape(record.version), format_size(record.size)]
            if context.verbose:
                row.append(escape(record.location or "-"))
            table.add_row(*row)
        self._console.print(table)

    def _print_entries(self, title: str, entries: list[DirectoryEntry]) -> None:
        if not entries:
            self._console.print(f"{escape(title)}: [dim]None[/dim]")
            return

        table = Table(title=escape(title))
        table.add_column("Path", style="bold")
        table.add_column("Size", justify="right")
        for entry in entries:
            path = entry.path + "/" if entry.is_dir else entry.path
            if entry.link_target is not None:
                path = f"{path} -> {entry.link_target}"
            table.add_row(escape(path), format_size(entry.size))
        self._console.print(table)

    def _print_history(self, title: str, commands: list[LayerCommand]) -> None:
        if not commands:
            self._console.print(f"{escape(title)}: [dim]None[/dim]")
            return

        table = Table(title=escape(title))
        table.add_column("Command")
        table.add_column("Size", justify="right")
        for command in commands:
            table.add_row(escape(command.command), format_size(command.size))
        self._console.print(table)
