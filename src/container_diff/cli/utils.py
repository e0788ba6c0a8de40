"""Shared utilities for CLI commands."""

from __future__ import annotations

import contextlib
from pathlib import Path
from typing import Callable

import typer
from rich.console import Console
from rich.markup import escape

from container_diff.core.orchestrator import Orchestrator, RunOutcome
from container_diff.models.options import OutputFormat, RetrievalMode, RunOptions
from container_diff.renderers import JSONRenderer, RenderContext, TerminalRenderer
from container_diff.utils.config import ContainerDiffConfig, get_config, load_config, set_config
from container_diff.utils.errors import ContainerDiffError, ResolutionFailure

# Shared console instances; status and errors go to stderr so JSON on stdout stays clean
console = Console()
err_console = Console(stderr=True)


def selected_analyzers(apt: bool, node: bool, pip: bool, file: bool, history: bool) -> list[str]:
    """Translate analyzer flags into names; no flags selects every analyzer."""
    flags = {"apt": apt, "node": node, "pip": pip, "file": file, "history": history}
    return [name for name, enabled in flags.items() if enabled]


def load_cli_config(config_path: Path | None) -> ContainerDiffConfig:
    """Load configuration, installing an explicit file as the global config."""
    if config_path is None:
        return get_config()
    config = load_config(config_path)
    set_config(config)
    return config


def build_options(
    config: ContainerDiffConfig,
    analyzers: list[str],
    json_output: bool,
    save: bool,
    eng: bool,
) -> RunOptions:
    """Combine command-line flags with configured defaults."""
    return RunOptions(
        analyzers=analyzers,
        output_format=OutputFormat.JSON if json_output else config.output.default_format,
        persist=save,
        retrieval=RetrievalMode.ENGINE if eng else config.resolver.retrieval,
    )


def verbose_output(ctx: typer.Context) -> bool:
    """Whether the global --verbose flag was given for this invocation."""
    return bool((ctx.obj or {}).get("verbose"))


def fail(error: ContainerDiffError) -> None:
    """Print an error and exit with status 1."""
    err_console.print(f"[red]Error:[/red] {escape(error.message)}")
    if isinstance(error, ResolutionFailure):
        for root in error.retained:
            err_console.print(f"Image filesystem retained at {escape(str(root))}")
    raise typer.Exit(1)


def run_workflow(
    config_path: Path | None,
    analyzers: list[str],
    json_output: bool,
    save: bool,
    eng: bool,
    verbose: bool,
    workflow: Callable[[Orchestrator], RunOutcome],
) -> None:
    """Build an orchestrator, run a workflow and render its report.

    Args:
        config_path: Explicit configuration file, if any
        analyzers: Selected analyzer names
        json_output: Whether --json was given
        save: Whether --save was given
        eng: Whether --eng was given
        verbose: Whether the global --verbose flag was given
        workflow: Calls analyze or diff on the orchestrator
    """
    try:
        config = load_cli_config(config_path)
        options = build_options(config, analyzers, json_output, save, eng)
        orchestrator = Orchestrator(options, config=config)

        status = (
            err_console.status("Retrieving and analyzing images...")
            if err_console.is_terminal
            else contextlib.nullcontext()
        )
        with status:
            outcome = workflow(orchestrator)
    except ContainerDiffError as e:
        fail(e)
        return

    render_outcome(outcome, options, color=config.output.color, verbose=verbose)


def render_outcome(
    outcome: RunOutcome,
    options: RunOptions,
    color: bool = True,
    verbose: bool = False,
) -> None:
    """Write a run's report to stdout in the selected format."""
    report = outcome.report
    context = RenderContext(
        format=options.output_format,
        verbose=verbose,
        color=color,
        retained=outcome.retained,
    )

    if options.output_format == OutputFormat.JSON:
        typer.echo(JSONRenderer().render(report, context))
        for failure in report.failures:
            err_console.print(f"[red]Analyzer {escape(failure.analyzer)} failed:[/red] {escape(str(failure.error))}")
        for root in outcome.retained:
            err_console.print(f"Image filesystem retained at {escape(str(root))}")
    else:
        renderer = TerminalRenderer(console if color else Console(no_color=True))
        renderer.render(report, context)
