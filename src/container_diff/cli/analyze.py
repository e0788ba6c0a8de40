"""CLI command for analyzing a single image."""

from pathlib import Path
from typing import Optional

import typer

from container_diff.cli.utils import run_workflow, selected_analyzers, verbose_output


def analyze_cmd(
    ctx: typer.Context,
    image: str = typer.Argument(..., help="Image ID, registry URL or path to a docker save tarball"),
    apt: bool = typer.Option(False, "--apt", "-a", help="Analyze apt packages"),
    node: bool = typer.Option(False, "--node", "-n", help="Analyze node packages"),
    pip: bool = typer.Option(False, "--pip", "-p", help="Analyze pip packages"),
    file: bool = typer.Option(False, "--file", "-f", help="Analyze the filesystem"),
    history: bool = typer.Option(False, "--history", "-d", help="Analyze the build history"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output JSON instead of tables"),
    save: bool = typer.Option(False, "--save", "-s", help="Keep the extracted image filesystem"),
    eng: bool = typer.Option(False, "--eng", "-e", help="Use the Docker Engine API for local images"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to a configuration file"),
) -> None:
    """
    Analyze a single image.

    Lists the packages, files or build history of an image. Without any
    analyzer flag every analyzer runs.

    Example:
        container-diff analyze gcr.io/google-appengine/python:latest --pip
    """
    analyzers = selected_analyzers(apt, node, pip, file, history)
    run_workflow(
        config_path,
        analyzers,
        json_output,
        save,
        eng,
        verbose_output(ctx),
        lambda orchestrator: orchestrator.analyze(image),
    )
