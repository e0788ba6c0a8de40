"""CLI command for diffing two images."""

from pathlib import Path
from typing import Optional

import typer

from container_diff.cli.utils import run_workflow, selected_analyzers, verbose_output


def diff_cmd(
    ctx: typer.Context,
    image1: str = typer.Argument(..., help="First (older) image"),
    image2: str = typer.Argument(..., help="Second (newer) image"),
    apt: bool = typer.Option(False, "--apt", "-a", help="Diff apt packages"),
    node: bool = typer.Option(False, "--node", "-n", help="Diff node packages"),
    pip: bool = typer.Option(False, "--pip", "-p", help="Diff pip packages"),
    file: bool = typer.Option(False, "--file", "-f", help="Diff the filesystem"),
    history: bool = typer.Option(False, "--history", "-d", help="Diff the build history"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output JSON instead of tables"),
    save: bool = typer.Option(False, "--save", "-s", help="Keep the extracted image filesystems"),
    eng: bool = typer.Option(False, "--eng", "-e", help="Use the Docker Engine API for local images"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to a configuration file"),
) -> None:
    """
    Compare two images.

    Reports what was added, removed or changed between two images for
    each selected analyzer. Images may be local IDs, registry URLs or
    docker save tarballs, in any combination.

    Example:
        container-diff diff gcr.io/google-appengine/debian11:latest gcr.io/google-appengine/debian12:latest --apt --file
    """
    analyzers = selected_analyzers(apt, node, pip, file, history)
    run_workflow(
        config_path,
        analyzers,
        json_output,
        save,
        eng,
        verbose_output(ctx),
        lambda orchestrator: orchestrator.diff(image1, image2),
    )
