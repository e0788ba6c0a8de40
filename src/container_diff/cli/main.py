"""Main CLI entry point for container-diff."""

import typer
from rich.console import Console

from container_diff.cli.analyze import analyze_cmd
from container_diff.cli.diff import diff_cmd

app = typer.Typer(
    name="container-diff",
    help="Analyze and compare container images.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

# Register subcommands
app.command(name="analyze")(analyze_cmd)
app.command(name="diff")(diff_cmd)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and package locations in tables"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output"),
) -> None:
    """
    container-diff: analyze and compare container images.

    - [bold]analyze[/bold]: Inventory one image
    - [bold]diff[/bold]: Compare two images

    Analyzers: apt, node and pip packages, the filesystem, and the
    build history.
    """
    from container_diff.utils.logging import configure_logging

    ctx.obj = {"verbose": verbose}

    if verbose:
        configure_logging(level="DEBUG")
    elif quiet:
        configure_logging(level="WARNING")
    else:
        configure_logging(level="INFO")


@app.command()
def version() -> None:
    """Show the container-diff version."""
    from container_diff import __version__

    console.print(f"container-diff version {__version__}")


if __name__ == "__main__":
    app()
