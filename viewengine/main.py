"""viewengine CLI Main Entry Point

Usage:
    viewengine list ./views                      # List discovered templates
    viewengine list ./views -l layouts/main      # ... in layout mode
    viewengine render ./views home -s Title=Hi   # Render one template
    viewengine render ./views home -d data.yaml  # Render with a data file
    viewengine --version                         # Show version
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from ._version import __version__
from .commands import list_command, render_command
from .commands.utils import setup_logging

typer_app = typer.Typer(no_args_is_help=True)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"viewengine {__version__}")
        raise typer.Exit()


@typer_app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Load and render directories of Jinja2 templates."""


@typer_app.command("list")
def list_cmd(
    directory: Path = typer.Argument(..., help="Root of the template tree."),
    extension: Optional[str] = typer.Option(
        None, "-e", "--ext", help="Template file extension (default .html)."
    ),
    layout: Optional[str] = typer.Option(
        None, "-l", "--layout", help="Layout template wrapping every page."
    ),
    config_file: Optional[Path] = typer.Option(
        None, "-c", "--config", help="YAML engine config file."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log parsed templates."),
) -> None:
    """List the templates found under DIRECTORY."""
    setup_logging(verbose)
    try:
        list_command(directory, extension, layout, config_file, verbose)
    except Exception as exc:
        typer.secho(f"Error: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)


@typer_app.command("render")
def render_cmd(
    directory: Path = typer.Argument(..., help="Root of the template tree."),
    name: str = typer.Argument(..., help="Template name, e.g. partials/footer."),
    extension: Optional[str] = typer.Option(
        None, "-e", "--ext", help="Template file extension (default .html)."
    ),
    layout: Optional[str] = typer.Option(
        None, "-l", "--layout", help="Layout template wrapping every page."
    ),
    config_file: Optional[Path] = typer.Option(
        None, "-c", "--config", help="YAML engine config file."
    ),
    data_file: Optional[Path] = typer.Option(
        None, "-d", "--data", help="YAML or JSON file with template data."
    ),
    values: Optional[List[str]] = typer.Option(
        None, "-s", "--set", help="Template value as KEY=VALUE (repeatable)."
    ),
    left: Optional[str] = typer.Option(None, "--left", help="Left delimiter."),
    right: Optional[str] = typer.Option(None, "--right", help="Right delimiter."),
    strict: Optional[bool] = typer.Option(
        None, "--strict/--no-strict", help="Fail on undefined variables."
    ),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Write output to file instead of stdout."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log parsed templates."),
) -> None:
    """Render template NAME from DIRECTORY."""
    setup_logging(verbose)
    try:
        render_command(
            directory,
            name,
            extension=extension,
            layout=layout,
            config_file=config_file,
            data_file=data_file,
            values=values,
            left=left,
            right=right,
            strict=strict,
            output=output,
            verbose=verbose,
        )
    except Exception as exc:
        typer.secho(f"Error: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)


def app() -> None:
    """Entry point for the CLI."""
    typer_app()


if __name__ == "__main__":
    app()
