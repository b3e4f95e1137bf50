"""List command - show the templates an engine discovers"""

from __future__ import annotations

from pathlib import Path

from rich.table import Table

from .utils import build_config, build_engine, console


def list_command(
    directory: Path,
    extension: str | None = None,
    layout: str | None = None,
    config_file: Path | None = None,
    verbose: bool = False,
) -> None:
    """Load the template tree and print every template name."""
    config = build_config(directory, extension, layout, config_file)
    engine = build_engine(config, verbose)
    engine.load()

    templates = engine.templates
    if not templates:
        console.print("[yellow]No templates found[/yellow]")
        return

    table = Table()
    table.add_column("Name", style="cyan")
    table.add_column("Path")
    if config.layout:
        table.add_column("Layout")

    for name in sorted(templates):
        tmpl = templates[name]
        row = [name, tmpl.path]
        if config.layout:
            row.append(tmpl.layout)
        table.add_row(*row)

    console.print(table)
