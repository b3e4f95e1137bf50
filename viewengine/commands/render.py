"""Render command - render one template with data from the command line"""

from __future__ import annotations

import sys
from pathlib import Path

from .utils import build_config, build_engine, load_data, parse_set_values


def render_command(
    directory: Path,
    name: str,
    extension: str | None = None,
    layout: str | None = None,
    config_file: Path | None = None,
    data_file: Path | None = None,
    values: list[str] | None = None,
    left: str | None = None,
    right: str | None = None,
    strict: bool | None = None,
    output: Path | None = None,
    verbose: bool = False,
) -> None:
    """Render template ``name`` to stdout or ``output``.

    Values from --set override values from the data file.
    """
    config = build_config(
        directory,
        extension,
        layout,
        config_file,
        left_delim=left,
        right_delim=right,
        strict=strict,
    )
    engine = build_engine(config, verbose)

    binding = load_data(data_file)
    binding.update(parse_set_values(values))

    if output is None:
        engine.render(sys.stdout, name, binding)
        sys.stdout.write("\n")
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", encoding="utf-8") as f:
        engine.render(f, name, binding)
