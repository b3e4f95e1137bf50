"""Shared utilities for CLI commands"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from rich.console import Console
from rich.logging import RichHandler

from viewengine.config import EngineConfig
from viewengine.engine import Engine

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the viewengine CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (-v): INFO level - shows each parsed template
    - Debug (VIEWENGINE_DEBUG=1): DEBUG level - shows everything
    """
    debug = bool(os.environ.get("VIEWENGINE_DEBUG"))

    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("viewengine")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False


def build_config(
    directory: Path,
    extension: str | None,
    layout: str | None,
    config_file: Path | None,
    **overrides: Any,
) -> EngineConfig:
    """Merge an optional config file with command-line options.

    Options left as None keep the value from the file (or the default).
    """
    config = EngineConfig.load(config_file) if config_file else EngineConfig()

    data = config.model_dump()
    data["directory"] = str(directory)
    if extension is not None:
        data["extension"] = extension
    if layout is not None:
        data["layout"] = layout
    data.update({k: v for k, v in overrides.items() if v is not None})

    return EngineConfig.model_validate(data)


def build_engine(config: EngineConfig, verbose: bool = False) -> Engine:
    """Create an engine from config; verbose turns on the parse trace."""
    engine = Engine.from_config(config)
    if verbose:
        engine.debug(True)
    return engine


def load_data(path: Path | None) -> dict[str, Any]:
    """Load template data from a YAML or JSON file."""
    if path is None:
        return {}
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Data file must contain a mapping: {path}")
    return data


def parse_set_values(values: list[str] | None) -> dict[str, Any]:
    """Parse KEY=VALUE pairs. Values are read as YAML scalars (1 -> int)."""
    result: dict[str, Any] = {}
    for item in values or []:
        if "=" not in item:
            raise ValueError(f"Expected KEY=VALUE, got: {item}")
        key, _, raw = item.partition("=")
        result[key.strip()] = yaml.safe_load(raw) if raw else ""
    return result
