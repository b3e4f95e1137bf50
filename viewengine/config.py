"""Engine configuration.

Can be built in code or loaded from a YAML file:

    directory: ./views
    extension: .html
    layout: layouts/main
    reload: true
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_LEFT_DELIM = "{{"
DEFAULT_RIGHT_DELIM = "}}"


class EngineConfig(BaseModel):
    """Settings for one Engine instance."""

    model_config = {"extra": "forbid"}

    directory: str = Field(default="./views", description="Root of the template tree")
    extension: str = Field(
        default=".html", description="Suffix, leading dot included, of template files"
    )
    left_delim: str = Field(
        default=DEFAULT_LEFT_DELIM, description="Expression start marker; empty = default"
    )
    right_delim: str = Field(
        default=DEFAULT_RIGHT_DELIM, description="Expression end marker; empty = default"
    )
    layout: str = Field(
        default="", description="Layout template name wrapping every page; empty = none"
    )
    reload: bool = Field(default=False, description="Recompile before every render")
    debug: bool = Field(default=False, description="Log each parsed template")
    autoescape: bool = Field(default=True, description="HTML-escape rendered values")
    strict: bool = Field(
        default=False, description="Fail on undefined variables instead of rendering empty"
    )

    @field_validator("extension")
    @classmethod
    def check_extension(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2:
            raise ValueError(f"extension must start with '.', got {value!r}")
        return value

    @property
    def delims(self) -> tuple[str, str]:
        """Effective delimiters, with empty values replaced by the defaults."""
        return (
            self.left_delim or DEFAULT_LEFT_DELIM,
            self.right_delim or DEFAULT_RIGHT_DELIM,
        )

    @classmethod
    def load(cls, path: Path) -> "EngineConfig":
        """Load config from a YAML file."""
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.model_validate(data)
