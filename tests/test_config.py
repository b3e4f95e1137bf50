"""Tests for engine configuration."""

import pytest
from pydantic import ValidationError

from viewengine.config import EngineConfig


def test_defaults():
    """Defaults match a plain HTML views directory."""
    config = EngineConfig()
    assert config.directory == "./views"
    assert config.extension == ".html"
    assert config.delims == ("{{", "}}")
    assert config.layout == ""
    assert config.reload is False
    assert config.autoescape is True


def test_empty_delims_use_defaults():
    """Empty delimiters resolve to the defaults."""
    config = EngineConfig(left_delim="", right_delim="]]")
    assert config.delims == ("{{", "]]")


def test_extension_needs_leading_dot():
    """Extensions without a dot are rejected."""
    with pytest.raises(ValidationError):
        EngineConfig(extension="html")
    with pytest.raises(ValidationError):
        EngineConfig(extension=".")


def test_unknown_keys_rejected():
    """Typos in config keys are reported."""
    with pytest.raises(ValidationError):
        EngineConfig(layuot="layouts/main")


def test_load_yaml(tmp_path):
    """Config loads from YAML."""
    path = tmp_path / "viewengine.yaml"
    path.write_text(
        """
directory: ./templates
extension: .tmpl
layout: layouts/base
reload: true
left_delim: "[["
right_delim: "]]"
"""
    )

    config = EngineConfig.load(path)
    assert config.directory == "./templates"
    assert config.extension == ".tmpl"
    assert config.layout == "layouts/base"
    assert config.reload is True
    assert config.delims == ("[[", "]]")


def test_load_empty_yaml(tmp_path):
    """An empty file gives the defaults."""
    path = tmp_path / "viewengine.yaml"
    path.write_text("")
    assert EngineConfig.load(path) == EngineConfig()


def test_load_missing_file(tmp_path):
    """A missing config file is an error."""
    with pytest.raises(FileNotFoundError):
        EngineConfig.load(tmp_path / "nope.yaml")
