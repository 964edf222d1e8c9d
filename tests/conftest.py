"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from yaml_mapper import YamlMapper


@pytest.fixture
def mapper() -> YamlMapper:
    """Return a mapper with its own schema cache."""
    return YamlMapper()


@pytest.fixture
def write_yaml(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a helper writing dedented YAML text to a file under tmp_path."""

    def _write(content: str, name: str = "config.yml") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return _write
