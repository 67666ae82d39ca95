"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from galleryedits.cli import app

if TYPE_CHECKING:
    from click.testing import Result


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


def invoke(
    runner: CliRunner,
    args: list[str],
    db_path: str | None = None,
    storage_dir: str | None = None,
) -> "Result":
    """Invoke the CLI with global options placed before the subcommand."""
    prefix: list[str] = []
    if db_path:
        prefix += ["--db", db_path]
    if storage_dir:
        prefix += ["--storage-dir", storage_dir]
    return runner.invoke(app, prefix + args, catch_exceptions=False)
