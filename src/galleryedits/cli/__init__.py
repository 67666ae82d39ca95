"""galleryedits CLI: operator console for the package edit job."""

from __future__ import annotations

import logging
from typing import Optional

import typer
from click.core import ParameterSource

from galleryedits.cli import init_cmd, queue, run_cmd

app = typer.Typer(
    name="galleryedits",
    help="Apply queued package metadata edits to gallery archives.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    db: str = "gallery.db"
    storage_uri: str | None = None
    storage_dir: str | None = None
    config: str | None = None
    json_output: bool = False


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        try:
            from importlib.metadata import version

            v = version("galleryedits")
        except Exception:
            v = "unknown"
        print(f"galleryedits {v}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(
        None,
        "--db",
        envvar="GALLERY_EDITS_DB",
        help="SQLite catalog file path (default: gallery.db)",
    ),
    storage_uri: Optional[str] = typer.Option(
        None,
        "--storage-uri",
        envvar="GALLERY_EDITS_STORAGE_URI",
        help="Catalog URI (e.g. sqlite:///gallery.db)",
    ),
    storage_dir: Optional[str] = typer.Option(
        None,
        "--storage-dir",
        envvar="GALLERY_FILE_STORAGE_DIRECTORY",
        help="Root directory holding packages, backups, and scratch folders",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        envvar="GALLERY_EDITS_CONFIG",
        help="YAML config file path",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all galleryedits commands."""
    from galleryedits.store import parse_store_target

    db_source = ctx.get_parameter_source("db")
    uri_source = ctx.get_parameter_source("storage_uri")

    resolved_db = db or "gallery.db"
    resolved_uri = storage_uri
    # Explicit --db overrides GALLERY_EDITS_STORAGE_URI unless --storage-uri is also explicit.
    if db_source == ParameterSource.COMMANDLINE and uri_source == ParameterSource.ENVIRONMENT:
        resolved_uri = None

    if resolved_uri:
        try:
            parse_store_target(
                db_path=resolved_db if db_source == ParameterSource.COMMANDLINE else None,
                storage_uri=resolved_uri,
            )
        except Exception as e:
            raise typer.BadParameter(str(e))

    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}")
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    state.db = resolved_db
    state.storage_uri = resolved_uri
    state.storage_dir = storage_dir
    state.config = config
    state.json_output = json_output
    if ctx.invoked_subcommand is None and not version:
        print(ctx.get_help())
        raise typer.Exit()


app.command(name="init")(init_cmd.init_cmd)
app.command(name="queue")(queue.queue_cmd)
app.command(name="run")(run_cmd.run_cmd)


def main() -> None:
    """Entry point for the galleryedits CLI."""
    app()
