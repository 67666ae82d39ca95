"""galleryedits run — apply queued edits once."""

from __future__ import annotations

import typer

from galleryedits.cli import _exitcodes as ec
from galleryedits.cli._output import print_error, print_report
from galleryedits.cli._storage import job_config, open_store
from galleryedits.errors import ConfigError, StoreUnavailableError
from galleryedits.runner import EditRunner


def run_cmd(
    strict: bool = typer.Option(False, "--strict", help="Non-zero exit if any edit failed"),
    max_tries: int | None = typer.Option(
        None, "--max-tries", min=1, help="Skip edits that already failed this many times"
    ),
) -> None:
    """Apply the most recent queued edit of every package."""
    from galleryedits.cli import state

    try:
        config = job_config()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)
    if max_tries is not None:
        config.max_tried_count = max_tries

    try:
        report = EditRunner(config, open_store()).run()
    except StoreUnavailableError as e:
        print_error(str(e))
        raise typer.Exit(ec.DATABASE_ERROR)
    except Exception as e:
        print_error(str(e))
        raise typer.Exit(ec.EXECUTION_FAILURE)

    print_report(report, json_mode=state.json_output)
    if strict and report.failed:
        raise typer.Exit(ec.EDITS_FAILED)
