"""galleryedits queue — list queued edits."""

from __future__ import annotations

import typer

from galleryedits.cli import _exitcodes as ec
from galleryedits.cli._output import EDIT_HEADERS, edit_row, print_error, print_table
from galleryedits.cli._storage import open_store
from galleryedits.errors import StoreUnavailableError
from galleryedits.selector import select_latest_edits


def queue_cmd(
    latest: bool = typer.Option(
        False, "--latest", help="Only the edits the next run would apply (one per package)"
    ),
    package: str | None = typer.Option(None, "--package", help="Filter by package id"),
) -> None:
    """List queued edits with their retry state."""
    from galleryedits.cli import state

    try:
        edits = open_store().fetch_queued_edits()
    except StoreUnavailableError as e:
        print_error(str(e))
        raise typer.Exit(ec.DATABASE_ERROR)

    if latest:
        edits = select_latest_edits(edits)
    if package:
        edits = [e for e in edits if e.package_id.lower() == package.lower()]

    if not edits and not state.json_output:
        print("No queued edits.")
        return
    print_table(EDIT_HEADERS, [edit_row(e) for e in edits], json_mode=state.json_output)
