"""galleryedits init — create catalog tables and storage folders."""

from __future__ import annotations

import typer

from galleryedits.cli import _exitcodes as ec
from galleryedits.cli._output import print_error, print_table
from galleryedits.cli._storage import job_config, open_store
from galleryedits.errors import GalleryEditsError
from galleryedits.files import ensure_directory


def init_cmd() -> None:
    """Create the edit-job catalog tables and the packages/backups folders."""
    from galleryedits.cli import state

    try:
        config = job_config()
        store = open_store()
    except GalleryEditsError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        store.ensure_schema()
    except GalleryEditsError as e:
        print_error(str(e))
        raise typer.Exit(ec.DATABASE_ERROR)

    try:
        ensure_directory(config.packages_path)
        ensure_directory(config.backups_path)
    except OSError as e:
        print_error(f"Cannot create storage folders: {e}")
        raise typer.Exit(ec.EXECUTION_FAILURE)

    if state.json_output:
        print_table(
            ["db_path", "packages_path", "backups_path"],
            [[store.db_path, config.packages_path, config.backups_path]],
            json_mode=True,
        )
    else:
        print(f"Initialized catalog at {store.db_path}")
        print(f"Packages: {config.packages_path}")
        print(f"Backups:  {config.backups_path}")
