"""CLI helpers for building the store and job config from global options."""

from __future__ import annotations

from galleryedits.config import EditJobConfig, load_config
from galleryedits.store import EditStore


def resolve_store_binding() -> tuple[str | None, str | None]:
    """Return (db_path, storage_uri) from CLI state."""
    from galleryedits.cli import state

    if state.storage_uri:
        return None, state.storage_uri
    return state.db, None


def open_store() -> EditStore:
    db_path, storage_uri = resolve_store_binding()
    return EditStore.open(db_path, storage_uri=storage_uri)


def job_config() -> EditJobConfig:
    """Build the job config; --storage-dir wins over the config file."""
    from galleryedits.cli import state

    if state.config:
        return load_config(state.config, file_storage_directory=state.storage_dir)
    return EditJobConfig(file_storage_directory=state.storage_dir or ".")
