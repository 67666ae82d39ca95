"""File-system operations: archive locations, scratch space, swap, and hashing."""

from __future__ import annotations

import base64
import hashlib
import logging
import os
import shutil
from contextlib import contextmanager
from typing import Iterator

from galleryedits.config import EditJobConfig
from galleryedits.errors import (
    ArchiveMissingError,
    HashAlgorithmUnavailableError,
    ReplaceFailedError,
)
from galleryedits.models import ArchiveHandle, EditRequest, IntegrityResult

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


def package_file_name(package_id: str, version: str, extension: str = ".nupkg") -> str:
    return f"{package_id}.{version}{extension}".lower()


def archive_handle(config: EditJobConfig, edit: EditRequest) -> ArchiveHandle:
    """Derive the live, working, and backup paths for an edit's package."""
    name = package_file_name(edit.package_id, edit.package_version, config.archive_extension)
    work_dir = os.path.join(config.temp_path, edit.package_id, edit.package_version)
    return ArchiveHandle(
        live_path=os.path.join(config.packages_path, name),
        working_path=os.path.join(work_dir, name),
        backup_path=os.path.join(config.backups_path, name),
        work_dir=work_dir,
    )


def ensure_directory(path: str) -> None:
    if path:
        os.makedirs(path, exist_ok=True)


def remove_directory(path: str) -> None:
    """Remove a directory tree, logging instead of raising on failure."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Failed to remove directory {path}: {e}")


@contextmanager
def scratch_directory(path: str) -> Iterator[str]:
    """Provide an empty directory at ``path`` that is removed on exit."""
    remove_directory(path)
    os.makedirs(path, exist_ok=True)
    try:
        yield path
    finally:
        remove_directory(path)


def copy_to_working(live_path: str, working_path: str) -> None:
    try:
        shutil.copyfile(live_path, working_path)
    except FileNotFoundError as e:
        raise ArchiveMissingError(live_path) from e


def atomic_replace(working_path: str, live_path: str, backup_path: str) -> None:
    """Move ``working_path`` over ``live_path``, keeping the old content at ``backup_path``.

    The live path only ever changes through a single rename, so it holds either
    the previous archive or the new one. The new archive takes the live file's
    permission bits.
    """
    if not os.path.isfile(live_path):
        raise ReplaceFailedError(live_path, "live archive does not exist")
    try:
        shutil.copymode(live_path, working_path)
        _preserve_backup(live_path, backup_path)
        os.replace(working_path, live_path)
    except OSError as e:
        raise ReplaceFailedError(live_path, str(e)) from e


def _preserve_backup(live_path: str, backup_path: str) -> None:
    staged = f"{backup_path}.partial"
    if os.path.lexists(staged):
        os.remove(staged)
    try:
        os.link(live_path, staged)
    except OSError:
        shutil.copy2(live_path, staged)
    os.replace(staged, backup_path)


def compute_integrity(path: str, algorithm: str = "SHA512") -> IntegrityResult:
    """Return the base64 digest and byte length of the file at ``path``."""
    try:
        digest = hashlib.new(algorithm.lower())
    except (ValueError, TypeError) as e:
        raise HashAlgorithmUnavailableError(algorithm) from e

    size = 0
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
            size += len(chunk)
    return IntegrityResult(
        hash=base64.b64encode(digest.digest()).decode("ascii"),
        size=size,
        algorithm=algorithm,
    )
