"""Rewrite the manifest entry of a package archive."""

from __future__ import annotations

import logging
import os
import re
import zipfile
from typing import Iterable

from galleryedits.errors import ManifestAmbiguousError, ManifestMissingError
from galleryedits.manifest import rewrite_manifest_bytes
from galleryedits.models import MetadataPatch

logger = logging.getLogger(__name__)


def manifest_pattern(manifest_extension: str) -> re.Pattern[str]:
    """Root-level entries ending in the manifest extension."""
    return re.compile(rf"^[^/]*{re.escape(manifest_extension)}$", re.IGNORECASE)


def find_manifest_entries(names: Iterable[str], manifest_extension: str = ".nuspec") -> list[str]:
    pattern = manifest_pattern(manifest_extension)
    return [n for n in names if pattern.match(n)]


def _select_manifest(archive: zipfile.ZipFile, path: str, manifest_extension: str) -> str:
    names = [i.filename for i in archive.infolist() if not i.is_dir()]
    matches = find_manifest_entries(names, manifest_extension)
    if not matches:
        raise ManifestMissingError(path)
    if len(matches) > 1:
        raise ManifestAmbiguousError(path, matches)
    return matches[0]


def _clone_info(info: zipfile.ZipInfo) -> zipfile.ZipInfo:
    clone = zipfile.ZipInfo(info.filename, date_time=info.date_time)
    clone.compress_type = info.compress_type
    clone.comment = info.comment
    clone.extra = info.extra
    clone.create_system = info.create_system
    clone.create_version = info.create_version
    clone.external_attr = info.external_attr
    clone.internal_attr = info.internal_attr
    return clone


def rewrite_manifest(
    path: str,
    patch: MetadataPatch,
    *,
    manifest_extension: str = ".nuspec",
) -> str:
    """Apply a metadata patch to the archive at ``path`` and return the manifest name.

    The archive is rebuilt beside ``path`` and moved over it only once fully
    written; every entry other than the manifest keeps its bytes and settings.
    """
    staged = f"{path}.partial"
    with zipfile.ZipFile(path, "r") as source:
        manifest_name = _select_manifest(source, path, manifest_extension)
        manifest = rewrite_manifest_bytes(
            source.read(manifest_name), patch, entry_name=manifest_name
        )
        try:
            with zipfile.ZipFile(staged, "w") as target:
                target.comment = source.comment
                for info in source.infolist():
                    data = manifest if info.filename == manifest_name else source.read(info)
                    target.writestr(_clone_info(info), data)
        except BaseException:
            if os.path.exists(staged):
                os.remove(staged)
            raise

    os.replace(staged, path)
    logger.debug(f"Rewrote manifest {manifest_name} in {path}")
    return manifest_name
