"""Structured error types for galleryedits."""

from __future__ import annotations


class GalleryEditsError(Exception):
    """Base error for all galleryedits errors."""

    kind = "unexpected"


class ConfigError(GalleryEditsError):
    """Raised when a configuration file cannot be loaded."""

    kind = "config"


class StoreUnavailableError(GalleryEditsError):
    """Raised when the catalog store cannot be opened or queried."""

    kind = "store_unavailable"

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Catalog store unavailable during {operation}: {detail}")


class InvalidEditError(GalleryEditsError):
    """Raised when a queued edit cannot be applied as stored."""

    kind = "invalid_edit"

    def __init__(self, edit_key: int, reason: str) -> None:
        self.edit_key = edit_key
        self.reason = reason
        super().__init__(f"Edit {edit_key} is invalid: {reason}")


class ArchiveMissingError(GalleryEditsError):
    """Raised when the live package archive does not exist."""

    kind = "archive_missing"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Package archive not found: {path}")


class ManifestMissingError(GalleryEditsError):
    """Raised when an archive has no root-level manifest entry."""

    kind = "manifest_missing"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Package has no manifest: {path}")


class ManifestAmbiguousError(GalleryEditsError):
    """Raised when an archive has more than one root-level manifest entry."""

    kind = "manifest_ambiguous"

    def __init__(self, path: str, entries: list[str]) -> None:
        self.path = path
        self.entries = entries
        super().__init__(f"Package has multiple manifests: {path} ({', '.join(entries)})")


class ManifestMalformedError(GalleryEditsError):
    """Raised when the manifest entry cannot be parsed as a package manifest."""

    kind = "manifest_malformed"

    def __init__(self, entry: str, detail: str) -> None:
        self.entry = entry
        self.detail = detail
        super().__init__(f"Manifest {entry} is malformed: {detail}")


class ReplaceFailedError(GalleryEditsError):
    """Raised when the rewritten archive cannot be swapped into the live path."""

    kind = "replace_failed"

    def __init__(self, live_path: str, detail: str) -> None:
        self.live_path = live_path
        self.detail = detail
        super().__init__(f"Failed to replace {live_path}: {detail}")


class HashAlgorithmUnavailableError(GalleryEditsError):
    """Raised when the configured hash algorithm cannot be constructed."""

    kind = "hash_algorithm_unavailable"

    def __init__(self, algorithm: str) -> None:
        self.algorithm = algorithm
        super().__init__(f"Failed to create instance of hash algorithm {algorithm}.")


class CatalogCommitError(GalleryEditsError):
    """Raised when the catalog transaction for an edit fails and is rolled back."""

    kind = "commit_failed"

    def __init__(self, package_key: int, detail: str) -> None:
        self.package_key = package_key
        self.detail = detail
        super().__init__(f"Catalog update for package {package_key} rolled back: {detail}")
