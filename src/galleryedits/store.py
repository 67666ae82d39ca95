"""Catalog store: queued edits in, history/authors/cleanup out."""

from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterator
from urllib.parse import quote, urlparse

from galleryedits.errors import CatalogCommitError, StoreUnavailableError
from galleryedits.models import EditRequest, IntegrityResult

logger = logging.getLogger(__name__)

CATALOG_SCHEMA = """
    CREATE TABLE IF NOT EXISTS PackageRegistrations (
        [Key] INTEGER PRIMARY KEY AUTOINCREMENT,
        Id TEXT NOT NULL UNIQUE
    );

    CREATE TABLE IF NOT EXISTS Packages (
        [Key] INTEGER PRIMARY KEY AUTOINCREMENT,
        PackageRegistrationKey INTEGER NOT NULL REFERENCES PackageRegistrations([Key]),
        NormalizedVersion TEXT NOT NULL,
        Title TEXT,
        Copyright TEXT,
        Description TEXT,
        IconUrl TEXT,
        LicenseUrl TEXT,
        ProjectUrl TEXT,
        ReleaseNotes TEXT,
        RequiresLicenseAcceptance INTEGER NOT NULL DEFAULT 0,
        Summary TEXT,
        Tags TEXT,
        Hash TEXT,
        HashAlgorithm TEXT,
        PackageFileSize INTEGER,
        LastUpdated TEXT,
        LastEdited TEXT,
        Published TEXT,
        UserKey INTEGER,
        FlattenedAuthors TEXT
    );

    CREATE TABLE IF NOT EXISTS PackageAuthors (
        [Key] INTEGER PRIMARY KEY AUTOINCREMENT,
        PackageKey INTEGER NOT NULL REFERENCES Packages([Key]),
        Name TEXT
    );

    CREATE INDEX IF NOT EXISTS idx_package_authors_package
        ON PackageAuthors(PackageKey);

    CREATE TABLE IF NOT EXISTS PackageHistories (
        [Key] INTEGER PRIMARY KEY AUTOINCREMENT,
        PackageKey INTEGER NOT NULL REFERENCES Packages([Key]),
        UserKey INTEGER,
        Timestamp TEXT NOT NULL,
        Title TEXT,
        Authors TEXT,
        Copyright TEXT,
        Description TEXT,
        IconUrl TEXT,
        LicenseUrl TEXT,
        ProjectUrl TEXT,
        ReleaseNotes TEXT,
        RequiresLicenseAcceptance INTEGER,
        Summary TEXT,
        Tags TEXT,
        Hash TEXT,
        HashAlgorithm TEXT,
        PackageFileSize INTEGER,
        LastUpdated TEXT,
        Published TEXT
    );

    CREATE TABLE IF NOT EXISTS PackageEdits (
        [Key] INTEGER PRIMARY KEY AUTOINCREMENT,
        PackageKey INTEGER NOT NULL REFERENCES Packages([Key]),
        UserKey INTEGER NOT NULL,
        Timestamp TEXT NOT NULL,
        TriedCount INTEGER NOT NULL DEFAULT 0,
        LastError TEXT,
        Title TEXT,
        Authors TEXT,
        Copyright TEXT,
        Description TEXT,
        IconUrl TEXT,
        LicenseUrl TEXT,
        ProjectUrl TEXT,
        ReleaseNotes TEXT,
        RequiresLicenseAcceptance INTEGER NOT NULL DEFAULT 0,
        Summary TEXT,
        Tags TEXT
    );

    CREATE INDEX IF NOT EXISTS idx_package_edits_package
        ON PackageEdits(PackageKey, [Key]);
"""

GET_EDITS_SQL = """
    SELECT pr.Id AS PackageId, p.NormalizedVersion AS PackageVersion, p.Hash AS Hash, e.*
    FROM PackageEdits e
    INNER JOIN Packages p ON p.[Key] = e.PackageKey
    INNER JOIN PackageRegistrations pr ON pr.[Key] = p.PackageRegistrationKey
"""

_INSERT_HISTORY_SQL = """
    INSERT INTO PackageHistories (
        PackageKey, UserKey, Timestamp, Title, Authors, Copyright, Description,
        IconUrl, LicenseUrl, ProjectUrl, ReleaseNotes, RequiresLicenseAcceptance,
        Summary, Tags, Hash, HashAlgorithm, PackageFileSize, LastUpdated, Published
    )
    SELECT [Key], :user_key, :now, Title, :existing_authors, Copyright, Description,
           IconUrl, LicenseUrl, ProjectUrl, ReleaseNotes, RequiresLicenseAcceptance,
           Summary, Tags, Hash, HashAlgorithm, PackageFileSize, LastUpdated, Published
    FROM Packages
    WHERE [Key] = :package_key
"""

_UPDATE_PACKAGE_SQL = """
    UPDATE Packages
    SET Copyright = :copyright,
        Description = :description,
        IconUrl = :icon_url,
        LicenseUrl = :license_url,
        ProjectUrl = :project_url,
        ReleaseNotes = :release_notes,
        RequiresLicenseAcceptance = :requires_license_acceptance,
        Summary = :summary,
        Title = :title,
        Tags = :tags,
        LastEdited = :now,
        LastUpdated = :now,
        UserKey = :user_key,
        Hash = :hash,
        HashAlgorithm = :hash_algorithm,
        PackageFileSize = :size,
        FlattenedAuthors = :authors
    WHERE [Key] = :package_key
"""


@dataclass(frozen=True)
class StoreTarget:
    """Resolved catalog location."""

    uri: str
    db_path: str


def parse_store_target(db_path: str | None = None, storage_uri: str | None = None) -> StoreTarget:
    """Resolve a catalog location from a file path or a ``sqlite:///`` URI."""
    if storage_uri is None and db_path is None:
        db_path = "gallery.db"

    if storage_uri is None and db_path is not None:
        target = StoreTarget(uri=f"sqlite:///{db_path}", db_path=db_path)
    else:
        assert storage_uri is not None
        parsed = urlparse(storage_uri)
        if parsed.scheme != "sqlite":
            raise StoreUnavailableError(
                "parse_store_uri",
                f"Unsupported storage URI scheme '{parsed.scheme}' for '{storage_uri}'",
            )
        sqlite_path = parsed.path
        if parsed.netloc:
            sqlite_path = f"{parsed.netloc}{sqlite_path}"
        elif sqlite_path.startswith("//"):
            # sqlite:////abs/path -> /abs/path
            sqlite_path = sqlite_path[1:]
        elif sqlite_path.startswith("/"):
            # sqlite:///rel/path -> rel/path
            sqlite_path = sqlite_path[1:]
        if not sqlite_path:
            raise StoreUnavailableError("parse_store_uri", f"Invalid sqlite URI: {storage_uri}")
        if db_path is not None and os.path.abspath(db_path) != os.path.abspath(sqlite_path):
            raise StoreUnavailableError(
                "parse_store_uri",
                f"Conflicting db_path '{db_path}' and storage_uri '{storage_uri}'",
            )
        target = StoreTarget(uri=storage_uri, db_path=sqlite_path)

    if target.db_path == ":memory:":
        raise StoreUnavailableError(
            "parse_store_uri", "in-memory catalogs cannot be shared between operations"
        )
    return target


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class EditStore:
    """SQLite-backed access to the gallery catalog.

    A connection is opened per logical operation and closed right after, so no
    lock or handle is held between edits.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path

    @classmethod
    def open(cls, db_path: str | None = None, *, storage_uri: str | None = None) -> EditStore:
        return cls(parse_store_target(db_path, storage_uri).db_path)

    @contextmanager
    def _connect(self, operation: str, *, create: bool = False) -> Iterator[sqlite3.Connection]:
        mode = "rwc" if create else "rw"
        uri = f"file:{quote(os.path.abspath(self.db_path))}?mode={mode}"
        try:
            conn = sqlite3.connect(uri, uri=True)
        except sqlite3.Error as e:
            raise StoreUnavailableError(operation, f"{self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        """Create the catalog tables this job reads and writes, if missing."""
        with self._connect("ensure_schema", create=True) as conn:
            conn.executescript(CATALOG_SCHEMA)
            conn.commit()

    def fetch_queued_edits(self) -> list[EditRequest]:
        """Return every queued edit joined with its package lookup fields."""
        with self._connect("fetch_queued_edits") as conn:
            try:
                rows = conn.execute(GET_EDITS_SQL + " ORDER BY e.[Key]").fetchall()
            except sqlite3.Error as e:
                raise StoreUnavailableError("fetch_queued_edits", str(e)) from e
        return [EditRequest.model_validate(dict(row)) for row in rows]

    def record_failure(self, edit: EditRequest, error: str) -> bool:
        """Bump the retry counter and store the error text; never raises."""
        try:
            with self._connect("record_failure") as conn:
                conn.execute(
                    "UPDATE PackageEdits "
                    "SET TriedCount = TriedCount + 1, LastError = ? "
                    "WHERE [Key] = ?",
                    (error, edit.key),
                )
                conn.commit()
        except Exception as e:
            logger.warning(f"Failed to record failure for edit {edit.key} ({edit.describe()}): {e}")
            return False
        return True

    def commit(self, edit: EditRequest, integrity: IntegrityResult) -> None:
        """Apply an edit to the catalog in one transaction.

        Snapshots the current row into PackageHistories, updates the package,
        replaces its author rows, and deletes this edit and every older edit
        queued for the same package. Any failure rolls back all of it.
        """
        authors = edit.author_names()
        now = _utcnow()
        with self._connect("commit") as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
                existing = [
                    row[0]
                    for row in conn.execute(
                        "SELECT Name FROM PackageAuthors WHERE PackageKey = ? ORDER BY [Key]",
                        (edit.package_key,),
                    )
                ]
                conn.execute(
                    _INSERT_HISTORY_SQL,
                    {
                        "package_key": edit.package_key,
                        "user_key": edit.user_key,
                        "now": now,
                        "existing_authors": ",".join(existing) if existing else None,
                    },
                )
                cursor = conn.execute(
                    _UPDATE_PACKAGE_SQL,
                    {
                        "package_key": edit.package_key,
                        "user_key": edit.user_key,
                        "now": now,
                        "title": edit.title,
                        "authors": edit.authors,
                        "copyright": edit.copyright,
                        "description": edit.description,
                        "icon_url": edit.icon_url,
                        "license_url": edit.license_url,
                        "project_url": edit.project_url,
                        "release_notes": edit.release_notes,
                        "requires_license_acceptance": edit.requires_license_acceptance,
                        "summary": edit.summary,
                        "tags": edit.tags,
                        "hash": integrity.hash,
                        "hash_algorithm": integrity.algorithm,
                        "size": integrity.size,
                    },
                )
                if cursor.rowcount != 1:
                    raise CatalogCommitError(edit.package_key, "package row not found")

                conn.execute("DELETE FROM PackageAuthors WHERE PackageKey = ?", (edit.package_key,))
                conn.executemany(
                    "INSERT INTO PackageAuthors (PackageKey, Name) VALUES (?, ?)",
                    [(edit.package_key, name) for name in authors],
                )
                conn.execute(
                    "DELETE FROM PackageEdits WHERE PackageKey = ? AND [Key] <= ?",
                    (edit.package_key, edit.key),
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise CatalogCommitError(edit.package_key, str(e)) from e
            except Exception:
                conn.rollback()
                raise

