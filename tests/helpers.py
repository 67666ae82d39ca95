"""Builders for catalog rows, manifests, and package archives used in tests."""

from __future__ import annotations

import sqlite3
import xml.etree.ElementTree as ET
import zipfile
from contextlib import closing
from datetime import datetime, timezone
from typing import Any
from xml.sax.saxutils import escape

from pydantic.alias_generators import to_pascal

from galleryedits.archive import find_manifest_entries
from galleryedits.manifest import find_metadata, split_tag
from galleryedits.models import EditRequest

NUSPEC_NS = "http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd"

PAYLOAD = {
    "_rels/.rels": b"<Relationships />",
    "lib/net45/Foo.dll": bytes(range(256)) * 8,
    "content/readme.txt": b"binary payload stays put\n",
}


def ts(day: int, hour: int = 0) -> datetime:
    return datetime(2024, 1, day, hour, tzinfo=timezone.utc)


def nuspec(package_id: str = "Foo", version: str = "1.0.0", **metadata: str) -> bytes:
    """Build a namespaced manifest; metadata keys are manifest element names."""
    elements = "".join(
        f"\n    <{name}>{escape(value)}</{name}>" for name, value in metadata.items()
    )
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        f'<package xmlns="{NUSPEC_NS}">\n'
        "  <metadata>\n"
        f"    <id>{package_id}</id>\n"
        f"    <version>{version}</version>{elements}\n"
        "    <dependencies>\n"
        '      <dependency id="Bar" version="2.0.0" />\n'
        "    </dependencies>\n"
        "  </metadata>\n"
        "</package>\n"
    ).encode("utf-8")


def build_archive(path: str, entries: dict[str, bytes]) -> None:
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, data in entries.items():
            archive.writestr(name, data)


def archive_entries(path: str) -> dict[str, bytes]:
    with zipfile.ZipFile(path, "r") as archive:
        return {info.filename: archive.read(info) for info in archive.infolist()}


def read_file(path: str) -> bytes:
    with open(path, "rb") as fh:
        return fh.read()


def read_manifest(path: str, manifest_extension: str = ".nuspec") -> bytes:
    """Return the bytes of the archive's single root-level manifest."""
    with zipfile.ZipFile(path, "r") as archive:
        names = [i.filename for i in archive.infolist() if not i.is_dir()]
        [name] = find_manifest_entries(names, manifest_extension)
        return archive.read(name)


def read_metadata(data: bytes) -> dict[str, str | None]:
    """Return the text of each direct metadata child, keyed by local name."""
    metadata = find_metadata(ET.fromstring(data))
    if metadata is None:
        return {}
    return {split_tag(c.tag)[1]: c.text for c in metadata}


def query(db_path: str, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
    with closing(sqlite3.connect(db_path)) as conn:
        conn.row_factory = sqlite3.Row
        return conn.execute(sql, params).fetchall()


def execute(db_path: str, sql: str, params: tuple[Any, ...] = ()) -> int:
    with closing(sqlite3.connect(db_path)) as conn:
        cursor = conn.execute(sql, params)
        conn.commit()
        return cursor.lastrowid  # type: ignore[return-value]


def add_package(
    db_path: str,
    package_id: str,
    version: str,
    *,
    authors: tuple[str, ...] = ("Old Author",),
    **columns: Any,
) -> int:
    """Insert a registration (if needed), a package row, and its author rows."""
    with closing(sqlite3.connect(db_path)) as conn:
        row = conn.execute(
            "SELECT [Key] FROM PackageRegistrations WHERE Id = ?", (package_id,)
        ).fetchone()
        if row is None:
            registration_key = conn.execute(
                "INSERT INTO PackageRegistrations (Id) VALUES (?)", (package_id,)
            ).lastrowid
        else:
            registration_key = row[0]

        values: dict[str, Any] = {
            "PackageRegistrationKey": registration_key,
            "NormalizedVersion": version,
            "Hash": "old-hash",
            "HashAlgorithm": "SHA512",
            "PackageFileSize": 1,
            "LastUpdated": "2023-12-01T00:00:00+00:00",
            "Published": "2023-11-01T00:00:00+00:00",
            "FlattenedAuthors": ",".join(authors),
        }
        values.update({to_pascal(k): v for k, v in columns.items()})
        names = ", ".join(values)
        marks = ", ".join("?" for _ in values)
        package_key = conn.execute(
            f"INSERT INTO Packages ({names}) VALUES ({marks})", tuple(values.values())
        ).lastrowid
        conn.executemany(
            "INSERT INTO PackageAuthors (PackageKey, Name) VALUES (?, ?)",
            [(package_key, a) for a in authors],
        )
        conn.commit()
        return package_key  # type: ignore[return-value]


def queue_edit(
    db_path: str,
    package_key: int,
    *,
    timestamp: datetime | None = None,
    user_key: int = 7,
    **payload: Any,
) -> int:
    """Insert a PackageEdits row; payload keys are snake_case column names."""
    values: dict[str, Any] = {
        "PackageKey": package_key,
        "UserKey": user_key,
        "Timestamp": (timestamp or ts(1)).isoformat(),
        "Authors": "Old Author",
    }
    values.update({to_pascal(k): v for k, v in payload.items()})
    names = ", ".join(f"[{n}]" for n in values)
    marks = ", ".join("?" for _ in values)
    return execute(
        db_path, f"INSERT INTO PackageEdits ({names}) VALUES ({marks})", tuple(values.values())
    )


def make_edit(key: int = 1, package_key: int = 1, **fields: Any) -> EditRequest:
    values: dict[str, Any] = {
        "key": key,
        "package_key": package_key,
        "package_id": "Foo",
        "package_version": "1.0.0",
        "user_key": 7,
        "timestamp": ts(1),
        "authors": "Alice",
    }
    values.update(fields)
    return EditRequest(**values)
