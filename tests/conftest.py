"""Shared test fixtures for galleryedits tests."""

from __future__ import annotations

import os

import pytest

from galleryedits.config import EditJobConfig
from galleryedits.store import EditStore
from tests.helpers import PAYLOAD, add_package, build_archive, nuspec


@pytest.fixture
def storage_dir(tmp_path):
    """File storage root with an empty packages folder."""
    root = tmp_path / "storage"
    (root / "packages").mkdir(parents=True)
    return root


@pytest.fixture
def config(storage_dir):
    return EditJobConfig(file_storage_directory=str(storage_dir))


@pytest.fixture
def catalog(tmp_path):
    """Path to a SQLite catalog with the gallery tables created."""
    db_path = str(tmp_path / "gallery.db")
    EditStore(db_path).ensure_schema()
    return db_path


@pytest.fixture
def store(catalog):
    return EditStore(catalog)


@pytest.fixture
def foo_package(catalog, config):
    """Foo 1.0.0: catalog row plus live archive titled 'Old' and tagged 'a b'."""
    package_key = add_package(catalog, "Foo", "1.0.0", title="Old", tags="a b")
    live_path = os.path.join(config.packages_path, "foo.1.0.0.nupkg")
    build_archive(live_path, {"Foo.nuspec": nuspec(title="Old", tags="a b"), **PAYLOAD})
    return package_key
