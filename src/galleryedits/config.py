"""Configuration for the package edit job."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any

import yaml

from galleryedits.errors import ConfigError


@dataclass
class EditJobConfig:
    """Configuration for the package edit job."""

    file_storage_directory: str = "."
    packages_folder_name: str = "packages"
    backups_folder_name: str = "package-backups"
    temp_folder_name: str = "packages-temp"
    job_temp_name: str = "galleryedits"
    archive_extension: str = ".nupkg"
    manifest_extension: str = ".nuspec"
    hash_algorithm: str = "SHA512"
    max_tried_count: int | None = None

    @property
    def packages_path(self) -> str:
        return os.path.join(self.file_storage_directory, self.packages_folder_name)

    @property
    def backups_path(self) -> str:
        return os.path.join(self.file_storage_directory, self.backups_folder_name)

    @property
    def temp_path(self) -> str:
        """Run-level scratch root; removed at the end of every run."""
        return os.path.join(
            self.file_storage_directory, self.temp_folder_name, self.job_temp_name
        )


def load_config(path: str, **overrides: Any) -> EditJobConfig:
    """Load an EditJobConfig from a YAML mapping file.

    Keyword overrides that are not None take precedence over file values.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    known = {f.name for f in fields(EditJobConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys in {path}: {unknown}")

    data.update({k: v for k, v in overrides.items() if v is not None})
    for key, value in data.items():
        _check_value(path, key, value)
    return EditJobConfig(**data)


def _check_value(path: str, key: str, value: Any) -> None:
    if key == "max_tried_count":
        if value is None:
            return
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigError(
                f"Config key max_tried_count in {path} must be a positive integer, got {value!r}"
            )
    elif not isinstance(value, str):
        raise ConfigError(f"Config key {key} in {path} must be a string, got {value!r}")
