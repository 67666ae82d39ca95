"""Data model: queued edits, manifest patches, and per-run results."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator, Union

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_pascal

from galleryedits.errors import InvalidEditError


class _Unset(enum.Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset.UNSET

PatchValue = Union[str, bool, None, _Unset]

# (patch attribute, manifest element) in manifest order
MANIFEST_FIELDS: tuple[tuple[str, str], ...] = (
    ("title", "title"),
    ("authors", "authors"),
    ("copyright", "copyright"),
    ("description", "description"),
    ("icon_url", "iconUrl"),
    ("license_url", "licenseUrl"),
    ("project_url", "projectUrl"),
    ("release_notes", "releaseNotes"),
    ("require_license_acceptance", "requireLicenseAcceptance"),
    ("summary", "summary"),
    ("tags", "tags"),
)


@dataclass(frozen=True)
class MetadataPatch:
    """Changes to a manifest's metadata section.

    Each field is UNSET (leave the element alone), None (remove the element)
    or a value to write as the element text.
    """

    title: PatchValue = UNSET
    authors: PatchValue = UNSET
    copyright: PatchValue = UNSET
    description: PatchValue = UNSET
    icon_url: PatchValue = UNSET
    license_url: PatchValue = UNSET
    project_url: PatchValue = UNSET
    release_notes: PatchValue = UNSET
    require_license_acceptance: PatchValue = UNSET
    summary: PatchValue = UNSET
    tags: PatchValue = UNSET

    def items(self) -> Iterator[tuple[str, str | bool | None]]:
        """Yield (element name, value) for every field that is set."""
        for attr, element in MANIFEST_FIELDS:
            value = getattr(self, attr)
            if value is not UNSET:
                yield element, value


class EditRequest(BaseModel):
    """One queued metadata edit, joined with its package's lookup fields."""

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True, frozen=True)

    key: int
    package_key: int
    package_id: str
    package_version: str
    hash: str | None = None

    user_key: int
    timestamp: datetime
    tried_count: int = 0
    last_error: str | None = None

    title: str | None = None
    authors: str | None = None
    copyright: str | None = None
    description: str | None = None
    icon_url: str | None = None
    license_url: str | None = None
    project_url: str | None = None
    release_notes: str | None = None
    requires_license_acceptance: bool = False
    summary: str | None = None
    tags: str | None = None

    @field_validator("timestamp")
    @classmethod
    def timestamp_as_utc(cls, value: datetime) -> datetime:
        """Catalog timestamps without an offset are UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_patch(self) -> MetadataPatch:
        return MetadataPatch(
            title=self.title,
            authors=self.authors,
            copyright=self.copyright,
            description=self.description,
            icon_url=self.icon_url,
            license_url=self.license_url,
            project_url=self.project_url,
            release_notes=self.release_notes,
            require_license_acceptance=self.requires_license_acceptance,
            summary=self.summary,
            tags=self.tags,
        )

    def author_names(self) -> list[str]:
        """Split the authors string on commas, keeping empty segments."""
        if self.authors is None:
            raise InvalidEditError(self.key, "authors must not be null")
        return self.authors.split(",")

    def describe(self) -> str:
        return f"{self.package_id} {self.package_version}"


@dataclass(frozen=True)
class ArchiveHandle:
    """File locations used while applying one edit."""

    live_path: str
    working_path: str
    backup_path: str
    work_dir: str


@dataclass(frozen=True)
class IntegrityResult:
    hash: str
    size: int
    algorithm: str


class OutcomeStatus(str, enum.Enum):
    COMMITTED = "committed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class EditOutcome:
    """Result of processing one selected edit."""

    edit: EditRequest
    status: OutcomeStatus
    error_kind: str | None = None
    detail: str | None = None
    integrity: IntegrityResult | None = None


@dataclass
class RunReport:
    """Summary of one engine run."""

    fetched: int = 0
    selected: list[EditRequest] = field(default_factory=list)
    outcomes: list[EditOutcome] = field(default_factory=list)

    @property
    def committed(self) -> list[EditOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.COMMITTED]

    @property
    def failed(self) -> list[EditOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.FAILED]

    @property
    def skipped(self) -> list[EditOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.SKIPPED]
