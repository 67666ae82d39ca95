"""galleryedits: apply queued metadata edits to gallery package archives."""

__version__ = "0.1.0"

from galleryedits.config import EditJobConfig, load_config
from galleryedits.errors import (
    ArchiveMissingError,
    CatalogCommitError,
    ConfigError,
    GalleryEditsError,
    HashAlgorithmUnavailableError,
    InvalidEditError,
    ManifestAmbiguousError,
    ManifestMalformedError,
    ManifestMissingError,
    ReplaceFailedError,
    StoreUnavailableError,
)
from galleryedits.models import (
    UNSET,
    EditOutcome,
    EditRequest,
    IntegrityResult,
    MetadataPatch,
    OutcomeStatus,
    RunReport,
)
from galleryedits.runner import EditRunner, run
from galleryedits.selector import select_latest_edits
from galleryedits.store import EditStore

__all__ = [
    "__version__",
    "EditJobConfig",
    "load_config",
    "EditRequest",
    "MetadataPatch",
    "UNSET",
    "IntegrityResult",
    "EditOutcome",
    "OutcomeStatus",
    "RunReport",
    "EditStore",
    "EditRunner",
    "run",
    "select_latest_edits",
    "GalleryEditsError",
    "ConfigError",
    "StoreUnavailableError",
    "InvalidEditError",
    "ArchiveMissingError",
    "ManifestMissingError",
    "ManifestAmbiguousError",
    "ManifestMalformedError",
    "ReplaceFailedError",
    "HashAlgorithmUnavailableError",
    "CatalogCommitError",
]
