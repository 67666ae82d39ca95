"""Apply queued package edits: fetch, select, rewrite, swap, hash, commit."""

from __future__ import annotations

import logging
import traceback

from galleryedits.archive import rewrite_manifest
from galleryedits.config import EditJobConfig
from galleryedits.errors import GalleryEditsError
from galleryedits.files import (
    archive_handle,
    atomic_replace,
    compute_integrity,
    copy_to_working,
    ensure_directory,
    scratch_directory,
)
from galleryedits.models import (
    ArchiveHandle,
    EditOutcome,
    EditRequest,
    IntegrityResult,
    OutcomeStatus,
    RunReport,
)
from galleryedits.selector import select_latest_edits
from galleryedits.store import EditStore

logger = logging.getLogger(__name__)


class EditRunner:
    """Process the edit queue once, one package at a time.

    Each selected edit ends either committed (catalog updated, queue rows
    removed) or failed (retry counter and error text recorded on its row).
    Failures are isolated per edit; only an unreadable queue aborts the run.
    """

    def __init__(self, config: EditJobConfig, store: EditStore) -> None:
        self.config = config
        self.store = store

    def run(self) -> RunReport:
        report = RunReport()
        ensure_directory(self.config.backups_path)

        with scratch_directory(self.config.temp_path):
            edits = self.store.fetch_queued_edits()
            report.fetched = len(edits)
            logger.info(f"Fetched {len(edits)} queued edits from {self.store.db_path}")

            report.selected = select_latest_edits(edits)
            for edit in report.selected:
                outcome = self.apply_edit(edit)
                report.outcomes.append(outcome)
                if outcome.status is OutcomeStatus.FAILED:
                    self.store.record_failure(edit, outcome.detail or "")

        logger.info(
            f"Edit run finished: {len(report.committed)} committed, "
            f"{len(report.failed)} failed, {len(report.skipped)} skipped"
        )
        return report

    def apply_edit(self, edit: EditRequest) -> EditOutcome:
        limit = self.config.max_tried_count
        if limit is not None and edit.tried_count >= limit:
            logger.warning(
                f"Skipping edit {edit.key} for {edit.describe()}: tried {edit.tried_count} times"
            )
            return EditOutcome(
                edit,
                OutcomeStatus.SKIPPED,
                error_kind="retry_limit",
                detail=f"tried {edit.tried_count} times (limit {limit})",
            )

        handle = archive_handle(self.config, edit)
        try:
            integrity = self._apply(edit, handle)
        except GalleryEditsError as e:
            return self._failed(edit, e.kind, e)
        except Exception as e:
            return self._failed(edit, "unexpected", e)
        return EditOutcome(edit, OutcomeStatus.COMMITTED, integrity=integrity)

    def _apply(self, edit: EditRequest, handle: ArchiveHandle) -> IntegrityResult:
        name = edit.describe()
        edit.author_names()

        with scratch_directory(handle.work_dir):
            copy_to_working(handle.live_path, handle.working_path)
            logger.info(f"Copied original archive of {name}")

            logger.info(f"Rewriting package file for {name}")
            rewrite_manifest(
                handle.working_path,
                edit.to_patch(),
                manifest_extension=self.config.manifest_extension,
            )
            logger.info(f"Rewrote package file for {name}")

            logger.info(
                f"Replacing original package file for {name} "
                f"({handle.live_path}, backup location {handle.backup_path})"
            )
            atomic_replace(handle.working_path, handle.live_path, handle.backup_path)

            integrity = compute_integrity(handle.live_path, self.config.hash_algorithm)

            logger.info(f"Updating package record for {name}")
            self.store.commit(edit, integrity)
            logger.info(f"Updated package record for {name}")
        return integrity

    def _failed(self, edit: EditRequest, kind: str, error: BaseException) -> EditOutcome:
        logger.error(
            f"Failed to update package information. Package {edit.describe()}. "
            f"{type(error).__name__}: {error}"
        )
        detail = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return EditOutcome(edit, OutcomeStatus.FAILED, error_kind=kind, detail=detail)


def run(
    config: EditJobConfig,
    db_path: str | None = None,
    *,
    storage_uri: str | None = None,
) -> RunReport:
    """Open the catalog and process the edit queue once."""
    store = EditStore.open(db_path, storage_uri=storage_uri)
    return EditRunner(config, store).run()
