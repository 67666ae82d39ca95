"""Output formatting helpers for the galleryedits CLI."""

from __future__ import annotations

import json
import sys
from typing import Any

from galleryedits.models import EditOutcome, EditRequest, RunReport

EDIT_HEADERS = ["key", "package", "version", "timestamp", "tried", "last_error"]
OUTCOME_HEADERS = ["edit", "package", "version", "status", "error", "size"]


def _last_line(text: str | None) -> str:
    if not text:
        return ""
    lines = text.strip().splitlines()
    return lines[-1] if lines else ""


def edit_row(edit: EditRequest) -> list[Any]:
    return [
        edit.key,
        edit.package_id,
        edit.package_version,
        edit.timestamp.isoformat(),
        edit.tried_count,
        _last_line(edit.last_error),
    ]


def outcome_row(outcome: EditOutcome) -> list[Any]:
    edit = outcome.edit
    return [
        edit.key,
        edit.package_id,
        edit.package_version,
        outcome.status.value,
        outcome.error_kind or "",
        outcome.integrity.size if outcome.integrity else "",
    ]


def report_data(report: RunReport) -> dict[str, Any]:
    return {
        "fetched": report.fetched,
        "selected": len(report.selected),
        "committed": len(report.committed),
        "failed": len(report.failed),
        "skipped": len(report.skipped),
        "outcomes": [
            {
                **dict(zip(OUTCOME_HEADERS, outcome_row(o))),
                "hash": o.integrity.hash if o.integrity else None,
                "detail": o.detail,
            }
            for o in report.outcomes
        ],
    }


def print_table(headers: list[str], rows: list[list[Any]], *, json_mode: bool = False) -> None:
    """Print rows as aligned text columns or as a JSON array of objects."""
    if json_mode:
        print(json.dumps([dict(zip(headers, row)) for row in rows], indent=2, default=str))
        return
    if not rows:
        return

    str_rows = [[str(v) for v in row] for row in rows]
    widths = [max(len(h), *(len(r[i]) for r in str_rows)) for i, h in enumerate(headers)]
    print("  ".join(h.ljust(widths[i]) for i, h in enumerate(headers)))
    print("  ".join("-" * w for w in widths))
    for row in str_rows:
        print("  ".join(val.ljust(widths[i]) for i, val in enumerate(row)).rstrip())


def print_report(report: RunReport, *, json_mode: bool = False) -> None:
    data = report_data(report)
    if json_mode:
        print(json.dumps(data, indent=2, default=str))
        return

    print(
        f"Fetched {data['fetched']} edit(s), selected {data['selected']}: "
        f"{data['committed']} committed, {data['failed']} failed, {data['skipped']} skipped."
    )
    if report.outcomes:
        print()
        print_table(OUTCOME_HEADERS, [outcome_row(o) for o in report.outcomes])


def print_error(msg: str) -> None:
    """Print an error message to stderr."""
    print(f"Error: {msg}", file=sys.stderr)
