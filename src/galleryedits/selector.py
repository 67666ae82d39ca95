"""Collapse queued edits to the most recent one per package."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from galleryedits.models import EditRequest


def select_latest_edits(edits: Iterable[EditRequest]) -> list[EditRequest]:
    """Return one edit per package: the latest by timestamp, then by key."""
    groups: dict[int, list[EditRequest]] = defaultdict(list)
    for edit in edits:
        groups[edit.package_key].append(edit)

    selected = []
    for package_key in sorted(groups):
        members = groups[package_key]
        if not members:
            continue
        selected.append(max(members, key=lambda e: (e.timestamp, e.key)))
    return selected
