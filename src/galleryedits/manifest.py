"""Manifest (.nuspec) parsing and metadata patching.

Manifests are read without schema validation: only the ``metadata`` element
has to exist. Elements that a patch does not name are left exactly as parsed,
so unrelated metadata drift never blocks an edit.
"""

from __future__ import annotations

import io
import re
import xml.etree.ElementTree as ET

from galleryedits.errors import ManifestMalformedError
from galleryedits.models import MetadataPatch

_QUALIFIED_TAG = re.compile(r"^\{(.*)\}(.*)$")
_GENERATED_PREFIX = re.compile(r"^ns\d+$")


def split_tag(tag: str) -> tuple[str, str]:
    """Split an ElementTree tag into (namespace uri, local name)."""
    m = _QUALIFIED_TAG.match(tag)
    if m:
        return m.group(1), m.group(2)
    return "", tag


def find_metadata(root: ET.Element) -> ET.Element | None:
    """Return the metadata element: the root itself or a direct child."""
    if split_tag(root.tag)[1] == "metadata":
        return root
    for child in root:
        if split_tag(child.tag)[1] == "metadata":
            return child
    return None


def format_value(value: str | bool) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def apply_patch(metadata: ET.Element, patch: MetadataPatch) -> None:
    """Merge a patch into a metadata element in place."""
    ns, _ = split_tag(metadata.tag)
    for name, value in patch.items():
        existing = [c for c in metadata if split_tag(c.tag)[1] == name]
        if value is None:
            for child in existing:
                _remove_child(metadata, child)
            continue

        text = format_value(value)
        if existing:
            target = existing[0]
            for extra in existing[1:]:
                _remove_child(metadata, extra)
            for sub in list(target):
                target.remove(sub)
            target.text = text
        else:
            _append_child(metadata, f"{{{ns}}}{name}" if ns else name, text)


def _append_child(parent: ET.Element, tag: str, text: str) -> None:
    children = list(parent)
    element = ET.Element(tag)
    element.text = text
    if children:
        # keep the closing indentation on the new last child
        last = children[-1]
        element.tail = last.tail
        last.tail = children[-2].tail if len(children) > 1 else parent.text
    parent.append(element)


def _remove_child(parent: ET.Element, child: ET.Element) -> None:
    children = list(parent)
    index = children.index(child)
    if index == len(children) - 1 and index > 0:
        children[index - 1].tail = child.tail
    parent.remove(child)


def _declared_namespaces(data: bytes) -> list[tuple[str, str]]:
    return [ns for _, ns in ET.iterparse(io.BytesIO(data), events=("start-ns",))]


def rewrite_manifest_bytes(data: bytes, patch: MetadataPatch, *, entry_name: str) -> bytes:
    """Parse manifest bytes, apply the patch, and serialize the result.

    Serialization is deterministic, so rewriting an already-patched manifest
    with the same patch returns identical bytes.
    """
    try:
        namespaces = _declared_namespaces(data)
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise ManifestMalformedError(entry_name, str(e)) from e

    metadata = find_metadata(root)
    if metadata is None:
        raise ManifestMalformedError(entry_name, "no metadata element")

    apply_patch(metadata, patch)

    # ElementTree keeps prefixes in a process-wide registry. Each rewrite
    # re-registers the prefixes its own manifest declares, which replaces any
    # mapping a previous manifest left for the same prefix.
    for prefix, uri in namespaces:
        if _GENERATED_PREFIX.match(prefix):
            continue
        ET.register_namespace(prefix, uri)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)
