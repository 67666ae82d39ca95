"""Tests for manifest parsing and metadata patching."""

from __future__ import annotations

import pytest

from galleryedits.errors import ManifestMalformedError
from galleryedits.manifest import rewrite_manifest_bytes
from galleryedits.models import UNSET, MetadataPatch
from tests.helpers import NUSPEC_NS, make_edit, nuspec, read_metadata


def rewrite(data: bytes, patch: MetadataPatch) -> bytes:
    return rewrite_manifest_bytes(data, patch, entry_name="Foo.nuspec")


class TestMetadataPatch:
    def test_items_skip_unset(self):
        patch = MetadataPatch(title="New", tags=None)
        assert list(patch.items()) == [("title", "New"), ("tags", None)]

    def test_edit_patch_names_every_field(self):
        patch = make_edit(title="T", icon_url="http://icon", requires_license_acceptance=True).to_patch()
        items = dict(patch.items())
        assert len(items) == 11
        assert items["title"] == "T"
        assert items["iconUrl"] == "http://icon"
        assert items["requireLicenseAcceptance"] is True
        assert items["summary"] is None

    def test_default_patch_is_empty(self):
        assert MetadataPatch().title is UNSET
        assert list(MetadataPatch().items()) == []


class TestRewriteManifest:
    def test_updates_named_fields_only(self):
        original = nuspec(title="Old", tags="a b", summary="keep me")
        out = rewrite(original, MetadataPatch(title="New", tags="x y"))

        before = read_metadata(original)
        after = read_metadata(out)
        assert after["title"] == "New"
        assert after["tags"] == "x y"
        changed = {k for k in before if before[k] != after.get(k)}
        assert changed == {"title", "tags"}
        assert after["id"] == "Foo"
        assert after["version"] == "1.0.0"
        assert b'<dependency id="Bar" version="2.0.0" />' in out

    def test_none_removes_element(self):
        out = rewrite(nuspec(title="Old", summary="gone"), MetadataPatch(summary=None))
        assert "summary" not in read_metadata(out)
        assert read_metadata(out)["title"] == "Old"

    def test_missing_element_is_added(self):
        out = rewrite(nuspec(title="Old"), MetadataPatch(project_url="https://example.org"))
        assert read_metadata(out)["projectUrl"] == "https://example.org"
        assert b"<projectUrl>https://example.org</projectUrl>" in out

    def test_boolean_written_lowercase(self):
        out = rewrite(nuspec(), MetadataPatch(require_license_acceptance=True))
        assert read_metadata(out)["requireLicenseAcceptance"] == "true"
        out = rewrite(out, MetadataPatch(require_license_acceptance=False))
        assert read_metadata(out)["requireLicenseAcceptance"] == "false"

    def test_default_namespace_preserved(self):
        out = rewrite(nuspec(title="Old"), MetadataPatch(title="New", summary="added"))
        assert f'<package xmlns="{NUSPEC_NS}">'.encode() in out
        assert b"ns0:" not in out
        assert b"<summary>added</summary>" in out

    def test_each_manifest_keeps_its_own_default_namespace(self):
        legacy_ns = "http://schemas.microsoft.com/packaging/2010/07/nuspec.xsd"
        legacy = nuspec(title="Old").replace(NUSPEC_NS.encode(), legacy_ns.encode())

        first = rewrite(legacy, MetadataPatch(title="New"))
        second = rewrite(nuspec(title="Old"), MetadataPatch(title="New"))
        third = rewrite(legacy, MetadataPatch(title="New"))

        assert f'<package xmlns="{legacy_ns}">'.encode() in first
        assert f'<package xmlns="{NUSPEC_NS}">'.encode() in second
        assert third == first
        for out in (first, second, third):
            assert b"ns0:" not in out
            assert read_metadata(out)["title"] == "New"

    def test_idempotent(self):
        patch = make_edit(title="New", tags="x y", authors="Alice,Bob").to_patch()
        once = rewrite(nuspec(title="Old", tags="a b"), patch)
        twice = rewrite(once, patch)
        assert once == twice

    def test_bare_metadata_root(self):
        original = b"<metadata><title>Old</title><tags>a b</tags></metadata>"
        out = rewrite(original, MetadataPatch(title="New", tags="x y"))
        assert read_metadata(out) == {"title": "New", "tags": "x y"}

    def test_special_characters_escaped(self):
        out = rewrite(nuspec(), MetadataPatch(description="a < b & c"))
        assert read_metadata(out)["description"] == "a < b & c"

    def test_unparseable_manifest(self):
        with pytest.raises(ManifestMalformedError) as exc_info:
            rewrite(b"<package><metadata>", MetadataPatch(title="x"))
        assert exc_info.value.kind == "manifest_malformed"

    def test_manifest_without_metadata(self):
        with pytest.raises(ManifestMalformedError):
            rewrite(b"<package><files /></package>", MetadataPatch(title="x"))
