"""Tests for manifest extraction from packaged extensions."""

import pytest

from adapters.archive import read_entry, read_manifest
from core.domain.errors import ArchiveError


class TestReadManifest:
    def test_browser_specific_settings(self, firefox_archive):
        manifest = read_manifest(firefox_archive)
        assert manifest.version == "1.0"
        assert manifest.extension_id == "test@example.org"

    def test_legacy_applications_key(self, archive_factory):
        path = archive_factory(
            "legacy.xpi",
            {"version": "2.3.1", "applications": {"gecko": {"id": "{1234-abcd}"}}},
        )
        manifest = read_manifest(path)
        assert manifest.version == "2.3.1"
        assert manifest.extension_id == "{1234-abcd}"

    def test_missing_manifest(self, archive_factory):
        path = archive_factory("empty.xpi", None, {"background.js": b""})
        with pytest.raises(ArchiveError, match="manifest.json"):
            read_manifest(path)

    def test_missing_gecko_id(self, archive_factory):
        path = archive_factory("chrome.zip", {"version": "1.0", "manifest_version": 3})
        with pytest.raises(ArchiveError, match="gecko id"):
            read_manifest(path)

    def test_missing_version(self, archive_factory):
        path = archive_factory("noversion.xpi", {"browser_specific_settings": {"gecko": {"id": "a@b"}}})
        with pytest.raises(ArchiveError, match="no version"):
            read_manifest(path)

    def test_manifest_is_not_json(self, archive_factory):
        path = archive_factory("broken.xpi", None, {"manifest.json": b"{not json"})
        with pytest.raises(ArchiveError, match="not valid JSON"):
            read_manifest(path)

    def test_not_a_zip(self, chrome_archive):
        # chrome_archive holds raw bytes, not a zip container
        with pytest.raises(ArchiveError, match="could not open"):
            read_manifest(chrome_archive)

    def test_nonexistent_file(self, tmp_path):
        with pytest.raises(ArchiveError):
            read_manifest(tmp_path / "missing.xpi")


def test_read_entry_returns_raw_bytes(archive_factory):
    path = archive_factory("ext.zip", {"version": "1"}, {"content.js": b"alert(1)"})
    assert read_entry(path, "content.js") == b"alert(1)"
