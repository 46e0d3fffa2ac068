"""Read extension metadata out of a packaged archive.

Firefox builds its versioned API paths from the manifest, so the add-on id
and version come from `manifest.json` inside the zip rather than from flags.
"""

from __future__ import annotations

import json
import zipfile
from pathlib import Path
from typing import Any

from core.domain.errors import ArchiveError
from core.domain.models import Manifest

MANIFEST_ENTRY = "manifest.json"


def read_entry(archive_path: Path, name: str) -> bytes:
    """Return the raw bytes of entry `name` from the zip at `archive_path`."""

    try:
        with zipfile.ZipFile(archive_path) as archive:
            try:
                return archive.read(name)
            except KeyError as exc:
                raise ArchiveError(f"was unable to find file {name} in {archive_path}") from exc
    except (OSError, zipfile.BadZipFile) as exc:
        raise ArchiveError(f"could not open archive {archive_path}: {exc}") from exc


def _gecko_id(data: dict[str, Any]) -> str | None:
    # MV3 uses browser_specific_settings; older packages still ship applications.
    for key in ("browser_specific_settings", "applications"):
        section = data.get(key)
        if not isinstance(section, dict):
            continue
        gecko = section.get("gecko")
        if isinstance(gecko, dict) and isinstance(gecko.get("id"), str) and gecko["id"]:
            return gecko["id"]
    return None


def read_manifest(archive_path: Path) -> Manifest:
    raw = read_entry(archive_path, MANIFEST_ENTRY)
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ArchiveError(f"{MANIFEST_ENTRY} in {archive_path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ArchiveError(f"{MANIFEST_ENTRY} in {archive_path} is not an object")

    version = data.get("version")
    if not isinstance(version, str) or not version:
        raise ArchiveError(f"{MANIFEST_ENTRY} in {archive_path} has no version")

    extension_id = _gecko_id(data)
    if extension_id is None:
        raise ArchiveError(f"{MANIFEST_ENTRY} in {archive_path} has no gecko id")

    return Manifest(version=version, extension_id=extension_id)
