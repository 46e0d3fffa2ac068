"""Shared pytest fixtures for extdash tests."""

from __future__ import annotations

import json
import zipfile
from datetime import datetime, timezone

import pytest
from typer.testing import CliRunner

from core.clock import CancellationToken
from core.config import AppSettings, ChromeSettings, EdgeSettings, FirefoxSettings
from core.domain.models import Credential, CredentialKind

TEST_EPOCH = 1_700_000_000.0


class FakeClock:
    """Deterministic clock: `sleep` only advances time."""

    def __init__(self, start: float = TEST_EPOCH) -> None:
        self.elapsed = 0.0
        self.start = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.elapsed

    def time(self) -> float:
        return self.start + self.elapsed

    def sleep(self, seconds: float, cancel: CancellationToken | None = None) -> None:
        self.sleeps.append(seconds)
        self.elapsed += seconds


class StubAuthenticator:
    """Returns a fixed credential and counts how often it was asked."""

    def __init__(self, token: str = "test_access_token", kind: CredentialKind = CredentialKind.REFRESH_TOKEN_OAUTH):
        self.token = token
        self.kind = kind
        self.calls = 0

    def obtain_credential(self) -> Credential:
        self.calls += 1
        return Credential(kind=self.kind, bearer_token=self.token, issued_at=datetime.now(tz=timezone.utc))


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def stub_auth():
    return StubAuthenticator()


@pytest.fixture
def app_settings(tmp_path):
    """Settings isolated from any .env on the machine."""
    return AppSettings(_env_file=None, output_dir=tmp_path / "out")


@pytest.fixture
def chrome_settings():
    return ChromeSettings(
        _env_file=None,
        client_id="test_client_id",
        client_secret="test_client_secret",
        refresh_token="test_refresh_token",
        token_url="https://oauth.test/token",
        api_url="https://chrome.test",
    )


@pytest.fixture
def edge_settings():
    return EdgeSettings(
        _env_file=None,
        client_id="test_client_id",
        client_secret="test_client_secret",
        access_token_url="https://login.test/token",
        api_url="https://edge.test",
    )


@pytest.fixture
def firefox_settings():
    return FirefoxSettings(
        _env_file=None,
        client_id="test_issuer",
        client_secret="test_secret",
        api_url="https://amo.test",
    )


def _make_archive(path, manifest: dict | None, extra: dict[str, bytes] | None = None):
    with zipfile.ZipFile(path, "w") as archive:
        if manifest is not None:
            archive.writestr("manifest.json", json.dumps(manifest))
        for name, content in (extra or {}).items():
            archive.writestr(name, content)
    return path


@pytest.fixture
def archive_factory(tmp_path):
    """Build a zip under tmp_path: `archive_factory(name, manifest, extra)`."""

    def factory(name, manifest, extra=None):
        return _make_archive(tmp_path / name, manifest, extra)

    return factory


@pytest.fixture
def firefox_archive(tmp_path):
    """A minimal signed-extension candidate with a gecko id and version 1.0."""
    manifest = {
        "manifest_version": 2,
        "name": "Test",
        "version": "1.0",
        "browser_specific_settings": {"gecko": {"id": "test@example.org"}},
    }
    return _make_archive(tmp_path / "extension.xpi", manifest, {"background.js": b"console.log(1);"})


@pytest.fixture
def chrome_archive(tmp_path):
    path = tmp_path / "extension.zip"
    path.write_bytes(b"test_file_content")
    return path


@pytest.fixture
def source_archive(tmp_path):
    path = tmp_path / "source.zip"
    path.write_bytes(b"test_source_content")
    return path
