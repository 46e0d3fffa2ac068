"""Store adapter: addons.mozilla.org (AMO).

The most elaborate lifecycle, up to five chained calls:
- insert: upload new -> read manifest -> await validation -> version id -> upload source
- update: read manifest -> upload version -> await validation -> version id -> upload source
- sign:   read manifest -> upload version -> await signing -> download signed file

Every request carries a freshly signed JWT; the assertion lives five minutes
while the polls may run for twenty.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Any
from urllib.parse import unquote, urlparse

import httpx

from adapters.archive import read_manifest
from adapters.auth import SignedAssertionAuthenticator
from adapters.http_client import expect_status, join_url, parse_model, read_json, send
from adapters.stores.base import BaseStore, read_file_bytes, require_app_id, require_archive
from core.clock import CancellationToken, Clock
from core.config import AppSettings, FirefoxSettings
from core.domain.errors import NotFound, ProtocolError, TransportError, ValidationFailed
from core.domain.models import (
    OperationStatus,
    SignedArtifact,
    StatusState,
    StoreKind,
    SubmissionRequest,
    SubmissionResult,
)
from core.domain.wire import FirefoxUploadStatus, FirefoxVersionsPage
from core.interfaces.authenticator import Authenticator
from core.services.polling import poll

logger = logging.getLogger(__name__)

ADDONS_PATH = "api/v5/addons"
ADDON_PATH = "api/v5/addons/addon"


def validation_status(status: FirefoxUploadStatus) -> OperationStatus:
    # Processed is enough; a processed-but-invalid upload is still terminal here.
    state = StatusState.SUCCEEDED if status.processed else StatusState.PENDING
    return OperationStatus(state=state, payload=status)


def signing_status(status: FirefoxUploadStatus) -> OperationStatus:
    if status.requires_manual_review:
        return OperationStatus(
            state=StatusState.FAILED,
            payload=status,
            detail="extension won't be signed automatically and requires manual review",
        )
    if status.signed_and_ready:
        return OperationStatus(state=StatusState.SUCCEEDED, payload=status)
    return OperationStatus(state=StatusState.PENDING, payload=status)


def filename_from_url(url: str) -> str:
    name = PurePosixPath(unquote(urlparse(url).path)).name
    if not name:
        raise ProtocolError(f"cannot derive a file name from download url {url!r}")
    return name


class FirefoxStore(BaseStore):
    kind = StoreKind.FIREFOX

    def __init__(
        self,
        firefox: FirefoxSettings,
        *,
        settings: AppSettings | None = None,
        authenticator: Authenticator | None = None,
        clock: Clock | None = None,
        cancel: CancellationToken | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        authenticator = authenticator or SignedAssertionAuthenticator(firefox, clock=clock)
        super().__init__(authenticator, settings=settings, clock=clock, cancel=cancel, transport=transport)
        self._firefox = firefox
        self._base_url = firefox.api_url

    # ------------------------------------------------------------ verbs

    def status(self, request: SubmissionRequest) -> Any:
        app_id = require_app_id(request)
        response = self._request("GET", join_url(self._base_url, ADDON_PATH, app_id))
        expect_status(response, 200)
        return read_json(response)

    def insert(self, request: SubmissionRequest) -> SubmissionResult:
        archive = require_archive(request)
        logger.debug("uploading new extension %s (source: %s)", archive, request.source_path)

        self.upload_new(archive)
        manifest = read_manifest(archive)
        return self._finish_upload(manifest.extension_id, manifest.version, request.source_path)

    def update(self, request: SubmissionRequest) -> SubmissionResult:
        archive = require_archive(request)
        manifest = read_manifest(archive)
        logger.debug("uploading %s %s (source: %s)", manifest.extension_id, manifest.version, request.source_path)

        self.upload_update(manifest.extension_id, manifest.version, archive)
        return self._finish_upload(manifest.extension_id, manifest.version, request.source_path)

    def sign(self, request: SubmissionRequest) -> SignedArtifact:
        archive = require_archive(request)
        manifest = read_manifest(archive)
        logger.debug("signing %s %s", manifest.extension_id, manifest.version)

        self.upload_update(manifest.extension_id, manifest.version, archive)
        status = self.await_signing(manifest.extension_id, manifest.version)
        return self.download_signed(status)

    # ------------------------------------------------------------ steps

    def upload_new(self, archive: Path) -> Any:
        url = join_url(self._base_url, ADDONS_PATH, trailing_slash=True)
        response = self._request("POST", url, files={"upload": (archive.name, read_file_bytes(archive))})
        expect_status(response, 201, 202)
        logger.debug("uploaded new extension %s", archive)
        return read_json(response)

    def upload_update(self, app_id: str, version: str, archive: Path) -> Any:
        url = join_url(self._base_url, ADDONS_PATH, app_id, "versions", version, trailing_slash=True)
        response = self._request("PUT", url, files={"upload": (archive.name, read_file_bytes(archive))})
        expect_status(response, 201, 202)
        logger.debug("uploaded %s %s", app_id, version)
        return read_json(response)

    def upload_status(self, app_id: str, version: str) -> FirefoxUploadStatus:
        url = join_url(self._base_url, ADDONS_PATH, app_id, "versions", version)
        response = self._request("GET", url)
        expect_status(response, 200)
        status = parse_model(response, FirefoxUploadStatus)
        logger.debug(
            "upload status: processed=%s valid=%s active=%s reviewed=%s files=%d",
            status.processed,
            status.valid,
            status.active,
            status.reviewed,
            len(status.files),
        )
        return status

    def await_validation(self, app_id: str, version: str) -> FirefoxUploadStatus:
        final = poll(
            lambda: validation_status(self.upload_status(app_id, version)),
            interval=self._firefox.poll_interval_seconds,
            timeout=self._firefox.await_timeout_seconds,
            clock=self._clock,
            cancel=self._cancel,
            label="firefox validation",
        )
        return final.payload

    def await_signing(self, app_id: str, version: str) -> FirefoxUploadStatus:
        final = poll(
            lambda: signing_status(self.upload_status(app_id, version)),
            interval=self._firefox.poll_interval_seconds,
            timeout=self._firefox.await_timeout_seconds,
            clock=self._clock,
            cancel=self._cancel,
            label="firefox signing",
        )
        if final.state is StatusState.FAILED:
            raise ValidationFailed(final.detail or "signing failed", payload=final.payload.model_dump())
        return final.payload

    def version_id(self, app_id: str, version: str) -> str:
        """Resolve a version string to its numeric id, following result pages."""

        url: str | None = join_url(self._base_url, ADDON_PATH, app_id, "versions")
        params: dict[str, str] | None = {"filter": "all_with_unlisted"}
        while url:
            response = self._request("GET", url, params=params)
            expect_status(response, 200)
            page = parse_model(response, FirefoxVersionsPage)
            for entry in page.results:
                if entry.version == version:
                    logger.debug("version %s of %s has id %d", version, app_id, entry.id)
                    return str(entry.id)
            # `next` already carries the query string.
            url, params = page.next, None
        raise NotFound(f"version {version} not found for {app_id}")

    def upload_source(self, app_id: str, version_id: str, source: Path) -> Any:
        url = join_url(self._base_url, ADDON_PATH, app_id, "versions", version_id, trailing_slash=True)
        response = self._request("PATCH", url, files={"source": (source.name, read_file_bytes(source))})
        expect_status(response, 200)
        logger.debug("uploaded source %s for %s version %s", source, app_id, version_id)
        return read_json(response)

    def download_signed(self, status: FirefoxUploadStatus) -> SignedArtifact:
        if not status.files:
            raise NotFound("no signed files to download")
        download_url = status.files[0].download_url
        if not download_url:
            raise NotFound("signed file carries no download url")

        response = self._request("GET", download_url)
        expect_status(response, 200)

        target = self._settings.output_dir / filename_from_url(download_url)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(response.content)
        except OSError as exc:
            raise TransportError(f"could not save {target}: {exc}") from exc

        logger.debug("saved signed package to %s", target)
        return SignedArtifact(path=target, download_url=download_url, size=len(response.content))

    # ------------------------------------------------------------ helpers

    def _finish_upload(self, app_id: str, version: str, source: Path | None) -> SubmissionResult:
        status = self.await_validation(app_id, version)
        version_id = self.version_id(app_id, version)

        source_uploaded = False
        if source is not None:
            self.upload_source(app_id, version_id, source)
            source_uploaded = True
        else:
            logger.info("no source archive given, skipping source upload for %s %s", app_id, version)

        return SubmissionResult(
            extension_id=app_id,
            version=version,
            version_id=version_id,
            source_uploaded=source_uploaded,
            upload_status=status.model_dump(),
        )

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        credential = self._auth.obtain_credential()
        with self._client(credential) as client:
            return send(client, method, url, **kwargs)
