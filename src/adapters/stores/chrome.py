"""Store adapter: Chrome Web Store.

Fully synchronous: the store validates uploads inline and answers with a final
payload, so there is nothing to poll. The payloads are returned untouched;
an `uploadState` of FAILURE only becomes an error when
`AppSettings.chrome_strict_upload_state` is enabled.
"""

from __future__ import annotations

import logging

import httpx

from adapters.auth import RefreshTokenAuthenticator
from adapters.http_client import expect_status, join_url, parse_model, send
from adapters.stores.base import BaseStore, read_file_bytes, require_app_id, require_archive
from core.clock import CancellationToken, Clock
from core.config import AppSettings, ChromeSettings
from core.domain.errors import ValidationFailed
from core.domain.models import StoreKind, SubmissionRequest
from core.domain.wire import ChromeItem, ChromePublishResponse, ChromeUploadResponse
from core.interfaces.authenticator import Authenticator

logger = logging.getLogger(__name__)

ITEMS_PATH = "chromewebstore/v1.1/items"
UPLOAD_PATH = "upload/chromewebstore/v1.1/items"

UPLOAD_STATE_FAILURE = "FAILURE"


class ChromeStore(BaseStore):
    kind = StoreKind.CHROME

    def __init__(
        self,
        chrome: ChromeSettings,
        *,
        settings: AppSettings | None = None,
        authenticator: Authenticator | None = None,
        clock: Clock | None = None,
        cancel: CancellationToken | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        settings = settings or AppSettings()
        authenticator = authenticator or RefreshTokenAuthenticator(
            chrome, settings=settings, clock=clock, transport=transport
        )
        super().__init__(authenticator, settings=settings, clock=clock, cancel=cancel, transport=transport)
        self._base_url = chrome.api_url

    def status(self, request: SubmissionRequest) -> ChromeItem:
        app_id = require_app_id(request)
        url = join_url(self._base_url, ITEMS_PATH, app_id)

        credential = self._auth.obtain_credential()
        with self._client(credential) as client:
            response = send(client, "GET", url, params={"projection": "DRAFT"})

        expect_status(response, 200)
        return parse_model(response, ChromeItem)

    def insert(self, request: SubmissionRequest) -> ChromeUploadResponse:
        archive = require_archive(request)
        url = join_url(self._base_url, UPLOAD_PATH)
        logger.debug("inserting new chrome item from %s", archive)
        return self._upload("POST", url, read_file_bytes(archive))

    def update(self, request: SubmissionRequest) -> ChromeUploadResponse:
        app_id = require_app_id(request)
        archive = require_archive(request)
        url = join_url(self._base_url, UPLOAD_PATH, app_id)
        logger.debug("updating chrome item %s from %s", app_id, archive)
        return self._upload("PUT", url, read_file_bytes(archive))

    def publish(self, request: SubmissionRequest) -> ChromePublishResponse:
        app_id = require_app_id(request)
        url = join_url(self._base_url, ITEMS_PATH, app_id, "publish")

        credential = self._auth.obtain_credential()
        with self._client(credential) as client:
            response = send(client, "POST", url)

        expect_status(response, 200)
        result = parse_model(response, ChromePublishResponse)
        logger.debug("chrome publish status: %s %s", result.status, result.status_detail)
        return result

    def _upload(self, method: str, url: str, content: bytes) -> ChromeUploadResponse:
        credential = self._auth.obtain_credential()
        with self._client(credential) as client:
            response = send(client, method, url, content=content)

        expect_status(response, 200)
        result = parse_model(response, ChromeUploadResponse)

        if result.upload_state == UPLOAD_STATE_FAILURE:
            if self._settings.chrome_strict_upload_state:
                raise ValidationFailed("chrome rejected the upload", payload=result.model_dump(by_alias=True))
            logger.warning("chrome reported uploadState=%s for item %s", result.upload_state, result.id)
        return result
