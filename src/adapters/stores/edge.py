"""Store adapter: Microsoft Edge Add-ons.

Two independent asynchronous pipelines:
- update: upload the package (202 + operation id in `Location`), then poll the
  upload operation until it leaves `InProgress`.
- publish: create a submission (202 + operation id), then read its status
  exactly once. The publish operation is not polled.

A fresh access token is requested for every call, including every poll tick.
That keeps long polls authorized at the price of one extra token round trip
per tick.
"""

from __future__ import annotations

import logging

import httpx

from adapters.auth import ClientCredentialsAuthenticator
from adapters.http_client import expect_status, join_url, parse_model, send
from adapters.stores.base import BaseStore, read_file_bytes, require_app_id, require_archive
from core.clock import CancellationToken, Clock
from core.config import AppSettings, EdgeSettings
from core.domain.errors import ProtocolError, ValidationFailed
from core.domain.models import OperationStatus, StatusState, StoreKind, SubmissionRequest
from core.domain.wire import EdgeOperationResponse
from core.interfaces.authenticator import Authenticator
from core.services.polling import poll

logger = logging.getLogger(__name__)

PRODUCTS_PATH = "v1/products"

# Case-sensitive, exactly as the API spells them.
_EDGE_STATES = {
    "InProgress": StatusState.PENDING,
    "Succeeded": StatusState.SUCCEEDED,
    "Failed": StatusState.FAILED,
}


def normalize_status(response: EdgeOperationResponse) -> OperationStatus:
    state = _EDGE_STATES.get(response.status)
    if state is None:
        raise ProtocolError(f"unrecognized edge operation status {response.status!r}")
    return OperationStatus(state=state, payload=response, detail=response.message)


def _failure(prefix: str, response: EdgeOperationResponse) -> ValidationFailed:
    return ValidationFailed(
        f"{prefix} failed due to {response.message!r} (errorCode={response.error_code!r})",
        payload=response.model_dump(by_alias=True),
    )


class EdgeStore(BaseStore):
    kind = StoreKind.EDGE

    def __init__(
        self,
        edge: EdgeSettings,
        *,
        settings: AppSettings | None = None,
        authenticator: Authenticator | None = None,
        clock: Clock | None = None,
        cancel: CancellationToken | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        settings = settings or AppSettings()
        authenticator = authenticator or ClientCredentialsAuthenticator(
            edge, settings=settings, clock=clock, transport=transport
        )
        super().__init__(authenticator, settings=settings, clock=clock, cancel=cancel, transport=transport)
        self._edge = edge
        self._base_url = edge.api_url

    # ------------------------------------------------------------ update

    def update(self, request: SubmissionRequest) -> EdgeOperationResponse:
        app_id = require_app_id(request)
        archive = require_archive(request)

        operation_id = self.upload_update(app_id, read_file_bytes(archive))
        logger.debug("edge upload accepted, operation %s", operation_id)

        final = poll(
            lambda: normalize_status(self.upload_status(app_id, operation_id)),
            interval=self._edge.retry_timeout_seconds,
            timeout=self._edge.wait_status_timeout_seconds,
            clock=self._clock,
            cancel=self._cancel,
            label="edge upload",
        )
        if final.state is StatusState.FAILED:
            raise _failure("update", final.payload)
        return final.payload

    def upload_update(self, app_id: str, content: bytes) -> str:
        url = join_url(self._base_url, PRODUCTS_PATH, app_id, "submissions/draft/package")

        credential = self._auth.obtain_credential()
        with self._client(credential) as client:
            response = send(client, "POST", url, content=content, headers={"Content-Type": "application/zip"})

        return self._operation_id(response)

    def upload_status(self, app_id: str, operation_id: str) -> EdgeOperationResponse:
        url = join_url(
            self._base_url, PRODUCTS_PATH, app_id, "submissions/draft/package/operations", operation_id
        )

        credential = self._auth.obtain_credential()
        with self._client(credential) as client:
            response = send(client, "GET", url)

        expect_status(response, 200)
        return parse_model(response, EdgeOperationResponse)

    # ------------------------------------------------------------ publish

    def publish(self, request: SubmissionRequest) -> EdgeOperationResponse:
        app_id = require_app_id(request)
        operation_id = self.publish_extension(app_id)
        logger.debug("edge publish accepted, operation %s", operation_id)
        return self.publish_status(app_id, operation_id)

    def publish_extension(self, app_id: str) -> str:
        url = join_url(self._base_url, PRODUCTS_PATH, app_id, "submissions")

        credential = self._auth.obtain_credential()
        with self._client(credential) as client:
            response = send(client, "POST", url)

        return self._operation_id(response)

    def publish_status(self, app_id: str, operation_id: str) -> EdgeOperationResponse:
        url = join_url(self._base_url, PRODUCTS_PATH, app_id, "submissions/operations", operation_id)

        credential = self._auth.obtain_credential()
        with self._client(credential) as client:
            response = send(client, "GET", url)

        expect_status(response, 200)
        result = parse_model(response, EdgeOperationResponse)
        if normalize_status(result).state is StatusState.FAILED:
            raise _failure("publish", result)
        return result

    @staticmethod
    def _operation_id(response: httpx.Response) -> str:
        expect_status(response, 202)
        # The header carries a bare operation id, not a URL.
        operation_id = response.headers.get("Location", "")
        if not operation_id:
            raise ProtocolError("received empty operation id", status_code=response.status_code, body="")
        return operation_id
