"""Plumbing shared by the concrete store adapters."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx

from adapters.http_client import build_client
from core.clock import CancellationToken, Clock, SystemClock
from core.config import AppSettings
from core.domain.errors import InvalidRequest, TransportError, UnsupportedOperation
from core.domain.models import Credential, StoreKind, SubmissionRequest, Verb
from core.interfaces.authenticator import Authenticator
from core.interfaces.store import StoreAdapter


def require_app_id(request: SubmissionRequest) -> str:
    if not request.app_id:
        raise InvalidRequest(f"{request.store.value}: an app id (--app) is required")
    return request.app_id


def require_archive(request: SubmissionRequest) -> Path:
    if request.archive_path is None:
        raise InvalidRequest(f"{request.store.value}: an archive (--file) is required")
    return request.archive_path


def read_file_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise TransportError(f"could not read {path}: {exc}") from exc


class BaseStore(StoreAdapter):
    """Every verb defaults to `UnsupportedOperation`; subclasses override what the store offers."""

    kind: StoreKind

    def __init__(
        self,
        authenticator: Authenticator,
        *,
        settings: AppSettings | None = None,
        clock: Clock | None = None,
        cancel: CancellationToken | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._auth = authenticator
        self._settings = settings or AppSettings()
        self._clock = clock or SystemClock()
        self._cancel = cancel
        self._transport = transport

    def _client(self, credential: Credential) -> httpx.Client:
        return build_client(
            self._settings,
            extra_headers={"Authorization": credential.authorization},
            transport=self._transport,
        )

    def _unsupported(self, verb: Verb) -> UnsupportedOperation:
        return UnsupportedOperation(f"{self.kind.value} store does not support {verb.value}")

    def status(self, request: SubmissionRequest) -> Any:
        raise self._unsupported(Verb.STATUS)

    def insert(self, request: SubmissionRequest) -> Any:
        raise self._unsupported(Verb.INSERT)

    def update(self, request: SubmissionRequest) -> Any:
        raise self._unsupported(Verb.UPDATE)

    def publish(self, request: SubmissionRequest) -> Any:
        raise self._unsupported(Verb.PUBLISH)

    def sign(self, request: SubmissionRequest) -> Any:
        raise self._unsupported(Verb.SIGN)
