"""Workflow orchestration.

Routes a `(verb, store)` pair to the matching adapter method and hands back
the terminal payload. Adapters are built fresh for every invocation and never
coordinate with each other; the first hard error raised by a pipeline step is
propagated unchanged so the CLI (or any other entry point) can report it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

import httpx
from pydantic import BaseModel

from adapters.stores import ChromeStore, EdgeStore, FirefoxStore
from core.clock import CancellationToken, Clock
from core.config import AppSettings, ChromeSettings, EdgeSettings, FirefoxSettings, load_settings
from core.domain.errors import UnsupportedOperation
from core.domain.models import StoreKind, SubmissionRequest, Verb
from core.interfaces.store import StoreAdapter

logger = logging.getLogger(__name__)

SUPPORTED_VERBS: dict[StoreKind, frozenset[Verb]] = {
    StoreKind.CHROME: frozenset({Verb.STATUS, Verb.INSERT, Verb.UPDATE, Verb.PUBLISH}),
    StoreKind.EDGE: frozenset({Verb.UPDATE, Verb.PUBLISH}),
    StoreKind.FIREFOX: frozenset({Verb.STATUS, Verb.INSERT, Verb.UPDATE, Verb.SIGN}),
}

_ROUTES: dict[Verb, Callable[[StoreAdapter, SubmissionRequest], Any]] = {
    Verb.STATUS: lambda adapter, request: adapter.status(request),
    Verb.INSERT: lambda adapter, request: adapter.insert(request),
    Verb.UPDATE: lambda adapter, request: adapter.update(request),
    Verb.PUBLISH: lambda adapter, request: adapter.publish(request),
    Verb.SIGN: lambda adapter, request: adapter.sign(request),
}

StoreFactory = Callable[[StoreKind], StoreAdapter]


@dataclass
class WorkflowResult:
    """Terminal payload of one verb invocation."""

    store: StoreKind
    verb: Verb
    payload: Any

    def to_jsonable(self) -> Any:
        if isinstance(self.payload, BaseModel):
            return self.payload.model_dump(mode="json", by_alias=True)
        return self.payload


def build_store(
    kind: StoreKind,
    *,
    settings: AppSettings | None = None,
    clock: Clock | None = None,
    cancel: CancellationToken | None = None,
    transport: httpx.BaseTransport | None = None,
) -> StoreAdapter:
    """Create the adapter for `kind` from environment settings.

    Raises `ConfigurationError` when the store's credentials are missing.
    """

    settings = settings or load_settings(AppSettings)
    common: dict[str, Any] = {"settings": settings, "clock": clock, "cancel": cancel, "transport": transport}

    if kind is StoreKind.CHROME:
        chrome = load_settings(ChromeSettings)
        chrome.require()
        return ChromeStore(chrome, **common)
    if kind is StoreKind.EDGE:
        edge = load_settings(EdgeSettings)
        edge.require()
        return EdgeStore(edge, **common)
    if kind is StoreKind.FIREFOX:
        firefox = load_settings(FirefoxSettings)
        firefox.require()
        return FirefoxStore(firefox, **common)
    raise UnsupportedOperation(f"unknown store {kind!r}")


class WorkflowOrchestrator:
    def __init__(
        self,
        factory: StoreFactory | None = None,
        *,
        settings: AppSettings | None = None,
        clock: Clock | None = None,
        cancel: CancellationToken | None = None,
    ) -> None:
        self._settings = settings or load_settings(AppSettings)
        self._factory = factory or (
            lambda kind: build_store(kind, settings=self._settings, clock=clock, cancel=cancel)
        )

    def run(self, verb: Verb, request: SubmissionRequest) -> WorkflowResult:
        if verb not in SUPPORTED_VERBS[request.store]:
            raise UnsupportedOperation(f"{request.store.value} store does not support {verb.value}")

        adapter = self._factory(request.store)
        logger.debug("running %s on %s", verb.value, request.store.value)
        payload = _ROUTES[verb](adapter, request)
        return WorkflowResult(store=request.store, verb=verb, payload=payload)
