"""httpx wrapper.

Why a wrapper:
- Standardizes timeouts, headers and error mapping for every store.
- Makes testing easy: any builder call accepts an `httpx.MockTransport`.
"""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from core.config import AppSettings
from core.domain.errors import ProtocolError, TransportError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Responses from the stores are small JSON documents or a signed package.
MAX_READ_BYTES = 10 * 1024 * 1024

_BODY_PREVIEW = 2_000


def build_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Create an `httpx.Client` with safe defaults.

    Why a builder:
    - Centralizes timeouts/headers so all stores behave the same.
    - `transport` lets tests route requests to an in-process stub.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.Client(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def join_url(base_url: str, *parts: str, trailing_slash: bool = False) -> str:
    """Join path segments onto a base URL without mutating it.

    >>> join_url("https://example.org", "api/v5", "addons")
    'https://example.org/api/v5/addons'
    """

    url = base_url.rstrip("/")
    for part in parts:
        part = part.strip("/")
        if part:
            url = f"{url}/{part}"
    if trailing_slash:
        url += "/"
    return url


def body_preview(response: httpx.Response) -> str:
    text = response.text
    if len(text) > _BODY_PREVIEW:
        return text[:_BODY_PREVIEW] + "..."
    return text


def send(client: httpx.Client, method: str, url: str, **kwargs: Any) -> httpx.Response:
    """Perform one request, mapping transport failures to `TransportError`."""

    logger.debug("%s %s", method, url)
    try:
        response = client.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        raise TransportError(f"{method} {url} failed: {exc}") from exc

    if len(response.content) > MAX_READ_BYTES:
        raise ProtocolError(
            f"{method} {url} returned more than {MAX_READ_BYTES} bytes",
            status_code=response.status_code,
            body="<truncated>",
        )
    logger.debug("%s %s -> %d", method, url, response.status_code)
    return response


def expect_status(response: httpx.Response, *codes: int) -> httpx.Response:
    if response.status_code not in codes:
        raise ProtocolError(
            f"unexpected response from {response.request.method} {response.request.url}",
            status_code=response.status_code,
            body=body_preview(response),
        )
    return response


def read_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ProtocolError(
            f"unparsable JSON body: {exc}",
            status_code=response.status_code,
            body=body_preview(response),
        ) from exc


def parse_model(response: httpx.Response, model: type[ModelT]) -> ModelT:
    """Decode the JSON body into `model`, mapping failures to `ProtocolError`."""

    payload = read_json(response)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ProtocolError(
            f"unexpected {model.__name__} payload: {exc.errors(include_url=False)}",
            status_code=response.status_code,
            body=body_preview(response),
        ) from exc
