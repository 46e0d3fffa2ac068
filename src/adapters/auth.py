"""Credential providers for the three store schemes.

- Chrome: OAuth2 refresh-token grant against Google's token endpoint.
- Edge: OAuth2 client-credentials grant against the Azure AD token endpoint.
- Firefox: no network at all, a short-lived HS256 JWT signed with the API secret.

None of them cache. Adapters call `obtain_credential()` for every operation
(Edge even on every poll tick, Firefox on every request).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone

import httpx
import jwt

from adapters.http_client import body_preview, build_client, parse_model, send
from core.clock import Clock, SystemClock
from core.config import AppSettings, ChromeSettings, EdgeSettings, FirefoxSettings
from core.domain.errors import AuthError, ProtocolError, TransportError
from core.domain.models import Credential, CredentialKind
from core.domain.wire import AccessTokenResponse

logger = logging.getLogger(__name__)

OOB_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"


def _issued_at(clock: Clock) -> datetime:
    return datetime.fromtimestamp(clock.time(), tz=timezone.utc)


class _OAuthAuthenticator(ABC):
    kind: CredentialKind

    def __init__(
        self,
        *,
        token_url: str,
        settings: AppSettings | None = None,
        clock: Clock | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._token_url = token_url
        self._settings = settings or AppSettings()
        self._clock = clock or SystemClock()
        self._transport = transport

    @abstractmethod
    def _form(self) -> dict[str, str]:
        """Form fields of the token request."""

    def obtain_credential(self) -> Credential:
        logger.debug("requesting %s access token", self.kind.value)
        try:
            with build_client(self._settings, transport=self._transport) as client:
                response = send(client, "POST", self._token_url, data=self._form())
        except TransportError as exc:
            raise AuthError(f"token request failed: {exc}") from exc

        try:
            token = parse_model(response, AccessTokenResponse)
        except ProtocolError as exc:
            raise AuthError(f"malformed token response: {exc}") from exc

        if response.status_code != 200:
            detail = token.error_description or body_preview(response)
            raise AuthError(f"token request rejected with code {response.status_code}: {detail}")
        if not token.access_token:
            raise AuthError(f"token response carries no access_token: {body_preview(response)!r}")

        return Credential(kind=self.kind, bearer_token=token.access_token, issued_at=_issued_at(self._clock))


class RefreshTokenAuthenticator(_OAuthAuthenticator):
    """Chrome Web Store: exchange a long-lived refresh token for an access token."""

    kind = CredentialKind.REFRESH_TOKEN_OAUTH

    def __init__(
        self,
        chrome: ChromeSettings,
        *,
        settings: AppSettings | None = None,
        clock: Clock | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(token_url=chrome.token_url, settings=settings, clock=clock, transport=transport)
        self._chrome = chrome

    def _form(self) -> dict[str, str]:
        return {
            "client_id": self._chrome.client_id,
            "client_secret": self._chrome.client_secret,
            "refresh_token": self._chrome.refresh_token,
            "grant_type": "refresh_token",
            "redirect_uri": OOB_REDIRECT_URI,
        }


class ClientCredentialsAuthenticator(_OAuthAuthenticator):
    """Edge Add-ons: client-credentials grant scoped to the add-ons API."""

    kind = CredentialKind.CLIENT_CREDENTIALS_OAUTH

    def __init__(
        self,
        edge: EdgeSettings,
        *,
        settings: AppSettings | None = None,
        clock: Clock | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(token_url=edge.access_token_url, settings=settings, clock=clock, transport=transport)
        self._edge = edge

    def _form(self) -> dict[str, str]:
        return {
            "client_id": self._edge.client_id,
            "scope": self._edge.scope,
            "client_secret": self._edge.client_secret,
            "grant_type": "client_credentials",
        }


class SignedAssertionAuthenticator:
    """addons.mozilla.org: locally signed JWT (`iss`, `iat`, `exp`).

    The assertion expires after `assertion_ttl_seconds`, far shorter than the
    validation/signing polls, so one is minted per HTTP request.
    """

    kind = CredentialKind.SIGNED_ASSERTION

    def __init__(self, firefox: FirefoxSettings, *, clock: Clock | None = None) -> None:
        self._firefox = firefox
        self._clock = clock or SystemClock()

    def obtain_credential(self) -> Credential:
        if not self._firefox.client_id or not self._firefox.client_secret:
            raise AuthError("firefox client id and secret are required to sign the assertion")

        issued = int(self._clock.time())
        claims = {
            "iss": self._firefox.client_id,
            "iat": issued,
            "exp": issued + self._firefox.assertion_ttl_seconds,
        }
        try:
            token = jwt.encode(claims, self._firefox.client_secret, algorithm="HS256")
        except jwt.PyJWTError as exc:
            raise AuthError(f"could not sign assertion: {exc}") from exc

        return Credential(kind=self.kind, bearer_token=token, issued_at=_issued_at(self._clock))
