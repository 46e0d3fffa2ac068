"""Credential acquisition contract.

Why Protocol:
- Three stores, three schemes (refresh-token OAuth, client-credentials OAuth,
  locally signed JWT); adapters only need "give me a fresh credential".
- Tests can swap in a stub without touching the network.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import Credential


@runtime_checkable
class Authenticator(Protocol):
    """Produces a bearer credential for one store.

    Design rules:
    - Never cache: every call derives a new credential.
    - Failures raise `AuthError`; a token is never returned on failure.
    """

    def obtain_credential(self) -> Credential:
        ...
