"""Error taxonomy shared by every store adapter.

Why a closed hierarchy:
- The orchestrator surfaces the first hard error unchanged, so callers can
  branch on the type (auth vs. transport vs. store rejection) without parsing
  messages.
- The CLI only needs to catch `ExtdashError` to decide the exit code.
"""

from __future__ import annotations

from typing import Any


class ExtdashError(Exception):
    """Base class for every failure raised by the workflow engine."""


class ConfigurationError(ExtdashError):
    """Required settings (credentials, URLs) are missing or invalid."""


class InvalidRequest(ExtdashError):
    """The submission request lacks an argument the verb needs (app id, archive)."""


class ArchiveError(ExtdashError):
    """The extension package could not be read or lacks required metadata."""


class AuthError(ExtdashError):
    """Credential acquisition failed."""


class TransportError(ExtdashError):
    """Network or local I/O failure while talking to a store."""


class ProtocolError(ExtdashError):
    """The store answered with an unexpected status code or an unparsable body."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is None:
            return base
        return f"{base} (got code {self.status_code}, body: {self.body!r})"


class ValidationFailed(ExtdashError):
    """The store rejected the submitted content or requires a manual review."""

    def __init__(self, message: str, *, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload

    def __str__(self) -> str:
        base = super().__str__()
        if self.payload is None:
            return base
        return f"{base}, full status: {self.payload!r}"


class PollTimeout(ExtdashError, TimeoutError):
    """A poll loop exceeded its overall budget without reaching a terminal status."""


class NotFound(ExtdashError):
    """A looked-up resource (e.g. a version in the versions list) does not exist."""


class OperationCancelled(ExtdashError):
    """The caller cancelled an in-flight operation."""


class UnsupportedOperation(ExtdashError):
    """The requested verb is not offered by the selected store."""
