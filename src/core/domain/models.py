"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation and self-documenting fields (Field) without coupling the
  Core to HTTP or CLI libraries.
- The same models serialize straight to JSON for the CLI output.

Note:
- These models describe *what* a submission is, not *how* a store is called.
  Provider wire shapes live in `core.domain.wire`.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class StoreKind(str, Enum):
    """Supported store backends."""

    CHROME = "chrome"
    EDGE = "edge"
    FIREFOX = "firefox"


class Verb(str, Enum):
    """User-facing operations offered by the workflow engine."""

    STATUS = "status"
    INSERT = "insert"
    UPDATE = "update"
    PUBLISH = "publish"
    SIGN = "sign"


class CredentialKind(str, Enum):
    REFRESH_TOKEN_OAUTH = "refresh_token_oauth"
    CLIENT_CREDENTIALS_OAUTH = "client_credentials_oauth"
    SIGNED_ASSERTION = "signed_assertion"


class Credential(BaseModel):
    """Short-lived bearer credential.

    Never cached: adapters derive a fresh one for every call (Firefox for
    every single request, since its assertion expires after a few minutes).
    """

    model_config = ConfigDict(frozen=True)

    kind: CredentialKind
    bearer_token: str = Field(..., min_length=1)
    issued_at: datetime

    @property
    def authorization(self) -> str:
        """Value of the `Authorization` header for this credential."""

        if self.kind is CredentialKind.SIGNED_ASSERTION:
            return f"JWT {self.bearer_token}"
        return f"Bearer {self.bearer_token}"

    def __repr__(self) -> str:
        return f"Credential(kind={self.kind.value!r}, issued_at={self.issued_at.isoformat()!r})"


class SubmissionRequest(BaseModel):
    """One verb invocation against one extension package for one store."""

    model_config = ConfigDict(frozen=True)

    store: StoreKind
    app_id: str | None = Field(
        default=None,
        description="Store item id; optional for a first insert.",
    )
    archive_path: Path | None = Field(
        default=None,
        description="Packaged extension (zip/xpi).",
    )
    source_path: Path | None = Field(
        default=None,
        description="Source code archive, Firefox only.",
    )


class Manifest(BaseModel):
    """Extension metadata extracted from the packaged archive."""

    version: str = Field(..., min_length=1)
    extension_id: str = Field(..., min_length=1)


class StatusState(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class OperationStatus(BaseModel):
    """Normalized tri-state status plus the raw provider payload.

    Every provider encoding is decoded into this shape before it reaches the
    poll loop, so the loop itself never looks at provider fields.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    state: StatusState
    payload: Any = None
    detail: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.state is StatusState.PENDING


class SignedArtifact(BaseModel):
    """Signed package downloaded from the store."""

    path: Path
    download_url: str
    size: int = Field(..., ge=0)


class SubmissionResult(BaseModel):
    """Outcome of a multi-step upload (validated, version resolved, source attached)."""

    extension_id: str
    version: str
    version_id: str
    source_uploaded: bool = False
    upload_status: dict[str, Any] = Field(default_factory=dict)
