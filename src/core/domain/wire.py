"""Provider wire shapes (Pydantic v2).

Each store speaks its own JSON dialect. These models decode those payloads
untouched (unknown fields ignored, camelCase aliases kept) so adapters can
return typed results and the CLI can emit them verbatim.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic.config import ConfigDict


class _Wire(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def _null_as_default(model: type[BaseModel], value: Any, info: ValidationInfo) -> Any:
    """Map an explicit JSON null to the field default; other values pass through."""

    if value is None and info.field_name is not None:
        return model.model_fields[info.field_name].get_default(call_default_factory=True)
    return value


# ---------------------------------------------------------------- OAuth


class AccessTokenResponse(_Wire):
    access_token: str | None = None
    token_type: str | None = None
    expires_in: int | None = None
    error_description: str | None = None


# ---------------------------------------------------------------- Chrome


class ChromeItem(_Wire):
    kind: str | None = None
    id: str | None = None
    public_key: str | None = Field(default=None, alias="publicKey")
    upload_state: str | None = Field(default=None, alias="uploadState")
    crx_version: str | None = Field(default=None, alias="crxVersion")


class ChromeItemError(_Wire):
    error_code: str | None = None
    error_detail: str | None = None


class ChromeUploadResponse(_Wire):
    kind: str | None = None
    id: str | None = None
    upload_state: str | None = Field(default=None, alias="uploadState")
    item_error: list[ChromeItemError] = Field(default_factory=list, alias="itemError")


class ChromePublishResponse(_Wire):
    kind: str | None = None
    item_id: str | None = None
    status: list[str] = Field(default_factory=list)
    status_detail: list[str] = Field(default_factory=list, alias="statusDetail")


# ---------------------------------------------------------------- Edge


class EdgeStatusError(_Wire):
    message: str | None = None


class EdgeOperationResponse(_Wire):
    """Shape shared by the package-upload and publish operation endpoints."""

    id: str | None = None
    created_time: str | None = Field(default=None, alias="createdTime")
    last_updated_time: str | None = Field(default=None, alias="lastUpdatedTime")
    status: str
    message: str | None = None
    error_code: str | None = Field(default=None, alias="errorCode")
    errors: list[EdgeStatusError] | None = None


# ---------------------------------------------------------------- Firefox


class FirefoxVersion(_Wire):
    id: int
    version: str


class FirefoxVersionsPage(_Wire):
    page_size: int | None = None
    page_count: int | None = None
    count: int | None = None
    next: str | None = None
    previous: str | None = None
    results: list[FirefoxVersion] = Field(default_factory=list)


class FirefoxFile(_Wire):
    download_url: str = ""
    hash: str | None = None
    signed: bool = False

    @field_validator("download_url", "signed", mode="before")
    @classmethod
    def _nulls(cls, value: Any, info: ValidationInfo) -> Any:
        return _null_as_default(cls, value, info)


class FirefoxUploadStatus(_Wire):
    guid: str | None = None
    active: bool = False
    automated_signing: bool = False
    files: list[FirefoxFile] = Field(default_factory=list)
    passed_review: bool = False
    pk: str | None = None
    processed: bool = False
    reviewed: bool = False
    url: str | None = None
    valid: bool = False
    validation_url: str | None = None
    version: str | None = None

    @field_validator("active", "automated_signing", "files", "passed_review", "processed", "valid", mode="before")
    @classmethod
    def _nulls(cls, value: Any, info: ValidationInfo) -> Any:
        return _null_as_default(cls, value, info)

    @field_validator("reviewed", mode="before")
    @classmethod
    def _decode_reviewed(cls, value: Any) -> bool:
        """`reviewed` arrives either as a boolean or as a (date) string.

        A non-empty string means reviewed; an empty string or null means not.
        Anything else is rejected so the caller gets a protocol error instead
        of polling forever on a value it cannot interpret.
        """

        if value is None:
            return False
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return len(value) > 0
        raise ValueError(f"unrecognized reviewed value: {value!r}")

    @property
    def signed_and_ready(self) -> bool:
        return self.valid and self.active and self.reviewed and len(self.files) > 0

    @property
    def requires_manual_review(self) -> bool:
        return self.valid and not self.automated_signing
