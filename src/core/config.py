"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) without polluting the CLI.
- Lets adapters (HTTP/stores) read config consistently.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import ClassVar, TypeVar

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.errors import ConfigurationError


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "extdash"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "extdash"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "extdash"
    return Path.home() / ".config" / "extdash"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str]) -> Path:
    """Write/update variables in the user's global .env."""

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# extdash user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


def _settings_config(prefix: str) -> SettingsConfigDict:
    return SettingsConfigDict(
        env_prefix=prefix,
        extra="ignore",
        case_sensitive=False,
        # Project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )


class _StoreSettings(BaseSettings):
    required_fields: ClassVar[tuple[str, ...]] = ()

    def missing(self) -> list[str]:
        """Names of required settings that are empty."""

        prefix = str(self.model_config.get("env_prefix", ""))
        return [f"{prefix}{name}".upper() for name in self.required_fields if not getattr(self, name)]

    def require(self) -> None:
        missing = self.missing()
        if missing:
            raise ConfigurationError(f"missing required settings: {', '.join(missing)}")


class AppSettings(BaseSettings):
    """Application-wide settings.

    Why pydantic-settings:
    - Typed and validated at the edge (env vars) without leaking into the Core.
    - One configuration contract for CLI and adapters.
    """

    model_config = _settings_config("EXTDASH_")

    http_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Per-request timeout (seconds).",
    )
    user_agent: str = Field(
        default="extdash/0.1",
        min_length=1,
        description="User-Agent sent to the stores.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Root log level when --verbose is not given.",
    )
    output_dir: Path = Field(
        default=Path("."),
        description="Directory where signed packages are saved.",
    )
    chrome_strict_upload_state: bool = Field(
        default=False,
        description="Treat a Chrome uploadState of FAILURE as a hard error.",
    )


class ChromeSettings(_StoreSettings):
    model_config = _settings_config("CHROME_")
    required_fields = ("client_id", "client_secret", "refresh_token")

    client_id: str = ""
    client_secret: str = ""
    refresh_token: str = ""
    token_url: str = Field(default="https://accounts.google.com/o/oauth2/token", min_length=8)
    api_url: str = Field(default="https://www.googleapis.com", min_length=8)


class EdgeSettings(_StoreSettings):
    model_config = _settings_config("EDGE_")
    required_fields = ("client_id", "client_secret", "access_token_url")

    client_id: str = ""
    client_secret: str = ""
    access_token_url: str = ""
    api_url: str = Field(default="https://api.addons.microsoftedge.microsoft.com", min_length=8)
    scope: str = "https://api.addons.microsoftedge.microsoft.com/.default"
    retry_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Interval between upload status checks.",
    )
    wait_status_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Overall budget for the upload status poll.",
    )


class FirefoxSettings(_StoreSettings):
    model_config = _settings_config("FIREFOX_")
    required_fields = ("client_id", "client_secret")

    client_id: str = ""
    client_secret: str = ""
    api_url: str = Field(default="https://addons.mozilla.org", min_length=8)
    poll_interval_seconds: float = Field(default=1.0, gt=0)
    await_timeout_seconds: float = Field(
        default=20 * 60.0,
        gt=0,
        description="Overall budget for the validation and signing polls.",
    )
    assertion_ttl_seconds: int = Field(
        default=5 * 60,
        gt=0,
        description="Lifetime of each signed JWT assertion.",
    )


SettingsT = TypeVar("SettingsT", bound=BaseSettings)


def load_settings(settings_cls: type[SettingsT]) -> SettingsT:
    """Build `settings_cls` from the environment, reporting bad values as `ConfigurationError`."""

    try:
        return settings_cls()
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ConfigurationError(f"invalid {settings_cls.__name__}: {problems}") from exc
