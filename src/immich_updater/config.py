"""Configuration management for the Immich updater.

Settings come from a dotenv-style ``KEY=value`` file (the same file the
original cron scripts ``source``) and may be overridden by environment
variables. The loaded ``Settings`` object is immutable and is passed
explicitly to every component.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Literal

from pydantic import (
    AliasChoices,
    AnyHttpUrl,
    Field,
    SecretStr,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from immich_updater.constants import (
    DEFAULT_DOCKER_PATH,
    DEFAULT_LOCK_FILENAME,
    DEFAULT_LOG_FILENAME,
    DEFAULT_RELEASE_URL,
    HTTP_TIMEOUT,
    MIN_DAYS_SINCE_RELEASE,
)
from immich_updater.errors import ConfigInvalid, ConfigMissing

NotificationMethod = Literal["none", "email", "gotify"]

# Keys every configuration must provide, whatever the notification method.
REQUIRED_KEYS: tuple[str, ...] = (
    "immich_api_key",
    "docker_compose_path",
    "immich_path",
    "immich_localhost",
)

# Extra keys required per notification method.
TRANSPORT_KEYS: dict[str, tuple[str, ...]] = {
    "none": (),
    "email": ("notification_email",),
    "gotify": ("gotify_url", "gotify_token"),
}

# Path-like keys that may use $VAR or ~ the way a sourced shell file would.
EXPANDED_KEYS: tuple[str, ...] = ("immich_path", "docker_compose_path", "log_file", "lock_file")

_HTTP_URL = TypeAdapter(AnyHttpUrl)


class Settings(BaseSettings):
    """Updater settings loaded from the settings file and environment."""

    model_config = SettingsConfigDict(
        env_file=None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Immich
    immich_api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("immich_api_key", "api_key"),
        description="API key sent as x-api-key to the Immich server",
    )
    immich_localhost: str = Field(default="", description="host:port of the running server")
    immich_path: str = Field(default="", description="Directory holding docker-compose.yml")
    docker_compose_path: str = Field(
        default="", description="Compose location, required but not executed"
    )

    # Notifications
    notification_method: NotificationMethod = Field(description="none, email or gotify")
    gotify_url: str = Field(default="", description="Gotify server base URL")
    gotify_token: SecretStr = Field(default=SecretStr(""), description="Gotify app token")
    notification_email: str = Field(default="", description="Recipient for email reports")
    smtp_host: str = Field(default="localhost", description="SMTP relay host")
    smtp_port: int = Field(default=25, ge=1, le=65535, description="SMTP relay port")
    email_sender: str = Field(default="immich-updater@localhost", description="From address")

    # Policy
    release_url: str = Field(default=DEFAULT_RELEASE_URL, description="Latest-release API URL")
    min_days_since_release: int = Field(default=MIN_DAYS_SINCE_RELEASE, ge=0)
    http_timeout: float = Field(default=HTTP_TIMEOUT, gt=0)
    legacy_keyword_scan: bool = Field(
        default=False, description="Only scan release notes for 'breaking change'"
    )
    prune_images: bool = Field(default=True, description="Prune images older than 24h")
    allow_root: bool = Field(default=False, description="Permit running as root")

    # Files
    log_file: Path | None = Field(default=None, description="Append-only log file")
    lock_file: Path | None = Field(default=None, description="PID lock file")
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("notification_method", mode="before")
    @classmethod
    def _normalise_method(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator(*EXPANDED_KEYS, mode="before")
    @classmethod
    def _expand_path(cls, value: object) -> object:
        if isinstance(value, (str, os.PathLike)):
            return os.path.expanduser(os.path.expandvars(os.fspath(value)))
        return value

    @field_validator("immich_localhost")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @field_validator("gotify_url", "release_url")
    @classmethod
    def _check_http_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if value:
            try:
                _HTTP_URL.validate_python(value)
            except ValidationError as exc:
                reason = exc.errors()[0]["msg"]
                raise ValueError(f"not a valid http(s) URL: {value!r} ({reason})") from exc
        return value

    @model_validator(mode="after")
    def _check_required(self) -> Settings:
        missing = [
            key.upper()
            for key in (*REQUIRED_KEYS, *TRANSPORT_KEYS[self.notification_method])
            if not _has_value(getattr(self, key))
        ]
        if missing:
            raise ValueError(f"Required variable(s) not set: {', '.join(missing)}")
        return self


def _has_value(value: object) -> bool:
    if isinstance(value, SecretStr):
        value = value.get_secret_value()
    return bool(str(value).strip())


def load_settings(path: str | Path) -> Settings:
    """Load and validate settings from *path*.

    Raises:
        ConfigMissing: the settings file does not exist.
        ConfigInvalid: a required key is unset or blank, or a value is not
            recognised (e.g. an unknown notification method).
    """
    config_path = Path(path).expanduser()
    if not config_path.is_file():
        raise ConfigMissing(f"Config file {config_path} not found")

    try:
        settings = Settings(_env_file=config_path)  # type: ignore[call-arg]
    except ValidationError as exc:
        raise ConfigInvalid(_format_errors(exc, config_path)) from exc

    defaults: dict[str, Path] = {}
    if settings.log_file is None:
        defaults["log_file"] = config_path.parent / DEFAULT_LOG_FILENAME
    if settings.lock_file is None:
        defaults["lock_file"] = config_path.parent / DEFAULT_LOCK_FILENAME
    return settings.model_copy(update=defaults) if defaults else settings


def find_docker() -> str:
    """Locate ``docker`` on PATH, falling back to /usr/bin/docker."""
    return shutil.which("docker") or DEFAULT_DOCKER_PATH


def check_executable(command: str) -> str:
    """Return the resolved path of *command*, or raise ConfigInvalid."""
    resolved = shutil.which(command)
    if resolved is None:
        raise ConfigInvalid(f"Required command not found: {command}")
    return resolved


def _format_errors(exc: ValidationError, config_path: Path) -> str:
    parts = []
    for error in exc.errors():
        field = ".".join(str(p) for p in error["loc"]).upper()
        message = error["msg"].removeprefix("Value error, ")
        parts.append(f"{field}: {message}" if field else message)
    return f"Invalid settings in {config_path}: " + "; ".join(parts)
