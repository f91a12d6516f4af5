"""Configuration for the Stitch SDK.

Uses Pydantic v2 for validation with sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
)

from .errors import InvalidConfigError


class SchedulerConfig(BaseModel):
    """Background worker pool configuration."""

    model_config = ConfigDict(frozen=True)

    max_workers: Annotated[int, Field(ge=1, le=64)] = 8
    close_grace_period: Annotated[float, Field(ge=0, le=300)] = 5.0


class AuthConfig(BaseModel):
    """Session refresh configuration."""

    model_config = ConfigDict(frozen=True)

    proactive_refresh: bool = True
    refresh_check_interval: Annotated[float, Field(gt=0, le=3600)] = 60.0
    refresh_expiry_buffer: Annotated[int, Field(ge=0, le=3600)] = 300


class TelemetryConfig(BaseModel):
    """OpenTelemetry and logging configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    service_name: str = "stitch-sdk"
    trace_requests: bool = True
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unsupported log level: {v}"
            raise ValueError(msg)
        return level


class StitchAppClientConfig(BaseModel):
    """Main configuration for a Stitch app client."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    # Required
    client_app_id: str = Field(..., min_length=1)

    base_url: HttpUrl = HttpUrl("https://stitch.mongodb.com")
    data_directory: Path | None = None
    local_app_name: str | None = None
    local_app_version: str | None = None

    # HTTP settings
    default_request_timeout: Annotated[float, Field(gt=0, le=300)] = 15.0
    connect_timeout: Annotated[float, Field(gt=0, le=60)] = 10.0

    # Sub-configurations
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    @field_validator("client_app_id")
    @classmethod
    def validate_client_app_id(cls, v: str) -> str:
        """Reject blank app ids."""
        if not v.strip():
            msg = "client_app_id must not be blank"
            raise ValueError(msg)
        return v.strip()

    @property
    def base_url_str(self) -> str:
        """Get base URL as string without trailing slash."""
        return str(self.base_url).rstrip("/")

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new config with overridden values."""
        data = self.model_dump()
        data.update(kwargs)
        return self.__class__(**data)

    @classmethod
    def from_env(cls, prefix: str = "STITCH_") -> Self:
        """Create config from environment variables."""
        import os

        def get_env(key: str, default: Any = None) -> Any:
            return os.environ.get(f"{prefix}{key}", default)

        client_app_id = get_env("CLIENT_APP_ID")
        if not client_app_id:
            raise InvalidConfigError(
                f"{prefix}CLIENT_APP_ID environment variable is required",
                field="client_app_id",
            )

        data: dict[str, Any] = {"client_app_id": client_app_id}
        if base_url := get_env("BASE_URL"):
            data["base_url"] = base_url
        if data_directory := get_env("DATA_DIRECTORY"):
            data["data_directory"] = Path(data_directory)
        if timeout := get_env("REQUEST_TIMEOUT"):
            data["default_request_timeout"] = timeout
        if max_workers := get_env("MAX_WORKERS"):
            data["scheduler"] = {"max_workers": max_workers}

        return cls(**data)
