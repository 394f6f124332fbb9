"""Configuration for the authenticated request dispatcher.

Uses Pydantic v2 for validation with sensible defaults.
"""

from __future__ import annotations

from typing import Annotated, Any, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
)

from .errors import InvalidConfigError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


class TelemetryConfig(BaseModel):
    """OpenTelemetry and logging configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    service_name: str = "auth-dispatch"
    trace_requests: bool = True
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known name."""
        supported = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in supported:
            msg = f"Unsupported log level: {v}. Supported: {sorted(supported)}"
            raise ValueError(msg)
        return v.upper()


class DispatcherConfig(BaseModel):
    """Main configuration for the dispatcher."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    # Treat 403 like 401
    also_intercept_forbidden: bool = False

    # HTTP settings, used when the dispatcher builds its own transport
    base_url: HttpUrl | None = None
    timeout: Annotated[float, Field(gt=0, le=300)] = 30.0
    connect_timeout: Annotated[float, Field(gt=0, le=60)] = 10.0
    user_agent: str = Field(default="auth-dispatch/0.1.0 Python", min_length=1)

    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    @property
    def base_url_str(self) -> str:
        """Get base URL as string without trailing slash."""
        return str(self.base_url).rstrip("/") if self.base_url else ""

    @property
    def intercepted_status_codes(self) -> frozenset[int]:
        """Statuses that trigger re-authorization."""
        if self.also_intercept_forbidden:
            return frozenset({401, 403})
        return frozenset({401})

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new config with overridden values."""
        data = self.model_dump()
        data.update(kwargs)
        return self.__class__(**data)

    @classmethod
    def from_env(cls, prefix: str = "AUTH_DISPATCH_") -> Self:
        """Create config from environment variables."""
        import os

        def get_env(key: str, default: Any = None) -> Any:
            return os.environ.get(f"{prefix}{key}", default)

        intercept = get_env("ALSO_INTERCEPT_FORBIDDEN", "false").strip().lower()
        if intercept in _TRUE_VALUES:
            also_intercept_forbidden = True
        elif intercept in _FALSE_VALUES:
            also_intercept_forbidden = False
        else:
            msg = f"{prefix}ALSO_INTERCEPT_FORBIDDEN must be a boolean, got {intercept!r}"
            raise InvalidConfigError(msg, field="also_intercept_forbidden")

        return cls(
            also_intercept_forbidden=also_intercept_forbidden,
            base_url=get_env("BASE_URL") or None,
            timeout=float(get_env("TIMEOUT", "30.0")),
            connect_timeout=float(get_env("CONNECT_TIMEOUT", "10.0")),
        )
