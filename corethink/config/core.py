"""Core configuration settings - HTTP, logging, and provider overrides."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# === HTTP Configuration ===


class HTTPSettings(BaseModel):
    """HTTP client configuration settings.

    Controls how transport clients are built: timeouts, connection limits
    and compression.
    """

    connect_timeout: float = Field(
        default=10.0,
        description="Connection timeout in seconds",
        gt=0,
    )

    read_timeout: float = Field(
        default=300.0,
        description="Read timeout in seconds (long, responses are streamed)",
        gt=0,
    )

    max_connections: int = Field(
        default=100,
        description="Maximum concurrent connections per transport",
        ge=1,
    )

    max_keepalive_connections: int = Field(
        default=20,
        description="Maximum idle keep-alive connections per transport",
        ge=0,
    )

    http2: bool = Field(
        default=False,
        description="Enable HTTP/2 multiplexing (install the http2 extra)",
    )

    compression_enabled: bool = Field(
        default=True,
        description="Enable compression for provider requests (Accept-Encoding header)",
    )

    accept_encoding: str = Field(
        default="gzip, deflate",
        description="Accept-Encoding header value when compression is enabled",
    )


# === Logging Configuration ===


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    format: str = Field(
        default="auto",
        description="Output format: 'console', 'json', or 'auto' (console on a TTY)",
    )

    file: str | None = Field(
        default=None,
        description="Path to a JSON log file",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in {"auto", "console", "json"}:
            raise ValueError(f"Invalid log format: {v}")
        return fmt


# === Provider Overrides ===


class ProviderOverride(BaseModel):
    """Static per-provider overrides from ``[provider.<id>]`` config tables."""

    model_config = ConfigDict(extra="allow")

    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Vendor option bag deep-merged over the built-in options",
    )
