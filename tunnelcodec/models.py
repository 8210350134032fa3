"""Pydantic models for tunnelcodec.

Provides validated configuration models for the codec and for logging.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from tunnelcodec.security.ciphers.catalog import is_supported, supported_ciphers


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Log level")
    log_file: str | None = Field(default=None, description="Log file path")
    structured_logging: bool = Field(
        default=False,
        description="Use structured (JSON) logging instead of Rich console output",
    )
    log_correlation_id: bool = Field(
        default=True,
        description="Include correlation IDs",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept log level names in any case."""
        if isinstance(v, str):
            return v.upper()
        return v


class CodecConfig(BaseModel):
    """Stream codec configuration."""

    method: str = Field(
        default="aes-256-cfb",
        description="Cipher method name",
    )
    password: str = Field(
        default="",
        description="Password the master key is derived from",
        repr=False,
    )
    is_udp: bool = Field(
        default=False,
        description="Codec serves UDP datagrams instead of a TCP stream",
    )

    @field_validator("method")
    @classmethod
    def validate_method(cls, v: str) -> str:
        """Validate that the method is in the cipher catalog."""
        v = v.strip().lower()
        if not is_supported(v):
            msg = (
                f"Unsupported cipher method {v!r}; "
                f"expected one of: {', '.join(supported_ciphers())}"
            )
            raise ValueError(msg)
        return v


class Config(BaseModel):
    """Main configuration model."""

    codec: CodecConfig = Field(
        default_factory=CodecConfig,
        description="Codec configuration",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )
