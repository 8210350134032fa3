"""Configuration management for tunnelcodec.

Provides centralized configuration with TOML support and validation, loaded
hierarchically from defaults -> config file -> environment.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import toml

from tunnelcodec.models import CodecConfig, Config, ObservabilityConfig
from tunnelcodec.utils.exceptions import ConfigurationError
from tunnelcodec.utils.logging_config import setup_logging

CONFIG_FILE_NAME = "tunnelcodec.toml"

# Environment variables and the config paths they override
ENV_MAPPINGS: dict[str, str] = {
    "TUNNELCODEC_METHOD": "codec.method",
    "TUNNELCODEC_PASSWORD": "codec.password",
    "TUNNELCODEC_IS_UDP": "codec.is_udp",
    "TUNNELCODEC_LOG_LEVEL": "observability.log_level",
    "TUNNELCODEC_LOG_FILE": "observability.log_file",
    "TUNNELCODEC_STRUCTURED_LOGGING": "observability.structured_logging",
    "TUNNELCODEC_LOG_CORRELATION_ID": "observability.log_correlation_id",
}

# Values taken verbatim from the environment
_STRING_PATHS = frozenset(
    {"codec.method", "codec.password", "observability.log_file"}
)

REDACTED = "***"

# Global configuration instance
_config_manager: ConfigManager | None = None


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_file: str | Path | None = None):
        """Initialize configuration manager.

        Args:
            config_file: Path to TOML config file. If None, searches for
                tunnelcodec.toml in the standard locations

        """
        self.config_file = self._find_config_file(config_file)
        self.config = self._load_config()
        self._setup_logging()

    def _find_config_file(
        self,
        config_file: str | Path | None,
    ) -> Path | None:
        """Find configuration file in standard locations."""
        if config_file:
            return Path(config_file)

        search_paths = [
            Path.cwd() / CONFIG_FILE_NAME,
            Path.home() / ".config" / "tunnelcodec" / CONFIG_FILE_NAME,
            Path.home() / f".{CONFIG_FILE_NAME}",
        ]

        for path in search_paths:
            if path.exists():
                return path

        return None

    def _load_config(self) -> Config:
        """Load configuration from file and environment."""
        config_data: dict[str, Any] = {}

        if self.config_file is not None:
            if not self.config_file.exists():
                msg = f"Configuration file not found: {self.config_file}"
                raise ConfigurationError(msg, {"path": str(self.config_file)})
            try:
                with open(self.config_file, encoding="utf-8") as f:
                    config_data.update(toml.load(f))
            except (OSError, toml.TomlDecodeError) as e:
                msg = f"Failed to load config file {self.config_file}: {e}"
                raise ConfigurationError(msg, {"path": str(self.config_file)}) from e

        env_config = self._get_env_config()
        config_data = self._merge_config(config_data, env_config)

        try:
            return Config(**config_data)
        except Exception as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigurationError(msg) from e

    def _get_env_config(self) -> dict[str, Any]:
        """Get configuration from environment variables."""
        env_config: dict[str, Any] = {}

        def _parse_env_value(raw: str, path: str) -> bool | int | float | str:
            if path in _STRING_PATHS:
                return raw

            low = raw.lower()
            if low in {"true", "1", "yes", "on"}:
                return True
            if low in {"false", "0", "no", "off"}:
                return False
            try:
                if "." in raw:
                    return float(raw)
                return int(raw)
            except ValueError:
                return raw

        def _set_nested(d: dict[str, Any], path: str, value: Any) -> None:
            parts = path.split(".")
            cur = d
            for p in parts[:-1]:
                cur = cur.setdefault(p, {})
            cur[parts[-1]] = value

        for env_name, cfg_path in ENV_MAPPINGS.items():
            raw = os.getenv(env_name)
            if raw is None:
                continue
            _set_nested(env_config, cfg_path, _parse_env_value(raw, cfg_path))

        return env_config

    def _merge_config(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """Merge configuration dictionaries recursively."""
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value

        return result

    def export(self, fmt: str = "toml", redact_password: bool = True) -> str:
        """Export current configuration as a string in the given format.

        Args:
            fmt: one of "toml" or "json"
            redact_password: If True, replace the codec password with a marker

        """
        data = self.config.model_dump(mode="json", exclude_none=True)
        if redact_password and data["codec"].get("password"):
            data["codec"]["password"] = REDACTED

        fmt = (fmt or "toml").lower()
        if fmt == "toml":
            return toml.dumps(data)
        if fmt == "json":
            return json.dumps(data, indent=2)
        msg = f"Unsupported export format: {fmt}"
        raise ConfigurationError(msg)

    def _setup_logging(self) -> None:
        """Set up logging configuration."""
        setup_logging(self.config.observability)
        logging.getLogger(__name__).debug(
            "Loaded configuration from %s", self.config_file or "defaults"
        )


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager.config


def init_config(config_file: str | Path | None = None) -> ConfigManager:
    """Initialize the global configuration manager."""
    global _config_manager
    _config_manager = ConfigManager(config_file)
    return _config_manager


def reload_config() -> Config:
    """Reload configuration from file."""
    if _config_manager is None:
        msg = "Configuration not initialized"
        raise ConfigurationError(msg)

    _config_manager.config = _config_manager._load_config()  # noqa: SLF001
    _config_manager._setup_logging()  # noqa: SLF001
    return _config_manager.config


def set_config(new_config: Config) -> None:
    """Replace the global configuration at runtime.

    Reconfigures logging based on the new config. Codecs already created
    keep the method and password they were built with.
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(None)
    _config_manager.config = new_config
    _config_manager._setup_logging()  # noqa: SLF001


def reset_config() -> None:
    """Forget the global configuration manager."""
    global _config_manager
    _config_manager = None


def get_codec_config() -> CodecConfig:
    """Get codec configuration."""
    return get_config().codec


def get_observability_config() -> ObservabilityConfig:
    """Get observability configuration."""
    return get_config().observability
