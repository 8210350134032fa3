"""Configuration management.

This module handles configuration loading and validation.
"""

from __future__ import annotations

from tunnelcodec.config.config import (
    ConfigManager,
    get_codec_config,
    get_config,
    get_observability_config,
    init_config,
    reload_config,
    set_config,
)
from tunnelcodec.models import Config

__all__ = [
    "Config",
    "ConfigManager",
    "get_codec_config",
    "get_config",
    "get_observability_config",
    "init_config",
    "reload_config",
    "set_config",
]
