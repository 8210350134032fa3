"""Pytest configuration and shared fixtures for tunnelcodec tests."""

from __future__ import annotations

import logging

import pytest

from tunnelcodec.config import config as config_module
from tunnelcodec.config.config import ENV_MAPPINGS


def pytest_configure(config):
    """Register all project markers to avoid warnings when ini isn't loaded."""
    markers = [
        ("unit", "marks tests as unit tests"),
        ("integration", "marks tests as integration tests"),
        ("security", "marks tests as codec and cipher tests"),
        ("config", "marks tests as configuration tests"),
        ("cli", "marks tests as CLI tests"),
        ("slow", "marks tests as slow (deselect with '-m \"not slow\"')"),
    ]
    for name, desc in markers:
        config.addinivalue_line("markers", f"{name}: {desc}")


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch, tmp_path):
    """Keep tests away from real config files and environment overrides.

    Runs every test from an empty working directory with an empty home so
    the config file search finds nothing unless a test writes one.
    """
    for env_name in ENV_MAPPINGS:
        monkeypatch.delenv(env_name, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    yield
    config_module.reset_config()


@pytest.fixture(autouse=True)
def cleanup_logging():
    """Clean up logging handlers after each test to prevent closed file errors."""
    yield
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    # setup_logging stops propagation; caplog relies on it
    package_logger = logging.getLogger("tunnelcodec")
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def iv_for():
    """Return a deterministic IV factory sized for a method."""
    from tunnelcodec.security.ciphers.catalog import lookup

    def _iv_for(method: str, fill: int = 0) -> bytes:
        return bytes([fill]) * lookup(method).iv_len

    return _iv_for
