"""Command line interface for tunnelcodec."""

from __future__ import annotations

from tunnelcodec.cli.main import cli, main

__all__ = ["cli", "main"]
