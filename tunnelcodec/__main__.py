#!/usr/bin/env python3
"""tunnelcodec - stream cipher codec for encrypted tunnels."""

from __future__ import annotations

from tunnelcodec.cli.main import main

if __name__ == "__main__":
    main()
