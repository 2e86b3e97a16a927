#!/usr/bin/env python3
"""Run the ApiPost MCP server from a source checkout."""
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from apipost_mcp.cli import main

if __name__ == "__main__":  # pragma: no cover - script entry point
    main()
