"""Test configuration helpers to ensure package imports work from the repository root."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
REPO_ROOT = ROOT.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from apipost_mcp.tests.fixtures.fake_apipost import FakeApiPostClient  # noqa: E402


@pytest.fixture()
def fake_client() -> FakeApiPostClient:
    return FakeApiPostClient()
