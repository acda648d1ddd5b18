"""Shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "operations"


@pytest.fixture
def ops_dir() -> Path:
    """Directory holding the sample operation sources."""
    return FIXTURES_DIR
