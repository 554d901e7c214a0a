"""Shared test fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure vantake is importable without installation
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


@pytest.fixture
def slug_map() -> dict[str, str]:
    return {
        "bitcoin": "Crypto",
        "eth": "Crypto",
        "nba": "Sports",
        "fed": "Economy",
        "trump": "Trump",
        "weather": "Weather",  # maps outside the fixed categories
    }
