"""Pytest configuration and fixtures for pysolardash tests."""

from __future__ import annotations

import json
from collections.abc import Generator
from datetime import date
from pathlib import Path
from typing import Any

import pytest
from aioresponses import aioresponses

from pysolardash.config import RuntimeConfig, resolve_runtime_config

BASE_URL = "https://monitor.example.com"
TODAY = date(2024, 5, 1)

OVERVIEW_URL = f"{BASE_URL}/solar/overview"
INTRADAY_URL = (
    f"{BASE_URL}/solar/energy?startDate=2024-05-01&endDate=2024-05-01"
    "&timeUnit=QUARTER_OF_AN_HOUR"
)
DAILY_URL = f"{BASE_URL}/solar/energy?startDate=2024-04-02&endDate=2024-05-01&timeUnit=DAY"


# Load sample API responses
SAMPLES_DIR = Path(__file__).parent / "samples"


def load_sample(filename: str) -> dict[str, Any]:
    """Load a sample JSON response file."""
    file_path = SAMPLES_DIR / filename
    with open(file_path) as f:
        result: dict[str, Any] = json.load(f)
        return result


@pytest.fixture
def overview_response() -> dict[str, Any]:
    """Sample overview response."""
    return load_sample("overview.json")


@pytest.fixture
def intraday_response() -> dict[str, Any]:
    """Sample quarter-hour energy response."""
    return load_sample("energy_quarter_hour.json")


@pytest.fixture
def daily_response() -> dict[str, Any]:
    """Sample daily energy response."""
    return load_sample("energy_day.json")


@pytest.fixture
def live_config() -> RuntimeConfig:
    """Configuration pointing at the mocked monitoring API."""
    return resolve_runtime_config({"baseUrl": BASE_URL, "useMockData": False})


@pytest.fixture
def mocked_api() -> Generator[aioresponses, None, None]:
    """Create aioresponses mock for HTTP requests.

    This fixture provides a context manager for mocking aiohttp requests
    using the aioresponses library.
    """
    with aioresponses() as m:
        yield m
