"""
Pytest configuration and shared fixtures for weather images tests.
"""

import os
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pytest

# Settings are read at import time
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("STORAGE_TYPE", "filesystem")

from weather_images.weather.models import ObservationSeries  # noqa: E402


# =============================================================================
# Data helpers
# =============================================================================

def build_archive_payload(
    start: datetime,
    hours: int,
    temperature: Optional[List[Optional[float]]] = None,
    humidity: Optional[List[Optional[float]]] = None,
    apparent: Optional[List[Optional[float]]] = None,
    precipitation: Optional[List[Optional[float]]] = None,
    timezone: str = "Europe/London",
) -> Dict[str, Any]:
    """Archive API payload with hourly timestamps starting at ``start``."""
    times = [(start + timedelta(hours=i)).strftime("%Y-%m-%dT%H:%M") for i in range(hours)]
    hourly: Dict[str, Any] = {"time": times}
    if temperature is not None:
        hourly["temperature_2m"] = temperature
    if humidity is not None:
        hourly["relative_humidity_2m"] = humidity
    if apparent is not None:
        hourly["apparent_temperature"] = apparent
    if precipitation is not None:
        hourly["precipitation"] = precipitation
    return {
        "latitude": 51.5,
        "longitude": -0.12,
        "timezone": timezone,
        "hourly": hourly,
    }


def build_series(payload: Dict[str, Any], location_name: Optional[str] = "London") -> ObservationSeries:
    return ObservationSeries.from_archive(payload, location_name=location_name)


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def two_day_payload() -> Dict[str, Any]:
    """2024-07-01..2024-07-02, temperatures alternating 10 and 30, humidity rising."""
    hours = 48
    temperature = [10.0 if i % 2 == 0 else 30.0 for i in range(hours)]
    # Second day's temperatures are shifted so the days differ
    temperature[24:] = [t + 2 for t in temperature[24:]]
    humidity = [float(50 + i) for i in range(hours)]
    humidity[3] = None
    apparent = [t - 1 for t in temperature]
    precipitation = [0.0] * hours
    precipitation[5] = 1.5
    precipitation[30] = 0.25
    return build_archive_payload(
        datetime(2024, 7, 1), hours,
        temperature=temperature, humidity=humidity,
        apparent=apparent, precipitation=precipitation,
    )


@pytest.fixture
def two_day_series(two_day_payload) -> ObservationSeries:
    return build_series(two_day_payload)


@pytest.fixture
def year_payload() -> Dict[str, Any]:
    """Three days of hourly temperatures, value = hour of day."""
    hours = 72
    temperature = [float(i % 24) for i in range(hours)]
    return build_archive_payload(datetime(2023, 1, 1), hours, temperature=temperature)


@pytest.fixture
def year_series(year_payload) -> ObservationSeries:
    return build_series(year_payload)


# =============================================================================
# Cache Fixtures
# =============================================================================

class FakeBackend:
    """In-memory durable backend that records calls."""

    name = "fake"

    def __init__(self, fail_reads: bool = False, fail_writes: bool = False, fail_init: bool = False):
        self.store: Dict[tuple, bytes] = {}
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.fail_init = fail_init
        self.init_calls = 0
        self.get_calls = 0
        self.set_calls = 0
        self.closed = False

    async def init(self) -> None:
        self.init_calls += 1
        if self.fail_init:
            raise ConnectionError("storage account unreachable")

    async def get(self, fingerprint: str, fmt: str) -> Optional[bytes]:
        self.get_calls += 1
        if self.fail_reads:
            from weather_images.errors import CacheError
            raise CacheError("read failed")
        return self.store.get((fingerprint, fmt))

    async def set(self, fingerprint: str, fmt: str, data: bytes) -> None:
        self.set_calls += 1
        if self.fail_writes:
            from weather_images.errors import CacheError
            raise CacheError("write failed")
        self.store[(fingerprint, fmt)] = data

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


# =============================================================================
# Service Fixtures
# =============================================================================

class FakeWeatherService:
    """Weather service returning a canned series and recording requests."""

    def __init__(self, series: Optional[ObservationSeries] = None, error: Optional[Exception] = None):
        self.series = series
        self.error = error
        self.calls: List[tuple] = []
        self.closed = False

    async def resolve_location(self, *, lat=None, lon=None, city=None):
        from weather_images.weather.models import ResolvedLocation
        if self.error is not None:
            raise self.error
        return ResolvedLocation(latitude=51.5, longitude=-0.12, timezone="Europe/London", name="London")

    async def get_observations(self, start_date, end_date, *, lat=None, lon=None, city=None):
        self.calls.append((start_date, end_date, lat, lon, city))
        if self.error is not None:
            raise self.error
        return self.series

    async def aclose(self):
        self.closed = True
