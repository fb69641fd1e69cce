# ABOUTME: Shared test fixtures for the weather API test suite.
# ABOUTME: Provides a sample Open-Meteo payload, the bundled city directory and a deps factory with a mock HTTP client.

from unittest.mock import AsyncMock

import httpx
import pytest

from src.cache import CacheStore, MemoryCache
from src.cities import CityDirectory
from src.config import DEFAULT_CITIES_PATH, Settings
from src.deps import AppDeps


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def forecast_payload() -> dict:
    """Two days of hourly data and a 7-day daily block, shaped like Open-Meteo for Riyadh."""
    hours = [f"2024-01-0{d}T{h:02d}:00" for d in (1, 2) for h in range(24)]
    return {
        "latitude": 24.75,
        "longitude": 46.625,
        "timezone": "Asia/Riyadh",
        "current_weather": {
            "time": "2024-01-01T10:00",
            "temperature": 18.46,
            "weathercode": 1,
            "is_day": 1,
            "windspeed": 11.2,
            "winddirection": 318.6,
        },
        "hourly": {
            "time": hours,
            "temperature_2m": [12.04 + i * 0.5 for i in range(48)],
            "weathercode": [0] * 10 + [1] * 38,
            "relative_humidity_2m": [30.4 + i for i in range(48)],
            "surface_pressure": [1012.6] * 48,
        },
        "daily": {
            "time": [f"2024-01-0{d}" for d in range(1, 8)],
            "weathercode": [1, 2, 3, 0, 0, 61, 95],
            "temperature_2m_max": [22.26, 23.0, 21.5, 20.0, 19.94, 18.0, 17.2],
            "temperature_2m_min": [9.81, 10.0, 9.5, 8.0, 7.0, 6.5, 6.0],
            "sunrise": [f"2024-01-0{d}T06:40" for d in range(1, 8)],
            "sunset": [f"2024-01-0{d}T17:20" for d in range(1, 8)],
        },
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def directory() -> CityDirectory:
    return CityDirectory.load(DEFAULT_CITIES_PATH)


@pytest.fixture
def make_deps(directory, clock):
    """Build AppDeps around a mock httpx client that returns the given responses in order."""

    def _make(*json_bodies, status_code: int = 200, cache: CacheStore | None = None) -> AppDeps:
        client = AsyncMock(spec=httpx.AsyncClient)
        responses = [
            httpx.Response(status_code, json=body, request=httpx.Request("GET", "https://test"))
            for body in json_bodies
        ]
        if len(responses) == 1:
            client.get.return_value = responses[0]
        else:
            client.get.side_effect = responses
        return AppDeps(
            settings=Settings(),
            http_client=client,
            cache=cache or CacheStore(memory=MemoryCache(time_func=clock)),
            directory=directory,
        )

    return _make
