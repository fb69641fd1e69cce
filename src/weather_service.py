# ABOUTME: Upstream HTTP client for Open-Meteo forecasts, Nominatim reverse geocoding and Aladhan prayer times.
# ABOUTME: Translates timeouts and non-2xx responses into UpstreamTimeout/UpstreamError; never retries.

import logging
from datetime import date
from typing import Any

import httpx

from src.errors import UpstreamError, UpstreamTimeout
from src.models import Place

logger = logging.getLogger(__name__)

FORECAST_DAYS = 7

HOURLY_PARAMS = "temperature_2m,weathercode,relative_humidity_2m,surface_pressure"

DAILY_PARAMS = "weathercode,temperature_2m_max,temperature_2m_min,sunrise,sunset"

UNKNOWN_LOCATION = "Unknown Location"

# Address keys in order of preference for a display name
_PLACE_KEYS = ("city", "town", "village", "municipality", "county", "suburb")


async def _get_json(client: httpx.AsyncClient, url: str, params: dict) -> Any:
    """Issue a single GET and return the decoded JSON body."""
    try:
        resp = await client.get(url, params=params)
    except httpx.TimeoutException as e:
        logger.error("Upstream request to %s timed out", url)
        raise UpstreamTimeout(f"timeout calling {url}") from e
    except httpx.HTTPError as e:
        logger.error("Upstream request to %s failed: %s", url, e)
        raise UpstreamError(None, str(e)) from e

    if not resp.is_success:
        logger.error("Upstream %s returned %s: %s", url, resp.status_code, resp.text)
        raise UpstreamError(resp.status_code, resp.text)
    try:
        return resp.json()
    except ValueError as e:
        logger.error("Upstream %s returned invalid JSON", url)
        raise UpstreamError(resp.status_code, resp.text) from e


async def fetch_forecast(client: httpx.AsyncClient, base_url: str, latitude: float, longitude: float) -> dict:
    """Fetch current conditions plus hourly and 7-day daily series from Open-Meteo."""
    return await _get_json(
        client,
        f"{base_url}/forecast",
        params={
            "latitude": latitude,
            "longitude": longitude,
            "hourly": HOURLY_PARAMS,
            "daily": DAILY_PARAMS,
            "timezone": "auto",
            "forecast_days": FORECAST_DAYS,
            "current_weather": "true",
        },
    )


async def reverse_geocode(client: httpx.AsyncClient, base_url: str, latitude: float, longitude: float) -> dict:
    """Look up the address for a point using the Nominatim reverse endpoint."""
    return await _get_json(
        client,
        f"{base_url}/reverse",
        params={"format": "json", "lat": latitude, "lon": longitude, "zoom": 10, "addressdetails": 1},
    )


async def fetch_prayer_times(
    client: httpx.AsyncClient,
    base_url: str,
    latitude: float,
    longitude: float,
    on_date: date,
) -> dict:
    """Fetch the day's prayer timings (Muslim World League method) from Aladhan."""
    return await _get_json(
        client,
        f"{base_url}/timings/{on_date.strftime('%d-%m-%Y')}",
        params={"latitude": latitude, "longitude": longitude, "method": 3, "iso8601": "false"},
    )


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def parse_place(data: dict) -> Place:
    """Reduce a Nominatim reverse response to a short place description.

    Fields with an unexpected shape are treated as missing, so any dict body yields a Place.
    """
    address = data.get("address")
    if not isinstance(address, dict):
        address = {}
    candidates = (_text(address.get(k)) for k in _PLACE_KEYS)
    name = next((c for c in candidates if c), UNKNOWN_LOCATION)
    return Place(
        name=name,
        country=_text(address.get("country")),
        country_code=_text(address.get("country_code")).upper(),
        display_name=_text(data.get("display_name")) or name,
    )


def unknown_place() -> Place:
    return Place(name=UNKNOWN_LOCATION, display_name=UNKNOWN_LOCATION)
