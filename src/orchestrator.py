# ABOUTME: Request-level coordination for weather, city search, reverse geocoding, prayer times and the season calendar.
# ABOUTME: Validates input, enforces the service region, consults the cache and composes upstream calls.

import logging
from datetime import date

from pydantic import ValidationError

from src.deps import AppDeps
from src.errors import CoordsOutOfBounds, InvalidCoordinates, UpstreamError, UpstreamFailure
from src.models import NormalizedWeather, Place, SearchResult
from src.normalize import normalize
from src.seasons import load_months, resolve_month
from src.validation import validate_coordinates
from src.weather_service import fetch_forecast, fetch_prayer_times, parse_place, reverse_geocode, unknown_place

logger = logging.getLogger(__name__)

CALENDAR_CACHE_KEY = "calendar:v1"

# 4 decimal places is roughly 11 m
COORDINATE_PRECISION = 4


def round_coordinate(value: float) -> float:
    return round(value, COORDINATE_PRECISION)


def weather_cache_key(latitude: float, longitude: float) -> str:
    return f"weather:{round_coordinate(latitude)}:{round_coordinate(longitude)}"


def geocode_cache_key(latitude: float, longitude: float) -> str:
    return f"geocode:{round_coordinate(latitude)}:{round_coordinate(longitude)}"


def _validated(lat_raw, lon_raw) -> tuple[float, float]:
    check = validate_coordinates(lat_raw, lon_raw)
    if not check.valid:
        raise InvalidCoordinates(check.error_kind)
    return check.latitude, check.longitude


async def handle_weather_request(deps: AppDeps, lat_raw, lon_raw) -> NormalizedWeather:
    """Return normalized weather for a point inside the service region.

    Served from the cache when possible. On a miss the forecast is fetched, normalized,
    labelled with the nearest known city and cached. Any failure before a complete
    normalized result propagates to the caller.
    """
    latitude, longitude = _validated(lat_raw, lon_raw)
    if not deps.settings.bounds.contains(latitude, longitude):
        raise CoordsOutOfBounds(f"{latitude}, {longitude} is outside the service region")

    lat, lon = round_coordinate(latitude), round_coordinate(longitude)
    key = weather_cache_key(lat, lon)
    cached = await deps.cache.get(key)
    if cached is not None:
        logger.debug("Cache hit for %s", key)
        return NormalizedWeather.model_validate(cached)

    logger.debug("Cache miss for %s", key)
    raw = await fetch_forecast(deps.http_client, deps.settings.open_meteo_url, lat, lon)
    try:
        weather = normalize(raw)
    except ValidationError as e:
        logger.error("Malformed forecast payload for %s: %s", key, e)
        raise UpstreamError(None, str(e)) from e

    city = deps.directory.find_nearest(lat, lon)
    if city is not None:
        weather.name = city.name_en
        weather.name_ar = city.name_ar or None
    else:
        weather.name = f"{lat}, {lon}"

    await deps.cache.set(key, weather.to_json(), deps.settings.weather_cache_ttl)
    return weather


def search_cities(deps: AppDeps, query: str | None) -> list[SearchResult]:
    """Search the city directory and shape hits for the location picker."""
    return [
        SearchResult(
            name=city.name_en,
            lat=city.center.latitude,
            lon=city.center.longitude,
            country=deps.settings.country_name,
            arabic=city.name_ar,
        )
        for city in deps.directory.search(query)
    ]


async def reverse_geocode_place(deps: AppDeps, lat_raw, lon_raw) -> Place:
    """Best-effort place name for a point. Provider failures yield "Unknown Location"."""
    latitude, longitude = _validated(lat_raw, lon_raw)
    key = geocode_cache_key(latitude, longitude)
    cached = await deps.cache.get(key)
    if cached is not None:
        return Place.model_validate(cached)

    try:
        data = await reverse_geocode(deps.http_client, deps.settings.nominatim_url, latitude, longitude)
    except UpstreamFailure as e:
        logger.warning("Reverse geocode failed for %s: %s", key, e)
        return unknown_place()
    if not isinstance(data, dict):
        logger.warning("Reverse geocode for %s returned unexpected payload", key)
        return unknown_place()

    place = parse_place(data)
    await deps.cache.set(key, place.model_dump(by_alias=True), deps.settings.geocode_cache_ttl)
    return place


async def get_prayer_times(deps: AppDeps, lat_raw, lon_raw, on_date: date | None = None) -> dict:
    """Proxy the day's prayer timings for a point."""
    latitude, longitude = _validated(lat_raw, lon_raw)
    return await fetch_prayer_times(
        deps.http_client,
        deps.settings.prayer_times_url,
        latitude,
        longitude,
        on_date or date.today(),
    )


async def get_calendar(deps: AppDeps, month_raw: str | None = None, today: date | None = None) -> dict:
    """Return the seasonal calendar with the entry for the requested or current month.

    The month mapping is cached, so repeat requests for any month skip the file read.
    """
    month = resolve_month(month_raw, today or date.today())
    months = await deps.cache.get(CALENDAR_CACHE_KEY)
    if months is None:
        months = load_months(deps.settings.calendar_path)
        await deps.cache.set(CALENDAR_CACHE_KEY, months, deps.settings.geocode_cache_ttl)
    return {"months": months, "currentMonth": month, "currentEntry": months.get(month)}
