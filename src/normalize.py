# ABOUTME: Maps raw Open-Meteo forecast payloads onto the stable NormalizedWeather contract.
# ABOUTME: Aligns current conditions to the hourly series and turns every missing field into None.

from datetime import datetime, timezone
from decimal import ROUND_FLOOR, Decimal

from src.models import (
    CurrentConditions,
    DailySeries,
    HourlySeries,
    NormalizedWeather,
    RawCurrentWeather,
    RawDaily,
    RawForecast,
    RawHourly,
)

HOURLY_LIMIT = 24

UNKNOWN_DESCRIPTION = "Unknown"

# WMO weather interpretation codes
WEATHER_CODES = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


def describe_weather_code(code: int | None) -> str:
    if code is None:
        return UNKNOWN_DESCRIPTION
    return WEATHER_CODES.get(code, UNKNOWN_DESCRIPTION)


def _parse_time(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def align_current_index(current_time: str | None, hourly_times: list[str]) -> int | None:
    """Find the hourly index that corresponds to the current-conditions timestamp.

    Exact string match wins. Otherwise the entry with the smallest absolute time difference
    is used, first occurrence on ties. Returns None when there is nothing to align against.
    """
    if not current_time or not hourly_times:
        return None
    if current_time in hourly_times:
        return hourly_times.index(current_time)

    target = _parse_time(current_time)
    if target is None:
        return None
    best_index = None
    best_diff = None
    for i, raw in enumerate(hourly_times):
        parsed = _parse_time(raw)
        if parsed is None:
            continue
        diff = abs((parsed - target).total_seconds())
        if best_diff is None or diff < best_diff:
            best_index, best_diff = i, diff
    return best_index


def _get_at(values: list, index: int | None):
    """Safely get a value from a column array, returning None if missing."""
    if index is None or index >= len(values):
        return None
    return values[index]


_ONE_DECIMAL = Decimal("0.1")
_WHOLE = Decimal("1")


def _round_half_up(value: float, step: Decimal) -> Decimal:
    # Half up toward positive infinity, on the shortest decimal repr of the float
    return (Decimal(str(value)) + step / 2).quantize(step, rounding=ROUND_FLOOR)


def _round1(value: float | None) -> float | None:
    return None if value is None else float(_round_half_up(value, _ONE_DECIMAL))


def _round_int(value: float | None) -> int | None:
    return None if value is None else int(_round_half_up(value, _WHOLE))


def normalize(raw: dict | RawForecast) -> NormalizedWeather:
    """Reshape a forecast payload into NormalizedWeather.

    `name` is left empty here and filled in by the caller once the place is resolved.
    Raises pydantic.ValidationError if the payload has the wrong structure.
    """
    forecast = raw if isinstance(raw, RawForecast) else RawForecast.model_validate(raw)
    current = forecast.current_weather or RawCurrentWeather()
    hourly = forecast.hourly or RawHourly()
    daily = forecast.daily or RawDaily()

    idx = align_current_index(current.time, hourly.time)

    temperature = current.temperature
    if temperature is None:
        temperature = _get_at(hourly.temperature_2m, idx)
    weather_code = current.weather_code
    if weather_code is None:
        weather_code = _get_at(hourly.weather_code, idx)

    if current.weather_code is not None:
        description = describe_weather_code(current.weather_code)
    else:
        description = describe_weather_code(_get_at(daily.weather_code, 0))

    return NormalizedWeather(
        dt=current.time or _get_at(hourly.time, 0),
        is_day=None if current.is_day is None else bool(current.is_day),
        timezone=forecast.timezone or "UTC",
        current=CurrentConditions(
            temperature=_round1(temperature),
            weather_code=weather_code,
            description=description,
            wind_speed=current.windspeed,
            wind_direction=_round_int(current.winddirection),
            humidity=_round_int(_get_at(hourly.relative_humidity_2m, idx)),
            pressure=_round_int(_get_at(hourly.surface_pressure, idx)),
        ),
        hourly=HourlySeries(
            time=hourly.time[:HOURLY_LIMIT],
            temperature=[_round1(v) for v in hourly.temperature_2m[:HOURLY_LIMIT]],
            weather_code=hourly.weather_code[:HOURLY_LIMIT],
        ),
        daily=DailySeries(
            time=daily.time,
            weather_code=daily.weather_code,
            temp_max=[_round1(v) for v in daily.temperature_2m_max],
            temp_min=[_round1(v) for v in daily.temperature_2m_min],
            sunrise=daily.sunrise,
            sunset=daily.sunset,
        ),
    )
