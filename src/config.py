# ABOUTME: Environment-driven settings for the weather API, loaded via python-dotenv.
# ABOUTME: Defines the service bounding box and all upstream URLs, timeouts and cache TTLs.

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

DEFAULT_CITIES_PATH = Path(__file__).parent / "data" / "saudi_cities.json"
DEFAULT_CALENDAR_PATH = Path(__file__).parent / "data" / "calendar.json"


class ConfigError(ValueError):
    """An environment variable holds a value that cannot be parsed."""


def _parse(env, name: str, cast, default):
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


class BoundingBox(BaseModel):
    """Rectangular service region. Edges are inclusive."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return self.min_lat <= latitude <= self.max_lat and self.min_lon <= longitude <= self.max_lon

    @classmethod
    def parse(cls, raw: str) -> "BoundingBox":
        """Parse a "minLat,maxLat,minLon,maxLon" string."""
        try:
            min_lat, max_lat, min_lon, max_lon = (float(part) for part in raw.split(","))
        except ValueError as e:
            raise ConfigError(f"BOUNDS must be 'minLat,maxLat,minLon,maxLon', got {raw!r}") from e
        return cls(min_lat=min_lat, max_lat=max_lat, min_lon=min_lon, max_lon=max_lon)


SAUDI_BOUNDS = BoundingBox(min_lat=16, max_lat=32, min_lon=34, max_lon=56)


class Settings(BaseModel):
    """Runtime configuration. Build from the environment with Settings.from_env()."""

    environment: str = "development"
    log_level: str = "INFO"

    open_meteo_url: str = "https://api.open-meteo.com/v1"
    nominatim_url: str = "https://nominatim.openstreetmap.org"
    prayer_times_url: str = "https://api.aladhan.com/v1"
    user_agent: str = "SaudiWeather/1.0"
    upstream_timeout: float = 10.0

    weather_cache_ttl: int = 300
    geocode_cache_ttl: int = 86400
    redis_url: str | None = None

    cities_path: Path = DEFAULT_CITIES_PATH
    calendar_path: Path = DEFAULT_CALENDAR_PATH
    country_name: str = "Saudi Arabia"
    nearest_city_max_km: float = 100.0
    bounds: BoundingBox = SAUDI_BOUNDS

    cors_allowed_origins: list[str] = []

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.environ
        defaults = cls()
        origins = env.get("CORS_ALLOWED_ORIGINS", "")
        return cls(
            environment=env.get("APP_ENV", defaults.environment),
            log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
            open_meteo_url=env.get("OPEN_METEO_URL", defaults.open_meteo_url),
            nominatim_url=env.get("NOMINATIM_URL", defaults.nominatim_url),
            prayer_times_url=env.get("PRAYER_TIMES_URL", defaults.prayer_times_url),
            user_agent=env.get("HTTP_USER_AGENT", defaults.user_agent),
            upstream_timeout=_parse(env, "UPSTREAM_TIMEOUT", float, defaults.upstream_timeout),
            weather_cache_ttl=_parse(env, "WEATHER_CACHE_TTL", int, defaults.weather_cache_ttl),
            geocode_cache_ttl=_parse(env, "GEOCODE_CACHE_TTL", int, defaults.geocode_cache_ttl),
            redis_url=env.get("REDIS_URL") or None,
            cities_path=Path(env.get("CITIES_PATH", defaults.cities_path)),
            calendar_path=Path(env.get("CALENDAR_PATH", defaults.calendar_path)),
            nearest_city_max_km=_parse(env, "NEAREST_CITY_MAX_KM", float, defaults.nearest_city_max_km),
            bounds=BoundingBox.parse(env["BOUNDS"]) if env.get("BOUNDS") else defaults.bounds,
            cors_allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )
