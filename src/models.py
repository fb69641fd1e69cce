# ABOUTME: Pydantic BaseModels for city records, raw Open-Meteo payloads and the normalized response.
# ABOUTME: Normalized models serialize with camelCase keys, which is the JSON contract served to the browser.

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Coordinate(BaseModel):
    """A validated latitude/longitude pair."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class CityRecord(BaseModel):
    """A named place from the bundled city dataset."""

    model_config = ConfigDict(frozen=True)

    name_en: str
    name_ar: str = ""
    center: Coordinate

    @field_validator("center", mode="before")
    @classmethod
    def _center_from_pair(cls, value):
        # The dataset stores centers as [lat, lon]
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return {"latitude": value[0], "longitude": value[1]}
        return value


class SearchResult(BaseModel):
    """One city search hit, in the shape the location picker expects."""

    name: str
    lat: float
    lon: float
    country: str
    region: str = ""
    arabic: str = ""


class Place(BaseModel):
    """Reverse-geocoded place name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    country: str = ""
    country_code: str = ""
    display_name: str = ""


# Raw provider payload --------------------------------------------------------
#
# Open-Meteo has used both "weathercode" and "weather_code" over time.

_CODE = AliasChoices("weathercode", "weather_code")


class RawCurrentWeather(BaseModel):
    """The `current_weather` block of an Open-Meteo forecast."""

    time: str | None = None
    temperature: float | None = None
    weather_code: int | None = Field(default=None, validation_alias=_CODE)
    is_day: int | None = None
    windspeed: float | None = None
    winddirection: float | None = None


class RawHourly(BaseModel):
    """Column-oriented hourly series of an Open-Meteo forecast."""

    time: list[str] = []
    temperature_2m: list[float | None] = []
    weather_code: list[int | None] = Field(default=[], validation_alias=_CODE)
    relative_humidity_2m: list[float | None] = []
    surface_pressure: list[float | None] = []


class RawDaily(BaseModel):
    """Column-oriented daily series of an Open-Meteo forecast."""

    time: list[str] = []
    weather_code: list[int | None] = Field(default=[], validation_alias=_CODE)
    temperature_2m_max: list[float | None] = []
    temperature_2m_min: list[float | None] = []
    sunrise: list[str | None] = []
    sunset: list[str | None] = []


class RawForecast(BaseModel):
    """Forecast response as returned by the provider. Every block is optional."""

    timezone: str | None = None
    current_weather: RawCurrentWeather | None = None
    hourly: RawHourly | None = None
    daily: RawDaily | None = None


# Normalized response ---------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CurrentConditions(_CamelModel):
    temperature: float | None = None
    weather_code: int | None = None
    description: str = "Unknown"
    wind_speed: float | None = None
    wind_direction: int | None = None
    humidity: int | None = None
    pressure: int | None = None


class HourlySeries(_CamelModel):
    time: list[str] = []
    temperature: list[float | None] = []
    weather_code: list[int | None] = []


class DailySeries(_CamelModel):
    time: list[str] = []
    weather_code: list[int | None] = []
    temp_max: list[float | None] = []
    temp_min: list[float | None] = []
    sunrise: list[str | None] = []
    sunset: list[str | None] = []


class NormalizedWeather(_CamelModel):
    """The stable weather contract served by /api/weather and stored in the cache."""

    name: str = ""
    name_ar: str | None = None
    dt: str | None = None
    is_day: bool | None = None
    timezone: str = "UTC"
    current: CurrentConditions = CurrentConditions()
    hourly: HourlySeries = HourlySeries()
    daily: DailySeries = DailySeries()

    def to_json(self) -> dict:
        """Serialize with the camelCase keys clients consume."""
        return self.model_dump(mode="json", by_alias=True)
