# ABOUTME: Pure coordinate validation for query-string latitude/longitude input.
# ABOUTME: Returns a result object with a stable error kind instead of raising.

import math
from dataclasses import dataclass

COORDINATES_REQUIRED = "coordinates_required"
NOT_A_NUMBER = "not_a_number"
LATITUDE_OUT_OF_RANGE = "latitude_out_of_range"
LONGITUDE_OUT_OF_RANGE = "longitude_out_of_range"


@dataclass(frozen=True)
class CoordinateCheck:
    valid: bool
    latitude: float | None = None
    longitude: float | None = None
    error_kind: str | None = None


def _parse(value) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def validate_coordinates(lat, lon) -> CoordinateCheck:
    """Check that lat/lon parse as finite numbers within the WGS84 ranges."""
    if lat is None or lon is None or str(lat).strip() == "" or str(lon).strip() == "":
        return CoordinateCheck(valid=False, error_kind=COORDINATES_REQUIRED)

    latitude = _parse(lat)
    longitude = _parse(lon)
    if latitude is None or longitude is None:
        return CoordinateCheck(valid=False, error_kind=NOT_A_NUMBER)
    if not -90 <= latitude <= 90:
        return CoordinateCheck(valid=False, error_kind=LATITUDE_OUT_OF_RANGE)
    if not -180 <= longitude <= 180:
        return CoordinateCheck(valid=False, error_kind=LONGITUDE_OUT_OF_RANGE)
    return CoordinateCheck(valid=True, latitude=latitude, longitude=longitude)
