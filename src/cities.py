# ABOUTME: In-memory city directory with diacritic-insensitive search and nearest-city lookup.
# ABOUTME: Loaded once from a bundled JSON dataset; a failed load yields an empty directory.

import json
import logging
import math
import unicodedata
from pathlib import Path

from pydantic import ValidationError

from src.errors import QueryTooLong, QueryTooShort
from src.models import CityRecord

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 64
MAX_RESULTS = 10


def normalize_name(text: str | None) -> str:
    """Strip diacritics (including Arabic harakat) and lowercase."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class CityDirectory:
    """Read-only, ordered collection of CityRecords.

    The dataset holds a few thousand entries at most, so search and nearest-neighbour
    lookups are linear scans over the whole list.
    """

    def __init__(self, cities: list[CityRecord] | None = None, max_distance_km: float = 100.0):
        self._cities = tuple(cities or ())
        self._search_keys = tuple((normalize_name(c.name_en), normalize_name(c.name_ar)) for c in self._cities)
        self.max_distance_km = max_distance_km

    @classmethod
    def load(cls, path: Path, max_distance_km: float = 100.0) -> "CityDirectory":
        """Load the dataset, or return an empty directory if it cannot be read."""
        try:
            rows = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Could not load city list from %s: %s", path, e)
            return cls([], max_distance_km)
        if not isinstance(rows, list):
            logger.warning("City list at %s is not a JSON array", path)
            return cls([], max_distance_km)

        cities = []
        for row in rows:
            try:
                cities.append(CityRecord.model_validate(row))
            except ValidationError:
                logger.debug("Skipping malformed city row: %r", row)
        logger.info("Loaded %d cities from %s", len(cities), path)
        return cls(cities, max_distance_km)

    def __len__(self) -> int:
        return len(self._cities)

    def search(self, query: str | None) -> list[CityRecord]:
        """Return up to 10 cities whose English or Arabic name contains the query."""
        q = (query or "").strip()
        if len(q) < MIN_QUERY_LENGTH:
            raise QueryTooShort(f"query must be at least {MIN_QUERY_LENGTH} characters")
        if len(q) > MAX_QUERY_LENGTH:
            raise QueryTooLong(f"query must be at most {MAX_QUERY_LENGTH} characters")

        needle = normalize_name(q)
        matches = []
        for city, (en, ar) in zip(self._cities, self._search_keys):
            if needle in en or needle in ar:
                matches.append(city)
                if len(matches) == MAX_RESULTS:
                    break
        return matches

    def find_nearest(self, latitude: float, longitude: float) -> CityRecord | None:
        """Closest city by haversine distance, or None if none lies within max_distance_km."""
        best = None
        best_distance = math.inf
        for city in self._cities:
            distance = haversine_km(latitude, longitude, city.center.latitude, city.center.longitude)
            # Strict comparison keeps the first city on exact ties
            if distance < best_distance:
                best, best_distance = city, distance
        if best is None or best_distance >= self.max_distance_km:
            return None
        return best
