# ABOUTME: Contract tests for the city directory.
# ABOUTME: Covers dataset loading, diacritic-insensitive search and nearest-city lookup.

import json

import pytest

from src.cities import CityDirectory, haversine_km, normalize_name
from src.errors import QueryTooLong, QueryTooShort
from src.models import CityRecord


def _city(name_en: str, lat: float, lon: float, name_ar: str = "") -> CityRecord:
    return CityRecord(name_en=name_en, name_ar=name_ar, center=[lat, lon])


class TestLoad:
    def test_loads_bundled_dataset(self, directory):
        """The bundled dataset loads into a non-empty directory.

        Implementation: Uses the directory fixture backed by src/data/saudi_cities.json.
        Passing implies: Center pairs are parsed into CityRecord coordinates.
        """
        assert len(directory) > 40

    def test_missing_file_gives_empty_directory(self, tmp_path):
        """A missing dataset degrades to an empty directory instead of raising.

        Implementation: Points load() at a path that does not exist.
        Passing implies: Server startup is never blocked by the city list.
        """
        empty = CityDirectory.load(tmp_path / "nope.json")
        assert len(empty) == 0
        assert empty.search("riy") == []
        assert empty.find_nearest(24.7, 46.7) is None

    def test_invalid_json_gives_empty_directory(self, tmp_path):
        path = tmp_path / "cities.json"
        path.write_text("{not json", encoding="utf-8")
        assert len(CityDirectory.load(path)) == 0

    def test_non_list_gives_empty_directory(self, tmp_path):
        path = tmp_path / "cities.json"
        path.write_text(json.dumps({"name_en": "Riyadh"}), encoding="utf-8")
        assert len(CityDirectory.load(path)) == 0

    def test_skips_malformed_rows(self, tmp_path):
        """Rows without a usable center are dropped, the rest are kept in order.

        Implementation: Writes a dataset with one broken row between two good ones.
        Passing implies: One bad record does not empty the whole directory.
        """
        path = tmp_path / "cities.json"
        rows = [
            {"name_en": "Riyadh", "name_ar": "الرياض", "center": [24.7136, 46.6753]},
            {"name_en": "Broken"},
            {"name_en": "Jeddah", "name_ar": "جدة", "center": [21.5433, 39.1728]},
        ]
        path.write_text(json.dumps(rows, ensure_ascii=False), encoding="utf-8")
        loaded = CityDirectory.load(path)
        assert len(loaded) == 2
        assert [c.name_en for c in loaded.search("dd")] == ["Jeddah"]


class TestNormalizeName:
    def test_strips_latin_diacritics(self):
        assert normalize_name("Ábhá") == "abha"

    def test_strips_arabic_harakat(self):
        assert normalize_name("جُدَّة") == normalize_name("جدة")

    def test_empty(self):
        assert normalize_name(None) == ""
        assert normalize_name("") == ""


class TestSearch:
    def test_prefix_finds_riyadh(self, directory):
        """Query "riy" finds Riyadh and only cities whose names contain it.

        Implementation: Searches the bundled dataset with a lowercase prefix.
        Passing implies: Matching is case-insensitive substring matching on the English name.
        """
        results = directory.search("riy")
        names = [c.name_en for c in results]
        assert any(name.startswith("Riy") for name in names)
        assert "Jeddah" not in names
        assert all("riy" in normalize_name(c.name_en) or "riy" in normalize_name(c.name_ar) for c in results)

    def test_preserves_dataset_order(self, directory):
        assert [c.name_en for c in directory.search("riyadh")] == ["Riyadh", "Riyadh Al Khabra"]

    def test_matches_arabic_name(self, directory):
        """Arabic queries match the Arabic name, with or without harakat.

        Implementation: Searches with plain and vocalised spellings of Jeddah.
        Passing implies: Both name fields are normalized the same way as the query.
        """
        assert [c.name_en for c in directory.search("جدة")] == ["Jeddah"]
        assert [c.name_en for c in directory.search("جُدَّة")] == ["Jeddah"]

    def test_matches_through_diacritics(self, directory):
        assert "Abha" in [c.name_en for c in directory.search("ÁBHA")]
        assert "Abha" in [c.name_en for c in directory.search("أبها")]

    def test_query_is_trimmed(self, directory):
        assert [c.name_en for c in directory.search("  tabuk  ")] == ["Tabuk"]

    def test_no_match_returns_empty_list(self, directory):
        assert directory.search("zzzz") == []

    def test_results_capped_at_ten(self):
        """At most ten matches are returned, the first ten in directory order.

        Implementation: Builds a directory with fifteen matching cities.
        Passing implies: Short, common substrings cannot produce unbounded responses.
        """
        many = CityDirectory([_city(f"Town {i}", 20 + i * 0.1, 45) for i in range(15)])
        results = many.search("town")
        assert len(results) == 10
        assert [c.name_en for c in results] == [f"Town {i}" for i in range(10)]

    @pytest.mark.parametrize("query", ["r", " r ", "", None])
    def test_too_short(self, directory, query):
        with pytest.raises(QueryTooShort):
            directory.search(query)

    def test_too_long(self, directory):
        """Queries over 64 characters after trimming are rejected."""
        assert directory.search("a" * 64) == []
        with pytest.raises(QueryTooLong):
            directory.search("a" * 65)


class TestFindNearest:
    def test_riyadh(self, directory):
        """A point in central Riyadh resolves to Riyadh.

        Implementation: Looks up (24.7, 46.7) in the bundled dataset.
        Passing implies: Haversine distance picks the closest center.
        """
        city = directory.find_nearest(24.7, 46.7)
        assert city is not None
        assert city.name_en == "Riyadh"
        assert city.name_ar == "الرياض"

    def test_far_point_returns_none(self, directory):
        """Points with no city within 100 km get no name.

        Implementation: Looks up (0, 0), thousands of kilometres from any city.
        Passing implies: Remote points are not mislabelled with a distant city.
        """
        assert directory.find_nearest(0, 0) is None

    def test_threshold_is_configurable(self):
        small = CityDirectory([_city("Riyadh", 24.7136, 46.6753)], max_distance_km=1.0)
        assert small.find_nearest(24.7136, 46.6753) is not None
        assert small.find_nearest(24.8, 46.7) is None

    def test_first_city_wins_ties(self):
        """Cities at identical distance resolve to the first in dataset order."""
        tied = CityDirectory([_city("First", 25.0, 46.0), _city("Second", 25.0, 46.0)])
        assert tied.find_nearest(25.01, 46.01).name_en == "First"


class TestHaversine:
    def test_zero_distance(self):
        assert haversine_km(24.7, 46.7, 24.7, 46.7) == 0

    def test_riyadh_to_jeddah(self):
        assert 800 < haversine_km(24.7136, 46.6753, 21.5433, 39.1728) < 900
