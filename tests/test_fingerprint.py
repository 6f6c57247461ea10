"""
Unit tests for cache/fingerprint.py
"""

import pytest

from weather_images.cache.fingerprint import fingerprint
from weather_images.render_request import parse_range_request, parse_year_request


class TestFingerprint:
    """Tests for fingerprint()."""

    @pytest.mark.unit
    def test_is_sha256_hex(self):
        key = fingerprint({"city": "london", "variant": "range"})
        assert len(key) == 64
        int(key, 16)

    @pytest.mark.unit
    def test_insertion_order_irrelevant(self):
        a = fingerprint({"variant": "year", "city": "london", "year": 2024})
        b = fingerprint({"year": 2024, "city": "london", "variant": "year"})
        assert a == b

    @pytest.mark.unit
    def test_any_value_change_changes_key(self):
        base = {"variant": "year", "city": "london", "year": 2024, "cell_size": 8}
        key = fingerprint(base)
        for name, value in [("variant", "range"), ("city", "paris"), ("year", 2023), ("cell_size", 9)]:
            assert fingerprint({**base, name: value}) != key

    @pytest.mark.unit
    def test_coordinates_rounded_to_four_decimals(self):
        a = fingerprint({"lat": 51.50001, "lon": -0.12})
        b = fingerprint({"lat": 51.5, "lon": -0.120004})
        c = fingerprint({"lat": 51.5001, "lon": -0.12})
        assert a == b
        assert a != c

    @pytest.mark.unit
    def test_negative_zero_equals_zero(self):
        assert fingerprint({"lon": -0.0}) == fingerprint({"lon": 0.0})

    @pytest.mark.unit
    def test_none_matches_absent(self):
        assert fingerprint({"city": "london", "lat": None}) == fingerprint({"city": "london"})

    @pytest.mark.unit
    def test_booleans_distinct(self):
        assert fingerprint({"cell_borders": True}) != fingerprint({"cell_borders": False})


class TestRequestFingerprints:
    """Fingerprints of normalized render requests."""

    @pytest.mark.unit
    def test_format_not_part_of_fingerprint(self):
        png = parse_range_request(city="London", start_date="2024-07-01", end_date="2024-07-07", format="png")
        svg = parse_range_request(city="London", start_date="2024-07-01", end_date="2024-07-07", format="svg")
        assert fingerprint(png.fingerprint_params()) == fingerprint(svg.fingerprint_params())

    @pytest.mark.unit
    def test_city_normalized(self):
        a = parse_year_request(city="  New   York ", year="2023")
        b = parse_year_request(city="new york", year="2023")
        assert fingerprint(a.fingerprint_params()) == fingerprint(b.fingerprint_params())

    @pytest.mark.unit
    def test_variants_do_not_collide(self):
        rng = parse_range_request(city="London", start_date="2023-01-01", end_date="2023-12-31")
        year = parse_year_request(city="London", year="2023")
        assert fingerprint(rng.fingerprint_params()) != fingerprint(year.fingerprint_params())

    @pytest.mark.unit
    def test_explicit_defaults_match_omitted(self):
        implicit = parse_year_request(city="London", year="2024")
        explicit = parse_year_request(
            city="London", year="2024", cell_size="8", cell_border_color="#aaaaaa", cell_borders="true",
        )
        assert fingerprint(implicit.fingerprint_params()) == fingerprint(explicit.fingerprint_params())

    @pytest.mark.unit
    def test_short_hex_color_matches_long_form(self):
        short = parse_year_request(city="London", year="2024", cell_border_color="#ABC")
        long = parse_year_request(city="London", year="2024", cell_border_color="#aabbcc")
        assert fingerprint(short.fingerprint_params()) == fingerprint(long.fingerprint_params())

    @pytest.mark.unit
    def test_border_color_ignored_without_borders(self):
        a = parse_year_request(city="London", year="2024", cell_borders="false", cell_border_color="#123456")
        b = parse_year_request(city="London", year="2024", cell_borders="false")
        assert fingerprint(a.fingerprint_params()) == fingerprint(b.fingerprint_params())

    @pytest.mark.unit
    def test_border_color_counts_with_borders(self):
        a = parse_year_request(city="London", year="2024", cell_border_color="#123456")
        b = parse_year_request(city="London", year="2024")
        assert fingerprint(a.fingerprint_params()) != fingerprint(b.fingerprint_params())
