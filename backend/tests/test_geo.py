"""Tests for the great-circle helpers behind nearby search."""

import pytest

from triptrack.geo import EARTH_RADIUS_KM, distance_km, latitude_band, within_radius


class TestDistance:

    def test_zero_distance(self):
        assert distance_km(10.0, 20.0, 10.0, 20.0) == 0

    def test_one_degree_of_latitude(self):
        assert distance_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.19, abs=0.01)

    def test_antipodes(self):
        assert distance_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(3.141592653589793 * EARTH_RADIUS_KM)

    def test_paris_to_london(self):
        assert distance_km(48.8566, 2.3522, 51.5074, -0.1278) == pytest.approx(343.5, abs=1.0)


class TestWithinRadius:

    def test_inside_and_outside(self):
        assert within_radius(0.05, 0.0, 0.0, 0.0, 10)
        assert not within_radius(0.1, 0.0, 0.0, 0.0, 10)

    def test_across_antimeridian(self):
        assert within_radius(0.0, 179.99, 0.0, -179.99, 5)


class TestLatitudeBand:

    def test_band_contains_cap(self):
        low, high = latitude_band(45.0, 111.19)
        assert low == pytest.approx(44.0, abs=0.001)
        assert high == pytest.approx(46.0, abs=0.001)

    def test_band_clamped_at_poles(self):
        low, high = latitude_band(89.9, 500)
        assert high == 90.0
        assert low < 89.9
