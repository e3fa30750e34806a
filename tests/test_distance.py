"""Haversine distance tests"""

import math

import pytest

from dispatchboard.domain.routing.distance import EARTH_RADIUS_M, haversine_distance


def test_same_point_is_zero():
    assert haversine_distance(48.85, 2.35, 48.85, 2.35) == 0.0


def test_one_degree_of_longitude_on_equator():
    expected = EARTH_RADIUS_M * math.radians(1)
    assert haversine_distance(0, 0, 0, 1) == pytest.approx(expected)


def test_distance_is_symmetric():
    paris_london = haversine_distance(48.8566, 2.3522, 51.5074, -0.1278)
    london_paris = haversine_distance(51.5074, -0.1278, 48.8566, 2.3522)
    assert paris_london == pytest.approx(london_paris)
    assert paris_london == pytest.approx(343_500, rel=0.01)
