"""
Distance Tests
==============

Haversine distance in meters on a mean-radius sphere.
"""

import math

import pytest

from NEARBY.ProxyLocation.distance import EARTH_RADIUS_M, distance, haversine
from NEARBY.ProxyLocation.models import Coordinate


def test_same_point_is_zero():
    a = Coordinate(latitude=51.5007, longitude=-0.1246)
    assert distance(a, a) == pytest.approx(0.0, abs=1e-6)


def test_distance_is_symmetric():
    a = Coordinate(latitude=40.7128, longitude=-74.0060)
    b = Coordinate(latitude=34.0522, longitude=-118.2437)
    assert distance(a, b) == pytest.approx(distance(b, a))


def test_one_degree_of_latitude():
    assert haversine(0, 0, 1, 0) == pytest.approx(EARTH_RADIUS_M * math.pi / 180, rel=1e-9)


def test_seven_meter_offset():
    venue = Coordinate(latitude=40.0, longitude=-74.0)
    user = Coordinate(latitude=40.000063, longitude=-74.0)
    assert distance(venue, user) == pytest.approx(7.0, abs=0.1)


def test_antipodal_points_do_not_raise():
    assert haversine(0, 0, 0, 180) == pytest.approx(math.pi * EARTH_RADIUS_M, rel=1e-9)


def test_coordinate_rejects_out_of_range_values():
    with pytest.raises(ValueError):
        Coordinate(latitude=91, longitude=0)
    with pytest.raises(ValueError):
        Coordinate(latitude=0, longitude=-181)
