import pytest

from conftest import make_venue
from NEARBY.ProxyLocation.distance import distance
from NEARBY.ProxyLocation.matcher import find_nearby
from NEARBY.ProxyLocation.models import Coordinate

USER = Coordinate(latitude=40.0, longitude=-74.0)


def test_returns_only_venues_within_radius(cafe, bar, museum):
    nearby = find_nearby(USER, [cafe, museum, bar], radius_m=100)
    assert [v.id for v in nearby] == ["cafe", "bar"]
    for venue in nearby:
        assert distance(USER, venue.coordinate) <= 100


def test_keeps_catalog_order_not_distance_order(cafe, bar):
    assert [v.id for v in find_nearby(USER, [bar, cafe])] == ["bar", "cafe"]


def test_venue_exactly_on_the_radius_is_included(bar):
    radius = distance(USER, bar.coordinate)
    assert find_nearby(USER, [bar], radius_m=radius) == [bar]


def test_seven_meters_away_is_nearby():
    venue = make_venue("kiosk", 40.000063, -74.0)
    assert find_nearby(USER, [venue], radius_m=100) == [venue]


def test_empty_catalog_and_no_match():
    assert find_nearby(USER, []) == []
    far = make_venue("far", 41.0, -74.0)
    assert find_nearby(USER, [far]) == []


def test_zero_radius_matches_only_same_point(cafe, bar):
    assert find_nearby(USER, [cafe, bar], radius_m=0) == [cafe]


def test_negative_radius_is_rejected(cafe):
    with pytest.raises(ValueError):
        find_nearby(USER, [cafe], radius_m=-1)


def test_venue_a_few_meters_diagonal_is_nearby():
    user = Coordinate(latitude=41.0, longitude=29.0)
    venue = make_venue("cafe", 41.00005, 29.00005)
    assert distance(user, venue.coordinate) < 10
    assert find_nearby(user, [venue], radius_m=100) == [venue]
