# ProxyLocation/matcher.py
from typing import Iterable, List

from NEARBY.core.config import PROXIMITY_RADIUS_M
from NEARBY.ProxyLocation.distance import distance
from NEARBY.ProxyLocation.models import Coordinate
from NEARBY.PLACES.models import Venue


def find_nearby(
    user_location: Coordinate,
    venues: Iterable[Venue],
    radius_m: float = PROXIMITY_RADIUS_M,
) -> List[Venue]:
    """
    Venues within `radius_m` of the user, in catalog order.

    No distance sorting: the first match downstream is the first venue the
    catalog returned.
    """
    if radius_m < 0:
        raise ValueError("radius_m must be >= 0")

    return [
        venue
        for venue in venues
        if distance(user_location, venue.coordinate) <= radius_m
    ]
