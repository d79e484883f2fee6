"""
Distance calculations and candidate ranking.

Haversine formula for great-circle distance between two lat/lng points,
used to order pantries by how far they are from the user.
"""

import math
from typing import Iterable, List, Optional, Tuple

from pantry_locator.core.models import GeoCoordinate, PantryCandidate, RankedResult

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Calculate great-circle distance between two points in kilometers.
    """
    lat1_r = math.radians(lat1)
    lat2_r = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_between(origin: GeoCoordinate, target: GeoCoordinate) -> float:
    return haversine_km(origin.lat, origin.lng, target.lat, target.lng)


def rank(
    origin: GeoCoordinate,
    candidates: Iterable[Tuple[PantryCandidate, Optional[GeoCoordinate]]],
) -> List[RankedResult]:
    """
    Order candidates nearest first.

    Candidates without a coordinate are dropped. ``sorted`` is stable, so
    equal distances keep the gateway's order.
    """
    ranked = [
        RankedResult(candidate=candidate, coordinate=coordinate, distance_km=distance_between(origin, coordinate))
        for candidate, coordinate in candidates
        if coordinate is not None
    ]
    return sorted(ranked, key=lambda result: result.distance_km)


def display_km(distance_km: float) -> float:
    """One decimal place, halves rounded up."""
    return math.floor(distance_km * 10 + 0.5) / 10
