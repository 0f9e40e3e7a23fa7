# algorithms/haversine.py
"""
Haversine Algorithm - Calculate distance between two geographical points
Used to rank blood requests by how close they are to the viewer
"""

import math
from typing import NamedTuple, Optional

# Radius of earth in kilometers
EARTH_RADIUS_KM = 6371


class Coordinates(NamedTuple):
    lat: float
    lng: float


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Calculate straight-line distance between two points.
    Note: This is "as the crow flies" distance, not road distance.

    Args:
        lat1, lon1: Latitude and longitude of point 1
        lat2, lon2: Latitude and longitude of point 2

    Returns:
        Distance in kilometers
    """
    # Convert decimal degrees to radians
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_between(a: Coordinates, b: Coordinates) -> float:
    return haversine_distance(a.lat, a.lng, b.lat, b.lng)


def extract_coordinates(location) -> Optional[Coordinates]:
    """
    Read a coordinate pair off anything with latitude/longitude attributes
    (a region row, a request). Returns None unless both are present.
    """
    if location is None:
        return None
    latitude = getattr(location, 'latitude', None)
    longitude = getattr(location, 'longitude', None)
    if latitude is None or longitude is None:
        return None
    return Coordinates(float(latitude), float(longitude))


def first_coordinates(*locations) -> Optional[Coordinates]:
    """First resolvable coordinate pair, most specific location first."""
    for location in locations:
        coordinates = extract_coordinates(location)
        if coordinates is not None:
            return coordinates
    return None
