"""
Great-circle helpers for proximity queries.

Distances use a spherical Earth with the equatorial radius, the same model
document stores use for their ``$near`` queries.
"""

# Standard library imports
import math
from typing import NamedTuple

EARTH_RADIUS_M = 6_378_100.0

# Keeps the box a strict superset of the circle despite float rounding
_BOX_MARGIN_DEG = 1e-9


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    return (
        math.isfinite(latitude)
        and math.isfinite(longitude)
        and -90.0 <= latitude <= 90.0
        and -180.0 <= longitude <= 180.0
    )


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(max(0.0, 1 - a)))
    return EARTH_RADIUS_M * c


def bounding_boxes(latitude: float, longitude: float, radius_m: float) -> list[BoundingBox]:
    """
    Return one or two lat/lng boxes that together cover every point within
    ``radius_m`` of the centre.

    Two boxes are returned when the circle crosses the antimeridian. When it
    reaches a pole the box spans every longitude.
    """
    angular = radius_m / EARTH_RADIUS_M
    if angular >= math.pi:
        return [BoundingBox(-90.0, 90.0, -180.0, 180.0)]

    dlat = math.degrees(angular) + _BOX_MARGIN_DEG
    min_lat = latitude - dlat
    max_lat = latitude + dlat

    if min_lat <= -90.0 or max_lat >= 90.0:
        return [BoundingBox(max(min_lat, -90.0), min(max_lat, 90.0), -180.0, 180.0)]

    ratio = math.sin(angular) / math.cos(math.radians(latitude))
    dlng = math.degrees(math.asin(min(1.0, ratio))) + _BOX_MARGIN_DEG
    min_lng = longitude - dlng
    max_lng = longitude + dlng

    if min_lng < -180.0:
        return [
            BoundingBox(min_lat, max_lat, min_lng + 360.0, 180.0),
            BoundingBox(min_lat, max_lat, -180.0, max_lng),
        ]
    if max_lng > 180.0:
        return [
            BoundingBox(min_lat, max_lat, min_lng, 180.0),
            BoundingBox(min_lat, max_lat, -180.0, max_lng - 360.0),
        ]
    return [BoundingBox(min_lat, max_lat, min_lng, max_lng)]


def wrap_longitude(longitude: float) -> float:
    """Fold a longitude from a repeating world map back into [-180, 180]."""
    if -180.0 <= longitude <= 180.0:
        return longitude
    wrapped = math.fmod(longitude + 180.0, 360.0)
    if wrapped < 0:
        wrapped += 360.0
    return wrapped - 180.0
