from __future__ import annotations

from math import asin, cos, radians, sin, sqrt
from typing import Optional, Sequence, Union

from ..core.enums import LocationStatus
from ..policy.model import CompanyLocation

EARTH_RADIUS_M = 6371000.0


def distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle (haversine) distance in metres."""

    lat1_rad = radians(lat1)
    lon1_rad = radians(lon1)
    lat2_rad = radians(lat2)
    lon2_rad = radians(lon2)

    delta_lat = lat2_rad - lat1_rad
    delta_lon = lon2_rad - lon1_rad

    a = sin(delta_lat / 2) ** 2 + cos(lat1_rad) * cos(lat2_rad) * sin(delta_lon / 2) ** 2
    c = 2 * asin(sqrt(a))
    return EARTH_RADIUS_M * c


def evaluate_location(
    locations: Sequence[CompanyLocation],
    lat: Optional[float],
    lon: Optional[float],
) -> tuple[LocationStatus, dict[str, Union[float, int, str]]]:
    """Match coordinates against the company's sites; the first site in range wins.

    When none is in range the flags name the closest one.
    """

    if lat is None or lon is None:
        return LocationStatus.NO_LOCATION, {"reason": "no_location_payload"}

    if not locations:
        return LocationStatus.NOT_CONFIGURED, {"reason": "company_locations_not_set"}

    closest: Optional[tuple[float, CompanyLocation]] = None
    for location in locations:
        distance_value = distance_m(location.latitude, location.longitude, lat, lon)
        if distance_value <= location.radius_meters:
            return LocationStatus.VERIFIED, {
                "location": location.name,
                "distance_m": round(distance_value, 2),
                "radius_m": location.radius_meters,
            }
        if closest is None or distance_value < closest[0]:
            closest = (distance_value, location)

    distance_value, location = closest
    return LocationStatus.OUTSIDE_RADIUS, {
        "location": location.name,
        "distance_m": round(distance_value, 2),
        "radius_m": location.radius_meters,
    }
