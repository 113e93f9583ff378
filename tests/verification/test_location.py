import pytest

from src.hr_policy.hr_policy.core.enums import LocationStatus
from src.hr_policy.hr_policy.policy.model import CompanyLocation
from src.hr_policy.hr_policy.verification.location import distance_m, evaluate_location

HQ = CompanyLocation(name="HQ", latitude=30.0444, longitude=31.2357, radius_meters=100)
WAREHOUSE = CompanyLocation(name="Warehouse", latitude=30.1000, longitude=31.3000, radius_meters=300)


def test_distance_is_zero_for_same_point_and_symmetric():
    assert distance_m(30.0444, 31.2357, 30.0444, 31.2357) == 0
    there = distance_m(30.0444, 31.2357, 30.0544, 31.2357)
    back = distance_m(30.0544, 31.2357, 30.0444, 31.2357)
    assert there == pytest.approx(back)
    # 0.01 degree of latitude is about 1.1 km.
    assert there == pytest.approx(1112, rel=0.01)


def test_inside_any_site_radius_is_verified():
    status, flags = evaluate_location((HQ, WAREHOUSE), 30.1001, 31.3001)

    assert status == LocationStatus.VERIFIED
    assert flags["location"] == "Warehouse"
    assert flags["distance_m"] < 300
    assert flags["radius_m"] == 300


def test_outside_every_radius_reports_the_closest_site():
    status, flags = evaluate_location((HQ, WAREHOUSE), 30.0544, 31.2357)

    assert status == LocationStatus.OUTSIDE_RADIUS
    assert flags["location"] == "HQ"
    assert flags["distance_m"] > 100


def test_missing_coordinates_or_sites():
    assert evaluate_location((HQ,), None, 31.2)[0] == LocationStatus.NO_LOCATION
    assert evaluate_location((), 30.0, 31.2)[0] == LocationStatus.NOT_CONFIGURED
