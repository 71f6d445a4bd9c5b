import pytest

from truckmates.services.geospatial import haversine_miles, meters_to_miles, travel_minutes


def test_haversine_miles_chicago_to_milwaukee():
    # Downtown Chicago to downtown Milwaukee is roughly 81 miles as the crow flies.
    distance = haversine_miles(41.8781, -87.6298, 43.0389, -87.9065)
    assert distance == pytest.approx(81, abs=2)


def test_haversine_miles_one_degree_of_longitude_at_equator():
    # 2 * pi * 3959 / 360
    assert haversine_miles(0, 0, 0, 1) == pytest.approx(69.1, abs=0.1)


def test_haversine_is_zero_for_same_point():
    assert haversine_miles(35.0, -90.0, 35.0, -90.0) == 0


def test_travel_minutes_at_fifty_mph():
    assert travel_minutes(50, 50) == 60
    assert travel_minutes(25, 50) == 30


def test_meters_to_miles():
    assert meters_to_miles(1609.34) == pytest.approx(1.0)
