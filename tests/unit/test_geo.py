"""
Unit tests for domain/geo.py
"""

from datetime import datetime, timedelta, timezone

import pytest

from domain.geo import haversine_miles, pace_minutes_per_mile, total_distance_miles
from domain.models.run import RunSample

START = datetime(2026, 5, 1, 7, 0, tzinfo=timezone.utc)


def _samples(coords):
    return [
        RunSample(latitude=lat, longitude=lon, timestamp=START + timedelta(seconds=10 * i))
        for i, (lat, lon) in enumerate(coords)
    ]


@pytest.mark.unit
class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_miles(40.0, -74.0, 40.0, -74.0) == 0.0

    def test_one_degree_of_latitude(self):
        # ~69 miles per degree of latitude
        assert haversine_miles(0.0, 0.0, 1.0, 0.0) == pytest.approx(69.1, abs=0.1)

    def test_symmetric(self):
        a = haversine_miles(40.7128, -74.0060, 34.0522, -118.2437)
        b = haversine_miles(34.0522, -118.2437, 40.7128, -74.0060)
        assert a == pytest.approx(b)
        assert a == pytest.approx(2445, rel=0.01)


@pytest.mark.unit
class TestTotalDistance:
    def test_fewer_than_two_samples(self):
        assert total_distance_miles([]) == 0.0
        assert total_distance_miles(_samples([(40.0, -74.0)])) == 0.0

    def test_rounded_to_two_decimals(self):
        distance = total_distance_miles(_samples([(40.0, -74.0), (40.01, -74.0), (40.02, -74.0)]))
        assert distance == round(distance, 2)
        assert distance == pytest.approx(1.38, abs=0.01)

    def test_monotonic_as_samples_are_added(self):
        coords = [(40.0, -74.0), (40.001, -74.0), (40.002, -74.001), (40.0025, -74.002)]
        distances = [total_distance_miles(_samples(coords[:n])) for n in range(1, len(coords) + 1)]
        assert distances == sorted(distances)


@pytest.mark.unit
class TestPace:
    def test_pace(self):
        assert pace_minutes_per_mile(30.0, 3.0) == 10.0

    def test_zero_distance_has_zero_pace(self):
        assert pace_minutes_per_mile(12.0, 0.0) == 0.0
