"""
Great-circle distance helpers for run tracking.
"""

import math
from typing import Sequence

from domain.models.run import RunSample

EARTH_RADIUS_MILES = 3959.0


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in miles between two coordinates."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def total_distance_miles(samples: Sequence[RunSample]) -> float:
    """
    Sum of distances between consecutive samples, rounded to 2 decimals.

    Fewer than two samples cover no distance.
    """
    if len(samples) < 2:
        return 0.0
    total = 0.0
    for prev, curr in zip(samples, samples[1:]):
        total += haversine_miles(prev.latitude, prev.longitude, curr.latitude, curr.longitude)
    return round(total, 2)


def pace_minutes_per_mile(duration_minutes: float, distance_miles: float) -> float:
    """Pace, or 0.0 when no distance has been covered."""
    if distance_miles <= 0:
        return 0.0
    return duration_minutes / distance_miles
