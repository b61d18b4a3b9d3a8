"""
Run tracking value objects.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class RunSample(BaseModel):
    """One recorded device position. Append-only, never mutated."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    timestamp: datetime

    model_config = {"frozen": True}


class RunSummary(BaseModel):
    """
    Aggregate of a recorded run.

    distance is in miles, duration_minutes is wall-clock tracking time, and
    pace_minutes_per_mile is zero when no distance was covered.
    """

    distance: float = 0.0
    duration_minutes: float = 0.0
    pace_minutes_per_mile: float = 0.0
    sample_count: int = 0
