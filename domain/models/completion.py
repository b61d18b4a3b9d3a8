"""
Completion value objects.

A CompletionRecord is the authoritative, terminal artifact of a session: at
most one exists per (workout_id, user_id). SetResults hang off it, one row
per (exercise instance, set number).
"""

from datetime import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, Field


class CompletionRecord(BaseModel):
    id: str
    workout_id: str
    user_id: str
    standalone: bool = False
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = None

    @property
    def is_finalized(self) -> bool:
        return self.completed_at is not None


class SetResultPayload(BaseModel):
    """
    Values written for one set (strength) or one aggregate (cardio/run/flexibility).

    Strength weight and reps are parsed to numbers; distance, duration and
    location are kept as entered.
    """

    weight: Optional[float] = None
    reps_completed: Optional[int] = None
    completed: bool = True
    distance: Optional[str] = None
    duration: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class SetResult(BaseModel):
    exercise_id: str
    completion_id: str
    set_number: int = Field(..., ge=1)
    payload: SetResultPayload

    @property
    def key(self) -> Tuple[str, int]:
        return (self.exercise_id, self.set_number)
