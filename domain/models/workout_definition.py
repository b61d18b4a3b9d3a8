"""
Workout definition value objects.

A WorkoutDefinition is the authoritative, read-only description of what a
member is asked to do in a session: an ordered list of exercise instances,
each pointing at an exercise catalog entry. It is owned by the remote store
and never mutated by the session.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class ExerciseCategory(str, Enum):
    """
    Categories that decide which editable fields an exercise exposes.

    - STRENGTH: ordered set rows (weight, reps, completed)
    - CARDIO: distance, duration, location
    - FLEXIBILITY: duration only
    - RUN: distance, duration, location; may be GPS-recorded
    """

    STRENGTH = "strength"
    CARDIO = "cardio"
    FLEXIBILITY = "flexibility"
    RUN = "run"


class DefinitionSource(str, Enum):
    """Entry route through which a workout definition was resolved."""

    COMPLETION = "completion"
    COMPLETION_BY_WORKOUT = "completion_by_workout"
    WORKOUT = "workout"
    STANDALONE = "standalone"


class CatalogExercise(BaseModel):
    """
    Exercise catalog entry (name, media link, muscle group).

    Examples:
        >>> bench = CatalogExercise(id="ex-1", name="Bench Press", muscle_group="chest")
        >>> bench.exercise_type
        'strength'
    """

    id: str = Field(..., min_length=1)
    name: str = Field(default="", description="Display name")
    exercise_type: str = Field(
        default="strength",
        description="Declared catalog type (strength, bodyweight, cardio, flexibility)",
    )
    muscle_group: Optional[str] = Field(default=None)
    media_url: Optional[str] = Field(default=None, description="Demo video or gif link")
    description: Optional[str] = None

    @property
    def is_run_like(self) -> bool:
        """Names mentioning running are tracked as runs whatever their declared type."""
        name = self.name.lower()
        return "run" in name

    @property
    def category(self) -> ExerciseCategory:
        """
        Resolve the tracking category for this catalog entry.

        strength, bodyweight, unknown and missing types all track as strength.
        """
        if self.is_run_like:
            return ExerciseCategory.RUN
        declared = (self.exercise_type or "").lower()
        if declared == "cardio":
            return ExerciseCategory.CARDIO
        if declared == "flexibility":
            return ExerciseCategory.FLEXIBILITY
        return ExerciseCategory.STRENGTH


class WorkoutExercise(BaseModel):
    """One exercise instance (row) of a workout definition."""

    id: str = Field(..., min_length=1, description="Exercise-instance id")
    exercise: CatalogExercise
    sets: Optional[int] = Field(default=None, ge=0, description="Prescribed set count")
    reps: Optional[str] = Field(
        default=None,
        description="Prescribed reps, kept as text for schemes like '8-12' or 'AMRAP'",
    )
    order_index: int = Field(default=0)
    rest_seconds: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None

    @property
    def category(self) -> ExerciseCategory:
        return self.exercise.category

    @property
    def prescribed_sets(self) -> int:
        """Number of set rows to create; zero or missing still yields one row."""
        return self.sets or 1


class WorkoutDefinition(BaseModel):
    """
    Immutable workout definition fetched once per session.

    Exercises are kept sorted by ``order_index``.
    """

    id: str = Field(..., min_length=1)
    title: str = Field(default="")
    description: Optional[str] = None
    exercises: List[WorkoutExercise] = Field(default_factory=list)

    model_config = {"frozen": True}

    @field_validator("exercises")
    @classmethod
    def sort_by_order_index(cls, v: List[WorkoutExercise]) -> List[WorkoutExercise]:
        """Keep exercises in prescribed order."""
        return sorted(v, key=lambda e: e.order_index)

    @property
    def exercise_ids(self) -> List[str]:
        return [e.id for e in self.exercises]

    def get_exercise(self, exercise_id: str) -> Optional[WorkoutExercise]:
        for exercise in self.exercises:
            if exercise.id == exercise_id:
                return exercise
        return None


class ResolvedWorkout(BaseModel):
    """
    Result of resolving a session identifier to a workout definition.

    ``completion_id`` is set when the definition was reached through an
    existing completion record. ``standalone`` is True when the definition is
    a standalone workout, whichever route reached it; completions for those
    are keyed by ``standalone_workout_id``.
    """

    definition: WorkoutDefinition
    source: DefinitionSource
    completion_id: Optional[str] = None
    standalone: bool = False

    @property
    def workout_id(self) -> str:
        return self.definition.id
