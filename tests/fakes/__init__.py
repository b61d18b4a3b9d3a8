"""
Fake Implementations for Testing.

This package provides in-memory fake implementations of the application ports
for fast, isolated testing. No database or device dependencies required.

Features:
- All fakes implement the same Protocol interfaces as real implementations
- Supports seeding with test data
- Supports reset() for test isolation
- Failure-injection switches for retry and partial-failure paths
- Factory functions for common workout shapes

Usage:
    from tests.fakes import FakeWorkoutRepository, create_strength_workout

    repo = FakeWorkoutRepository()
    repo.seed([create_strength_workout(workout_id="w-1", num_exercises=3)])
"""
from typing import Optional

from domain.models.workout_definition import CatalogExercise, WorkoutDefinition, WorkoutExercise

# Import all fake implementations
from tests.fakes.workout_repository import FakeWorkoutRepository
from tests.fakes.draft_repository import FakeDraftRepository
from tests.fakes.completion_repository import FakeCompletionRepository
from tests.fakes.exercises_repository import FakeExercisesRepository
from tests.fakes.run_sample_repository import FakeRunSampleRepository
from tests.fakes.geolocation import FakeGeolocationProvider, InMemoryTimerStateStore


# =============================================================================
# Factory Functions
# =============================================================================


def make_catalog_exercise(
    exercise_id: str,
    name: str,
    *,
    exercise_type: str = "strength",
    muscle_group: Optional[str] = "chest",
) -> CatalogExercise:
    return CatalogExercise(
        id=exercise_id,
        name=name,
        exercise_type=exercise_type,
        muscle_group=muscle_group,
        media_url=f"https://example.com/{exercise_id}.gif",
    )


def create_strength_workout(
    *,
    workout_id: str = "w-1",
    num_exercises: int = 3,
    sets: int = 3,
) -> WorkoutDefinition:
    """
    Create a strength-only workout definition.

    Exercise instance ids are ``we-1`` .. ``we-N``.
    """
    names = ["Bench Press", "Squat", "Deadlift", "Overhead Press", "Barbell Row"]
    return WorkoutDefinition(
        id=workout_id,
        title="Strength Day",
        exercises=[
            WorkoutExercise(
                id=f"we-{i + 1}",
                exercise=make_catalog_exercise(f"ex-{i + 1}", names[i % len(names)]),
                sets=sets,
                reps="10",
                order_index=i,
            )
            for i in range(num_exercises)
        ],
    )


def create_mixed_workout(*, workout_id: str = "w-mixed") -> WorkoutDefinition:
    """
    Create a workout with one exercise per category.

    we-strength, we-cardio, we-run, we-flex.
    """
    return WorkoutDefinition(
        id=workout_id,
        title="Mixed Day",
        exercises=[
            WorkoutExercise(
                id="we-strength",
                exercise=make_catalog_exercise("ex-bench", "Bench Press"),
                sets=2,
                order_index=0,
            ),
            WorkoutExercise(
                id="we-cardio",
                exercise=make_catalog_exercise(
                    "ex-bike", "Stationary Bike", exercise_type="cardio", muscle_group="legs"
                ),
                order_index=1,
            ),
            WorkoutExercise(
                id="we-run",
                exercise=make_catalog_exercise(
                    "ex-run", "Easy Run", exercise_type="cardio", muscle_group="legs"
                ),
                order_index=2,
            ),
            WorkoutExercise(
                id="we-flex",
                exercise=make_catalog_exercise(
                    "ex-stretch", "Hamstring Stretch", exercise_type="flexibility", muscle_group="legs"
                ),
                order_index=3,
            ),
        ],
    )


__all__ = [
    # Fakes
    "FakeWorkoutRepository",
    "FakeDraftRepository",
    "FakeCompletionRepository",
    "FakeExercisesRepository",
    "FakeRunSampleRepository",
    "FakeGeolocationProvider",
    "InMemoryTimerStateStore",
    # Factory functions
    "make_catalog_exercise",
    "create_strength_workout",
    "create_mixed_workout",
]
