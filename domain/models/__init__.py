"""
Domain models for the workout session core.

Usage:
    from domain.models import WorkoutDefinition, WorkoutExercise, CatalogExercise

    definition = WorkoutDefinition(
        id="w-1",
        title="Upper Body",
        exercises=[
            WorkoutExercise(
                id="we-1",
                exercise=CatalogExercise(id="ex-1", name="Bench Press", muscle_group="chest"),
                sets=3,
                reps="8-10",
            ),
        ],
    )
"""

from domain.models.workout_definition import (
    CatalogExercise,
    DefinitionSource,
    ExerciseCategory,
    ResolvedWorkout,
    WorkoutDefinition,
    WorkoutExercise,
)
from domain.models.exercise_state import (
    CardioData,
    CardioState,
    ExerciseState,
    FlexibilityData,
    FlexibilityState,
    RunState,
    SetEntry,
    StrengthState,
    default_state_for,
    exercise_state_adapter,
)
from domain.models.draft import Draft, build_snapshot, normalize_snapshot, parse_draft_payload
from domain.models.completion import CompletionRecord, SetResult, SetResultPayload
from domain.models.run import RunSample, RunSummary

__all__ = [
    # Workout definition
    "CatalogExercise",
    "DefinitionSource",
    "ExerciseCategory",
    "ResolvedWorkout",
    "WorkoutDefinition",
    "WorkoutExercise",
    # Exercise state
    "CardioData",
    "CardioState",
    "ExerciseState",
    "FlexibilityData",
    "FlexibilityState",
    "RunState",
    "SetEntry",
    "StrengthState",
    "default_state_for",
    "exercise_state_adapter",
    # Draft
    "Draft",
    "build_snapshot",
    "normalize_snapshot",
    "parse_draft_payload",
    # Completion
    "CompletionRecord",
    "SetResult",
    "SetResultPayload",
    # Run
    "RunSample",
    "RunSummary",
]
