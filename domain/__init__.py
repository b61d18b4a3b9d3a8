"""
Domain layer for the workout session core.

This package contains pure models and functions that are independent of
infrastructure concerns (database, device APIs, local storage).
"""

from domain.models import (
    CatalogExercise,
    CompletionRecord,
    Draft,
    ExerciseCategory,
    ExerciseState,
    RunSample,
    RunSummary,
    SetEntry,
    SetResult,
    WorkoutDefinition,
    WorkoutExercise,
)
from domain.exercise_store import ExerciseStateStore, MergeReport

__all__ = [
    "CatalogExercise",
    "CompletionRecord",
    "Draft",
    "ExerciseCategory",
    "ExerciseState",
    "ExerciseStateStore",
    "MergeReport",
    "RunSample",
    "RunSummary",
    "SetEntry",
    "SetResult",
    "WorkoutDefinition",
    "WorkoutExercise",
]
