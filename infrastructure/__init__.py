"""
Infrastructure Layer for the workout session core.

This package contains concrete implementations of the application ports:
- db/: Supabase database implementations
- storage/: Local file storage (stopwatch state)
"""

from infrastructure.db import (
    SupabaseWorkoutRepository,
    SupabaseDraftRepository,
    SupabaseCompletionRepository,
    SupabaseExercisesRepository,
    SupabaseRunSampleRepository,
)
from infrastructure.storage import JsonFileTimerStateStore

__all__ = [
    "SupabaseWorkoutRepository",
    "SupabaseDraftRepository",
    "SupabaseCompletionRepository",
    "SupabaseExercisesRepository",
    "SupabaseRunSampleRepository",
    "JsonFileTimerStateStore",
]
