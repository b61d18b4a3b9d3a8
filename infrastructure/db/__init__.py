"""
Infrastructure Database Layer.

This package provides Supabase-backed implementations of the repository
interfaces defined in application.ports.

Usage:
    from supabase import create_client
    from infrastructure.db import (
        SupabaseWorkoutRepository,
        SupabaseDraftRepository,
        SupabaseCompletionRepository,
        SupabaseExercisesRepository,
        SupabaseRunSampleRepository,
    )

    # Create Supabase client
    client = create_client(SUPABASE_URL, SUPABASE_KEY)

    # Instantiate repositories with injected client
    workout_repo = SupabaseWorkoutRepository(client)
    draft_repo = SupabaseDraftRepository(client)
    completion_repo = SupabaseCompletionRepository(client)
"""

from infrastructure.db.workout_repository import SupabaseWorkoutRepository
from infrastructure.db.draft_repository import SupabaseDraftRepository
from infrastructure.db.completion_repository import SupabaseCompletionRepository
from infrastructure.db.exercises_repository import SupabaseExercisesRepository
from infrastructure.db.run_sample_repository import SupabaseRunSampleRepository

__all__ = [
    # Workout definitions
    "SupabaseWorkoutRepository",

    # Drafts
    "SupabaseDraftRepository",

    # Completion tracking
    "SupabaseCompletionRepository",

    # Exercise catalog
    "SupabaseExercisesRepository",

    # Run tracking
    "SupabaseRunSampleRepository",
]
