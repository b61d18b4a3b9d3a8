"""
Repository and Provider Interfaces (Ports) for the workout session core.

This package defines abstract interfaces that decouple session logic from
infrastructure (database, device APIs, local storage). Implementations are
provided in the infrastructure layer; in-memory fakes live in tests/fakes.

Architecture follows the Ports & Adapters (Hexagonal) pattern:
- Ports: Abstract interfaces defined here (what the session needs)
- Adapters: Concrete implementations in infrastructure/ (how it's provided)

Usage:
    from application.ports import DraftRepository, CompletionRepository

    class DraftAutosaveService:
        def __init__(self, draft_repo: DraftRepository, ...):
            self._draft_repo = draft_repo
"""

# Workout definition lookups
from application.ports.workout_repository import WorkoutRepository

# Draft persistence
from application.ports.draft_repository import DraftRepository

# Completion persistence
from application.ports.completion_repository import CompletionRepository

# Exercise catalog (swap candidates)
from application.ports.exercises_repository import ExercisesRepository

# Run tracking
from application.ports.run_sample_repository import RunSampleRepository
from application.ports.geolocation import (
    GeolocationProvider,
    Position,
    WatchOptions,
)

# Local elapsed-time display
from application.ports.timer_storage import TimerState, TimerStateStore

__all__ = [
    # Workout
    "WorkoutRepository",
    # Draft
    "DraftRepository",
    # Completion
    "CompletionRepository",
    # Exercises
    "ExercisesRepository",
    # Run tracking
    "RunSampleRepository",
    "GeolocationProvider",
    "Position",
    "WatchOptions",
    # Timer
    "TimerState",
    "TimerStateStore",
]
