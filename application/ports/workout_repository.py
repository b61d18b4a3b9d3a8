"""
Workout Repository Interface (Port).

This module defines the abstract interface for resolving workout definitions.
A session can be reached through several entry routes (an existing completion,
an assigned program workout, a coach-independent standalone workout), so the
repository exposes one lookup per route. Implementations may use Supabase,
in-memory storage, or other backends.
"""
from typing import Optional, Protocol

from domain.models.workout_definition import ResolvedWorkout, WorkoutDefinition


class WorkoutRepository(Protocol):
    """
    Abstract interface for read-only workout definition lookups.

    Every lookup returns None when nothing matches; network or query failures
    raise and are treated by callers as "this route did not resolve".
    """

    async def get_completion_with_workout(
        self,
        completion_id: str,
        user_id: str,
    ) -> Optional[ResolvedWorkout]:
        """
        Resolve an existing completion record joined to its workout.

        Args:
            completion_id: Completion record ID (the session was opened from history)
            user_id: Owner of the completion

        Returns:
            ResolvedWorkout with completion_id set, or None
        """
        ...

    async def get_completion_for_workout(
        self,
        workout_id: str,
        user_id: str,
    ) -> Optional[ResolvedWorkout]:
        """
        Resolve a completion keyed by workout id for this user.

        Args:
            workout_id: Workout ID
            user_id: Owner of the completion

        Returns:
            ResolvedWorkout with completion_id set, or None
        """
        ...

    async def get_workout(self, workout_id: str) -> Optional[WorkoutDefinition]:
        """
        Get a bare program workout definition (session not yet started).

        Args:
            workout_id: Workout ID

        Returns:
            WorkoutDefinition or None if not found
        """
        ...

    async def get_standalone_workout(self, workout_id: str) -> Optional[WorkoutDefinition]:
        """
        Get a standalone (coach-independent) workout definition.

        Args:
            workout_id: Standalone workout ID

        Returns:
            WorkoutDefinition or None if not found
        """
        ...
