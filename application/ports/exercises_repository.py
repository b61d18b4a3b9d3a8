"""
Exercises Repository Interface (Port).

This module defines the abstract interface for querying the exercise catalog
when a member swaps an exercise mid-session.
"""
from typing import List, Optional, Protocol

from domain.models.workout_definition import CatalogExercise


class ExercisesRepository(Protocol):
    """Abstract interface for read-only exercise catalog queries."""

    async def get_by_id(self, exercise_id: str) -> Optional[CatalogExercise]:
        """
        Get a catalog exercise by ID.

        Returns:
            CatalogExercise or None if not found
        """
        ...

    async def find_by_muscle_group(
        self,
        muscle_group: str,
        *,
        exclude_id: Optional[str] = None,
        limit: int = 20,
    ) -> List[CatalogExercise]:
        """
        Find catalog exercises targeting a muscle group, ordered by name.

        Args:
            muscle_group: Muscle group to match (case-insensitive)
            exclude_id: Catalog ID to leave out (the exercise being swapped)
            limit: Maximum number of exercises to return

        Returns:
            List of matching exercises, possibly empty
        """
        ...
