"""
Supabase implementation of ExercisesRepository.

Queries the ``exercises`` catalog when a member looks for a substitute
exercise mid-session.
"""
import asyncio
import logging
from typing import Dict, List, Optional

from supabase import Client

from domain.models.workout_definition import CatalogExercise
from infrastructure.db.workout_repository import row_to_catalog_exercise

logger = logging.getLogger(__name__)


class SupabaseExercisesRepository:
    """
    Supabase implementation of ExercisesRepository protocol.

    Catalog entries are cached by id once fetched; the catalog changes rarely
    and a session only ever reads it.
    """

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected, not global)
        """
        self._client = client
        self._exercises_cache: Dict[str, CatalogExercise] = {}

    async def get_by_id(self, exercise_id: str) -> Optional[CatalogExercise]:
        cached = self._exercises_cache.get(exercise_id)
        if cached is not None:
            return cached

        try:
            result = await asyncio.to_thread(
                lambda: self._client.table("exercises").select("*").eq("id", exercise_id).execute()
            )
        except Exception:
            logger.exception(f"Error fetching exercise by id {exercise_id}")
            return None

        if not result.data:
            return None
        exercise = row_to_catalog_exercise(result.data[0])
        self._exercises_cache[exercise.id] = exercise
        return exercise

    async def find_by_muscle_group(
        self,
        muscle_group: str,
        *,
        exclude_id: Optional[str] = None,
        limit: int = 20,
    ) -> List[CatalogExercise]:
        try:
            result = await asyncio.to_thread(
                lambda: self._client.table("exercises")
                .select("*")
                .ilike("muscle_group", muscle_group)
                .order("name")
                .limit(limit + 1)
                .execute()
            )
        except Exception:
            logger.exception(f"Error fetching exercises for muscle group {muscle_group}")
            return []

        exercises = []
        for row in result.data or []:
            exercise = row_to_catalog_exercise(row)
            self._exercises_cache[exercise.id] = exercise
            if exercise.id != exclude_id:
                exercises.append(exercise)
        return exercises[:limit]
