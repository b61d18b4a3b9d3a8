"""
Supabase Workout Repository Implementation.

This module implements the WorkoutRepository protocol using Supabase as the
backend. Program workouts live in ``workouts``/``workout_exercises``,
coach-independent ones in ``standalone_workouts``/``standalone_workout_exercises``;
both join the ``exercises`` catalog through ``exercise_id``.

The supabase-py client is synchronous, so each query runs in a worker thread.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from supabase import Client

from domain.models.workout_definition import (
    CatalogExercise,
    DefinitionSource,
    ResolvedWorkout,
    WorkoutDefinition,
    WorkoutExercise,
)

logger = logging.getLogger(__name__)

EXERCISE_SELECT = "*, exercise:exercise_id(*)"


# ============================================================================
# Row converters
# ============================================================================

def row_to_catalog_exercise(row: Dict[str, Any]) -> CatalogExercise:
    """Convert an ``exercises`` row to a CatalogExercise."""
    return CatalogExercise(
        id=str(row["id"]),
        name=row.get("name") or "",
        exercise_type=row.get("exercise_type") or "strength",
        muscle_group=row.get("muscle_group"),
        media_url=row.get("youtube_link"),
        description=row.get("description"),
    )


def row_to_workout_exercise(row: Dict[str, Any]) -> Optional[WorkoutExercise]:
    """Convert a workout exercise row with its joined catalog entry; None when the join is missing."""
    catalog = row.get("exercise")
    if not catalog:
        logger.warning(f"Workout exercise {row.get('id')} has no catalog entry, skipping")
        return None
    return WorkoutExercise(
        id=str(row["id"]),
        exercise=row_to_catalog_exercise(catalog),
        sets=row.get("sets"),
        reps=None if row.get("reps") is None else str(row["reps"]),
        order_index=row.get("order_index") or 0,
        rest_seconds=row.get("rest_seconds"),
        notes=row.get("notes"),
    )


def rows_to_definition(workout_row: Dict[str, Any], exercise_rows: List[Dict[str, Any]]) -> WorkoutDefinition:
    exercises = [e for e in (row_to_workout_exercise(r) for r in exercise_rows) if e is not None]
    return WorkoutDefinition(
        id=str(workout_row["id"]),
        title=workout_row.get("title") or "",
        description=workout_row.get("description"),
        exercises=exercises,
    )


class SupabaseWorkoutRepository:
    """
    Supabase implementation of WorkoutRepository.

    Lookups return None when nothing matches. Query errors propagate so the
    session initializer can treat the route as unresolved.
    """

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected, not global)
        """
        self._client = client

    # =========================================================================
    # WorkoutRepository Protocol Methods
    # =========================================================================

    async def get_completion_with_workout(
        self,
        completion_id: str,
        user_id: str,
    ) -> Optional[ResolvedWorkout]:
        completion = await asyncio.to_thread(
            self._select_one, "workout_completions", id=completion_id, user_id=user_id
        )
        if completion is None:
            return None
        return await self._resolve_completion(completion, DefinitionSource.COMPLETION)

    async def get_completion_for_workout(
        self,
        workout_id: str,
        user_id: str,
    ) -> Optional[ResolvedWorkout]:
        completion = await asyncio.to_thread(
            self._select_one, "workout_completions", workout_id=workout_id, user_id=user_id
        )
        if completion is None:
            completion = await asyncio.to_thread(
                self._select_one,
                "workout_completions",
                standalone_workout_id=workout_id,
                user_id=user_id,
            )
        if completion is None:
            return None
        return await self._resolve_completion(completion, DefinitionSource.COMPLETION_BY_WORKOUT)

    async def get_workout(self, workout_id: str) -> Optional[WorkoutDefinition]:
        return await asyncio.to_thread(
            self._load_definition, "workouts", "workout_exercises", workout_id
        )

    async def get_standalone_workout(self, workout_id: str) -> Optional[WorkoutDefinition]:
        return await asyncio.to_thread(
            self._load_definition, "standalone_workouts", "standalone_workout_exercises", workout_id
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _resolve_completion(
        self,
        completion: Dict[str, Any],
        source: DefinitionSource,
    ) -> Optional[ResolvedWorkout]:
        if completion.get("workout_id"):
            definition = await self.get_workout(completion["workout_id"])
        elif completion.get("standalone_workout_id"):
            definition = await self.get_standalone_workout(completion["standalone_workout_id"])
        else:
            definition = None

        if definition is None:
            logger.warning(f"Completion {completion.get('id')} has no resolvable workout")
            return None
        return ResolvedWorkout(
            definition=definition,
            source=source,
            completion_id=str(completion["id"]),
            standalone=not completion.get("workout_id"),
        )

    def _select_one(self, table: str, **filters: Any) -> Optional[Dict[str, Any]]:
        query = self._client.table(table).select("*")
        for column, value in filters.items():
            query = query.eq(column, value)
        result = query.limit(1).execute()
        return result.data[0] if result.data else None

    def _load_definition(
        self,
        workout_table: str,
        exercise_table: str,
        workout_id: str,
    ) -> Optional[WorkoutDefinition]:
        workout_row = self._select_one(workout_table, id=workout_id)
        if workout_row is None:
            return None
        result = (
            self._client.table(exercise_table)
            .select(EXERCISE_SELECT)
            .eq("workout_id", workout_id)
            .order("order_index")
            .execute()
        )
        return rows_to_definition(workout_row, result.data or [])
