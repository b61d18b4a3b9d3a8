"""
Supabase Completion Repository Implementation.

This module implements the CompletionRepository protocol using Supabase as the
backend. Completion records live in ``workout_completions`` and per-set
results in ``workout_set_completions``.

Program workouts are referenced by ``workout_id`` and standalone workouts by
``standalone_workout_id``; both lookups and inserts pick the column the same way.

Set results are upserted on (workout_completion_id, workout_exercise_id,
set_number), so repeating a write updates the row in place.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from supabase import Client

from domain.models.completion import CompletionRecord, SetResultPayload

logger = logging.getLogger(__name__)

# Postgres unique_violation
DUPLICATE_KEY_CODE = "23505"
SET_RESULT_CONFLICT_COLUMNS = "workout_completion_id,workout_exercise_id,set_number"

# Input validation limits
MAX_STRING_LENGTH = 1000


# ============================================================================
# Helper Functions (stateless utilities)
# ============================================================================

def validate_string_field(value: Optional[str], field_name: str) -> Optional[str]:
    """Validate and truncate string field to max length."""
    if value is None:
        return None
    if len(value) > MAX_STRING_LENGTH:
        logger.warning(f"{field_name} exceeds {MAX_STRING_LENGTH} chars, truncating")
        return value[:MAX_STRING_LENGTH]
    return value


def is_duplicate_key_error(error: Exception) -> bool:
    """True when a Postgres unique constraint rejected an insert."""
    code = getattr(error, "code", None)
    if code == DUPLICATE_KEY_CODE:
        return True
    message = str(error).lower()
    return DUPLICATE_KEY_CODE in message or "duplicate key" in message


def workout_column(standalone: bool) -> str:
    """Column of ``workout_completions`` that references the workout."""
    return "standalone_workout_id" if standalone else "workout_id"


def set_result_row(
    exercise_id: str,
    completion_id: str,
    set_number: int,
    payload: SetResultPayload,
    user_id: str,
) -> Dict[str, Any]:
    return {
        "workout_completion_id": completion_id,
        "workout_exercise_id": exercise_id,
        "user_id": user_id,
        "set_number": set_number,
        "weight": payload.weight,
        "reps_completed": payload.reps_completed,
        "completed": payload.completed,
        "distance": payload.distance,
        "duration": payload.duration,
        "location": validate_string_field(payload.location, "location"),
        "notes": validate_string_field(payload.notes, "notes"),
    }


def row_to_completion(row: Dict[str, Any]) -> CompletionRecord:
    return CompletionRecord(
        id=str(row["id"]),
        workout_id=str(row.get("workout_id") or row.get("standalone_workout_id") or ""),
        user_id=str(row["user_id"]),
        standalone=not row.get("workout_id") and bool(row.get("standalone_workout_id")),
        started_at=row.get("started_at"),
        completed_at=row.get("completed_at"),
        rating=row.get("rating"),
        notes=row.get("notes"),
    )


class SupabaseCompletionRepository:
    """
    Supabase implementation of CompletionRepository.

    Unlike the draft store, errors propagate to the caller.
    """

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected, not global)
        """
        self._client = client

    # =========================================================================
    # CompletionRepository Protocol Methods
    # =========================================================================

    async def find_existing(
        self,
        workout_id: str,
        user_id: str,
        *,
        standalone: bool = False,
    ) -> Optional[str]:
        return await asyncio.to_thread(self._find_existing, workout_id, user_id, standalone)

    async def create(
        self,
        workout_id: str,
        user_id: str,
        *,
        started_at: Optional[datetime] = None,
        standalone: bool = False,
    ) -> str:
        return await asyncio.to_thread(self._create, workout_id, user_id, started_at, standalone)

    async def write_set_result(
        self,
        exercise_id: str,
        completion_id: str,
        set_number: int,
        payload: SetResultPayload,
        *,
        user_id: str,
    ) -> bool:
        row = set_result_row(exercise_id, completion_id, set_number, payload, user_id)
        result = await asyncio.to_thread(
            lambda: self._client.table("workout_set_completions")
            .upsert(row, on_conflict=SET_RESULT_CONFLICT_COLUMNS)
            .execute()
        )
        return bool(result.data)

    async def finalize(
        self,
        completion_id: str,
        *,
        completed_at: datetime,
        rating: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> None:
        update = {"completed_at": completed_at.isoformat()}
        if rating is not None:
            update["rating"] = rating
        if notes is not None:
            update["notes"] = validate_string_field(notes, "notes")
        await asyncio.to_thread(
            lambda: self._client.table("workout_completions")
            .update(update)
            .eq("id", completion_id)
            .execute()
        )

    async def get_by_id(self, completion_id: str) -> Optional[CompletionRecord]:
        result = await asyncio.to_thread(
            lambda: self._client.table("workout_completions")
            .select("*")
            .eq("id", completion_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return row_to_completion(result.data[0])

    # =========================================================================
    # Helpers
    # =========================================================================

    def _find_existing(self, workout_id: str, user_id: str, standalone: bool) -> Optional[str]:
        result = (
            self._client.table("workout_completions")
            .select("id")
            .eq(workout_column(standalone), workout_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if result.data:
            return str(result.data[0]["id"])
        return None

    def _create(
        self,
        workout_id: str,
        user_id: str,
        started_at: Optional[datetime],
        standalone: bool,
    ) -> str:
        row = {
            workout_column(standalone): workout_id,
            "user_id": user_id,
            "started_at": (started_at or datetime.now(timezone.utc)).isoformat(),
        }
        try:
            result = self._client.table("workout_completions").insert(row).execute()
        except Exception as e:
            if not is_duplicate_key_error(e):
                raise
            # Another tab created it between our check and insert
            existing = self._find_existing(workout_id, user_id, standalone)
            if existing is None:
                raise
            logger.info(f"Completion for workout {workout_id} already exists: {existing}")
            return existing

        if not result.data:
            raise RuntimeError(f"Insert of completion for workout {workout_id} returned no row")
        return str(result.data[0]["id"])
