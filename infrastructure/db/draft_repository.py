"""
Supabase Draft Repository Implementation.

This module implements the DraftRepository protocol on the ``workout_drafts``
table, one row per (user_id, workout_id). Reads retry a fixed number of times
with a short fixed wait; every failure is reported as a None/False return.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from supabase import Client

from backend.retry import fixed_retrying
from domain.models.draft import DEFAULT_DRAFT_KIND, Draft, parse_draft_payload

logger = logging.getLogger(__name__)

DRAFT_CONFLICT_COLUMNS = "user_id,workout_id"


class SupabaseDraftRepository:
    """Supabase implementation of DraftRepository."""

    def __init__(
        self,
        client: Client,
        *,
        fetch_attempts: int = 5,
        fetch_retry_seconds: float = 0.3,
    ):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected, not global)
            fetch_attempts: Read attempts before giving up
            fetch_retry_seconds: Wait between read attempts
        """
        self._client = client
        self._fetch_attempts = fetch_attempts
        self._fetch_retry_seconds = fetch_retry_seconds

    async def get(self, workout_id: str, user_id: str) -> Optional[Draft]:
        """
        Fetch the draft, retrying failed reads.

        Raises:
            MalformedDraftError: When the stored payload is not a JSON object
        """
        try:
            row = None
            async for attempt in fixed_retrying(self._fetch_attempts, self._fetch_retry_seconds):
                with attempt:
                    row = await asyncio.to_thread(self._select, workout_id, user_id)
        except Exception as e:
            logger.warning(
                f"Draft for workout {workout_id} unavailable after {self._fetch_attempts} attempts: {e}"
            )
            return None

        if row is None:
            return None
        return Draft(
            workout_id=str(row["workout_id"]),
            user_id=str(row["user_id"]),
            kind=row.get("workout_type") or DEFAULT_DRAFT_KIND,
            data=parse_draft_payload(row.get("draft_data")),
            updated_at=row.get("updated_at"),
        )

    async def put(
        self,
        workout_id: str,
        user_id: str,
        kind: str,
        snapshot: Dict[str, Any],
    ) -> bool:
        row = {
            "user_id": user_id,
            "workout_id": workout_id,
            "workout_type": kind or DEFAULT_DRAFT_KIND,
            "draft_data": snapshot,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            result = await asyncio.to_thread(
                lambda: self._client.table("workout_drafts")
                .upsert(row, on_conflict=DRAFT_CONFLICT_COLUMNS)
                .execute()
            )
        except Exception as e:
            logger.warning(f"Draft upsert failed for workout {workout_id}: {e}")
            return False
        return bool(result.data)

    async def delete(self, workout_id: str, user_id: str) -> bool:
        try:
            await asyncio.to_thread(
                lambda: self._client.table("workout_drafts")
                .delete()
                .eq("user_id", user_id)
                .eq("workout_id", workout_id)
                .execute()
            )
        except Exception as e:
            logger.warning(f"Draft delete failed for workout {workout_id}: {e}")
            return False
        return True

    def _select(self, workout_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        result = (
            self._client.table("workout_drafts")
            .select("*")
            .eq("user_id", user_id)
            .eq("workout_id", workout_id)
            .limit(1)
            .execute()
        )
        return result.data[0] if result.data else None
