"""
Completion Repository Interface (Port).

This module defines the abstract interface for workout completion persistence.
A completion record is the authoritative, terminal artifact of a session and
there is at most one per (workout_id, user_id). Set results are written per
(completion, exercise instance, set number) and must be idempotent.
"""
from datetime import datetime
from typing import Optional, Protocol

from domain.models.completion import CompletionRecord, SetResultPayload


class CompletionRepository(Protocol):
    """
    Abstract interface for completion and set-result persistence.

    Unlike the draft store, failures here raise: the completion coordinator
    needs to know exactly which writes were confirmed.
    """

    async def find_existing(
        self,
        workout_id: str,
        user_id: str,
        *,
        standalone: bool = False,
    ) -> Optional[str]:
        """
        Find the completion ID for a (workout, user) pair.

        Args:
            workout_id: Program or standalone workout ID
            user_id: Member
            standalone: workout_id names a standalone workout

        Returns:
            Completion ID or None
        """
        ...

    async def create(
        self,
        workout_id: str,
        user_id: str,
        *,
        started_at: Optional[datetime] = None,
        standalone: bool = False,
    ) -> str:
        """
        Create a completion record.

        If a record for (workout_id, user_id) already exists (a concurrent tab
        won the race), returns the existing record's ID instead of failing.

        Returns:
            Completion ID
        """
        ...

    async def write_set_result(
        self,
        exercise_id: str,
        completion_id: str,
        set_number: int,
        payload: SetResultPayload,
        *,
        user_id: str,
    ) -> bool:
        """
        Upsert one set result keyed by (completion_id, exercise_id, set_number).

        Repeating the call with the same key updates the row in place rather
        than inserting a duplicate.

        Returns:
            True once the write is acknowledged
        """
        ...

    async def finalize(
        self,
        completion_id: str,
        *,
        completed_at: datetime,
        rating: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> None:
        """Mark a completion as finished with optional rating and notes."""
        ...

    async def get_by_id(self, completion_id: str) -> Optional[CompletionRecord]:
        """Get a single completion record, or None if not found."""
        ...
