"""
Draft Repository Interface (Port).

This module defines the abstract interface for workout draft persistence.
Drafts are recoverable snapshots of in-progress edits, addressed by
(workout_id, user_id). There is at most one draft per pair: writes replace.

The draft store must tolerate being unavailable: implementations report
failure through return values instead of raising. The one structural error,
a stored payload that cannot be decoded, is raised as MalformedDraftError.
"""
from typing import Any, Dict, Optional, Protocol

from domain.models.draft import Draft


class DraftRepository(Protocol):
    """Abstract interface for draft persistence."""

    async def get(self, workout_id: str, user_id: str) -> Optional[Draft]:
        """
        Fetch the saved draft for a workout.

        Args:
            workout_id: Workout ID the draft belongs to
            user_id: Owner of the draft

        Returns:
            Draft, or None when no draft exists or the store is unavailable

        Raises:
            MalformedDraftError: When the stored payload cannot be decoded
        """
        ...

    async def put(
        self,
        workout_id: str,
        user_id: str,
        kind: str,
        snapshot: Dict[str, Any],
    ) -> bool:
        """
        Create or overwrite the draft for a workout.

        Saving the same snapshot twice leaves a single draft whose updated_at
        reflects the latest write.

        Args:
            workout_id: Workout ID
            user_id: Owner of the draft
            kind: Workout kind tag (e.g. "workout", "standalone")
            snapshot: Serialized exercise state store

        Returns:
            True when the write was acknowledged, False otherwise
        """
        ...

    async def delete(self, workout_id: str, user_id: str) -> bool:
        """
        Delete the draft for a workout.

        Returns:
            True when deleted (or nothing to delete), False on failure
        """
        ...
