"""
Supabase Run Sample Repository Implementation.

Recorded positions are appended to ``run_samples`` keyed by the run-like
exercise instance (``run_id``).
"""
import asyncio
import logging
from typing import List, Sequence

from supabase import Client

from domain.models.run import RunSample

logger = logging.getLogger(__name__)


class SupabaseRunSampleRepository:
    """Supabase implementation of RunSampleRepository. Errors propagate."""

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected, not global)
        """
        self._client = client

    async def append(self, run_id: str, user_id: str, samples: Sequence[RunSample]) -> None:
        if not samples:
            return
        rows = [
            {
                "run_id": run_id,
                "user_id": user_id,
                "latitude": s.latitude,
                "longitude": s.longitude,
                "recorded_at": s.timestamp.isoformat(),
            }
            for s in samples
        ]
        await asyncio.to_thread(lambda: self._client.table("run_samples").insert(rows).execute())
        logger.debug(f"Persisted {len(rows)} sample(s) for run {run_id}")

    async def list_for_run(self, run_id: str) -> List[RunSample]:
        result = await asyncio.to_thread(
            lambda: self._client.table("run_samples")
            .select("latitude, longitude, recorded_at")
            .eq("run_id", run_id)
            .order("recorded_at")
            .execute()
        )
        return [
            RunSample(
                latitude=row["latitude"],
                longitude=row["longitude"],
                timestamp=row["recorded_at"],
            )
            for row in result.data or []
        ]
