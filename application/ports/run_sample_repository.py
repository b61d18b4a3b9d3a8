"""
Run Sample Repository Interface (Port).

This module defines the abstract interface for persisting recorded run
positions. Samples are append-only and keyed by the run-like exercise
instance they belong to.
"""
from typing import List, Protocol, Sequence

from domain.models.run import RunSample


class RunSampleRepository(Protocol):
    """Abstract interface for run sample persistence."""

    async def append(self, run_id: str, user_id: str, samples: Sequence[RunSample]) -> None:
        """
        Append samples to a run. Raises on failure so callers can retry.

        Args:
            run_id: Exercise-instance ID of the run
            user_id: Owner of the run
            samples: Samples in recording order
        """
        ...

    async def list_for_run(self, run_id: str) -> List[RunSample]:
        """
        Get all persisted samples for a run, oldest first.

        Returns:
            List of samples, possibly empty
        """
        ...
