"""
Draft Autosave Service.

Debounced, retrying write-back of the exercise state store to the draft
store. This is a write-back cache with bounded staleness: the data-loss
window is the debounce interval plus one retry cycle.

Behaviour:
- ``schedule(snapshot)`` is called on every store mutation. A save fires only
  after ``debounce_seconds`` with no further mutations.
- The first save of a session waits for ``min_changes`` mutations so a
  snapshot that is still the initial defaults is never persisted.
- At most one save is in flight. A mutation arriving during a save restarts
  the quiet period, which then waits for the in-flight save to settle.
- A failed save is retried up to ``max_retries`` times, ``retry_delay_seconds``
  apart; after that ``needs_manual_retry`` is set until ``retry_now()``.
  Any successful save resets the retry counter.

Usage:
    >>> autosave = DraftAutosaveService(
    ...     draft_repo,
    ...     workout_id="w-1",
    ...     user_id="user-1",
    ...     on_status_change=lambda status: print(status.value),
    ... )
    >>> unsubscribe = store.subscribe(lambda s: autosave.schedule(s.snapshot()))
    >>> ...
    >>> await autosave.flush()
    >>> autosave.cancel()
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from application.ports import DraftRepository
from domain.errors import DraftUnavailableError
from domain.models.draft import DEFAULT_DRAFT_KIND

logger = logging.getLogger(__name__)


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


StatusListener = Callable[[SaveStatus], None]


class DraftAutosaveService:
    """Owns the debounce timer, retry timer and in-flight save of one session."""

    def __init__(
        self,
        draft_repo: DraftRepository,
        *,
        workout_id: str,
        user_id: str,
        kind: str = DEFAULT_DRAFT_KIND,
        debounce_seconds: float = 2.0,
        min_changes: int = 2,
        max_retries: int = 3,
        retry_delay_seconds: float = 5.0,
        draft_exists: bool = False,
        on_status_change: Optional[StatusListener] = None,
    ) -> None:
        """
        Args:
            draft_repo: Draft store
            workout_id: Workout the draft belongs to
            user_id: Owner of the draft
            kind: Workout kind tag stored with the draft
            debounce_seconds: Quiet period before a save
            min_changes: Mutations required before the first save
            max_retries: Automatic retries after a failed save
            retry_delay_seconds: Fixed delay between automatic retries
            draft_exists: True when the session was restored from a draft;
                the min_changes threshold then no longer applies
            on_status_change: Called with every status transition
        """
        if debounce_seconds <= 0:
            raise ValueError(f"debounce_seconds must be positive, got {debounce_seconds}")
        if min_changes < 1:
            raise ValueError(f"min_changes must be >= 1, got {min_changes}")

        self._draft_repo = draft_repo
        self.workout_id = workout_id
        self.user_id = user_id
        self.kind = kind
        self._debounce_seconds = debounce_seconds
        self._min_changes = min_changes
        self._max_retries = max_retries
        self._retry_delay_seconds = retry_delay_seconds
        self._on_status_change = on_status_change

        self._status = SaveStatus.IDLE
        self._pending: Optional[Dict[str, Any]] = None
        self._change_count = 0
        self._has_saved = draft_exists
        self._retry_count = 0
        self._closed = False
        self._suspended = False

        self._debounce_task: Optional[asyncio.Task] = None
        self._retry_task: Optional[asyncio.Task] = None
        self._save_task: Optional[asyncio.Task] = None

        self.needs_manual_retry = False
        self.last_saved_at: Optional[datetime] = None
        self.last_error: Optional[DraftUnavailableError] = None
        self.save_attempts = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def retry_count(self) -> int:
        return self._retry_count

    @property
    def has_unsaved_changes(self) -> bool:
        return self._pending is not None

    @property
    def is_saving(self) -> bool:
        return self._save_task is not None and not self._save_task.done()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule(self, snapshot: Dict[str, Any]) -> None:
        """Record a new snapshot and (re)start the quiet period."""
        if self._closed:
            logger.debug(f"Ignoring draft snapshot for closed session {self.workout_id}")
            return

        self._pending = snapshot
        self._change_count += 1

        if not self._has_saved and self._change_count < self._min_changes:
            return

        if self._suspended:
            return

        self._cancel_retry()
        self._restart_debounce()

    def _restart_debounce(self) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = asyncio.create_task(self._debounce_then_save())

    async def _debounce_then_save(self) -> None:
        while True:
            await asyncio.sleep(self._debounce_seconds)
            if not self.is_saving:
                break
            # Wait out the in-flight save, then give the quiet period another go
            await asyncio.wait({self._save_task})
        self._debounce_task = None
        self._start_save()

    # ------------------------------------------------------------------
    # Manual control
    # ------------------------------------------------------------------

    async def flush(self) -> bool:
        """
        Save pending changes now, skipping the debounce and min-change gate.

        Returns:
            True when nothing was pending or the save succeeded
        """
        self._cancel_debounce()
        self._cancel_retry()
        if self.is_saving:
            await asyncio.wait({self._save_task})
        if self._pending is None:
            return True
        return await self._start_save()

    async def retry_now(self) -> bool:
        """Manual retry after automatic retries are exhausted."""
        self.needs_manual_retry = False
        self._retry_count = 0
        return await self.flush()

    async def suspend(self) -> None:
        """
        Stop the timers and wait for any in-flight save to settle.

        Snapshots scheduled while suspended are kept but not saved until
        ``resume()``.
        """
        self._suspended = True
        self._cancel_debounce()
        self._cancel_retry()
        if self.is_saving:
            await asyncio.wait({self._save_task})

    def resume(self) -> None:
        self._suspended = False
        if self._pending is not None and not self._closed:
            self._restart_debounce()

    async def discard(self) -> bool:
        """
        Drop pending changes and delete the stored draft.

        Returns:
            True when the draft store acknowledged the delete
        """
        was_closed = self._closed
        self.cancel()
        self._closed = was_closed
        self._pending = None
        self._change_count = 0
        self._has_saved = False
        self._retry_count = 0
        self.needs_manual_retry = False

        try:
            deleted = await self._draft_repo.delete(self.workout_id, self.user_id)
        except Exception as e:
            logger.warning(f"Failed to delete draft for workout {self.workout_id}: {e}")
            deleted = False
        self._set_status(SaveStatus.IDLE)
        return deleted

    def cancel(self) -> None:
        """Cancel every timer and any in-flight save. Later schedule() calls are ignored."""
        self._closed = True
        self._cancel_debounce()
        self._cancel_retry()
        if self._save_task is not None and not self._save_task.done():
            self._save_task.cancel()
        self._save_task = None

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    def _start_save(self) -> "asyncio.Future[bool]":
        if self.is_saving:
            return self._save_task
        self._save_task = asyncio.create_task(self._save())
        return self._save_task

    async def _save(self) -> bool:
        snapshot = self._pending
        if snapshot is None:
            return True

        self.save_attempts += 1
        self.last_error = None
        self._set_status(SaveStatus.SAVING)
        try:
            ok = await self._draft_repo.put(self.workout_id, self.user_id, self.kind, snapshot)
        except Exception as e:
            logger.warning(f"Draft save raised for workout {self.workout_id}: {e}")
            self.last_error = DraftUnavailableError(f"Draft save failed: {e}")
            ok = False

        if ok:
            self._on_success(snapshot)
        else:
            self._on_failure()
        return ok

    def _on_success(self, snapshot: Dict[str, Any]) -> None:
        if self._pending is snapshot:
            self._pending = None
        self._has_saved = True
        self._retry_count = 0
        self.needs_manual_retry = False
        self.last_error = None
        self.last_saved_at = datetime.now(timezone.utc)
        logger.info(f"Draft saved for workout {self.workout_id}")
        self._set_status(SaveStatus.SAVED)

    def _on_failure(self) -> None:
        self.last_error = self.last_error or DraftUnavailableError("Draft store rejected the save")
        self._set_status(SaveStatus.ERROR)

        if self._retry_count >= self._max_retries:
            self.needs_manual_retry = True
            logger.error(
                f"Draft save for workout {self.workout_id} failed after "
                f"{self._retry_count} retries; manual retry required"
            )
            return

        if self._suspended or self._closed:
            return

        if self._debounce_task is not None and not self._debounce_task.done():
            # A newer snapshot is already queued behind the quiet period
            self._retry_count += 1
            return

        self._retry_count += 1
        logger.warning(
            f"Draft save for workout {self.workout_id} failed; retry "
            f"{self._retry_count}/{self._max_retries} in {self._retry_delay_seconds}s"
        )
        self._retry_task = asyncio.create_task(self._retry_after_delay())

    async def _retry_after_delay(self) -> None:
        await asyncio.sleep(self._retry_delay_seconds)
        self._retry_task = None
        if self.is_saving:
            return
        self._start_save()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

    def _cancel_retry(self) -> None:
        if self._retry_task is not None and not self._retry_task.done():
            self._retry_task.cancel()
        self._retry_task = None

    def _set_status(self, status: SaveStatus) -> None:
        if status == self._status:
            return
        self._status = status
        if self._on_status_change is None:
            return
        try:
            self._on_status_change(status)
        except Exception:
            logger.exception("Save status listener failed")
