"""
CompleteSession Use Case.

Converts the final exercise state store into durable set results and exactly
one completion record, then ends the session.

Idempotency is enforced at two layers:
- In process, one instance of this use case belongs to one session. Concurrent
  calls share the same in-flight run and observe the same completion id; once a
  run has succeeded every later call returns that result.
- In the store, an existing completion for (workout_id, user_id) is reused and
  set results are upserted by (completion, exercise, set number). A result
  confirmed by an earlier partial attempt is written again only when its
  payload has changed since.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Set, Tuple

from application.ports import CompletionRepository, DraftRepository
from backend.retry import retry_async_call
from domain.errors import CompletionUnavailableError, PartialCompletionFailure
from domain.exercise_store import ExerciseStateStore
from domain.formatters import parse_decimal, parse_whole_number
from domain.models.completion import SetResult, SetResultPayload
from domain.models.exercise_state import (
    CardioData,
    CardioState,
    FlexibilityState,
    RunState,
    StrengthState,
)

logger = logging.getLogger(__name__)

SetKey = Tuple[str, int]


def _blank_to_none(value: str) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def _cardio_payload(data: CardioData) -> SetResultPayload:
    return SetResultPayload(
        completed=data.completed,
        distance=_blank_to_none(data.distance),
        duration=_blank_to_none(data.duration),
        location=_blank_to_none(data.location),
    )


def collect_set_results(store: ExerciseStateStore, completion_id: str) -> List[SetResult]:
    """
    Build one SetResult per strength set with data and one aggregate per
    cardio, run or flexibility exercise with data.

    Exercises with nothing entered produce no rows.
    """
    results: List[SetResult] = []
    for exercise_id, state in store.items():
        if not state.has_meaningful_data:
            continue

        if isinstance(state, StrengthState):
            for entry in state.sets:
                if not entry.has_data:
                    continue
                results.append(
                    SetResult(
                        exercise_id=exercise_id,
                        completion_id=completion_id,
                        set_number=entry.set_number,
                        payload=SetResultPayload(
                            weight=parse_decimal(entry.weight),
                            reps_completed=parse_whole_number(entry.reps),
                            completed=entry.completed,
                        ),
                    )
                )
        elif isinstance(state, (CardioState, RunState)):
            data = state.cardio if isinstance(state, CardioState) else state.run
            results.append(
                SetResult(
                    exercise_id=exercise_id,
                    completion_id=completion_id,
                    set_number=1,
                    payload=_cardio_payload(data),
                )
            )
        elif isinstance(state, FlexibilityState):
            results.append(
                SetResult(
                    exercise_id=exercise_id,
                    completion_id=completion_id,
                    set_number=1,
                    payload=SetResultPayload(
                        completed=state.flexibility.completed,
                        duration=_blank_to_none(state.flexibility.duration),
                    ),
                )
            )
    return results


@dataclass
class CompletionResult:
    """Result of the CompleteSession use case execution."""

    success: bool
    completion_id: Optional[str] = None
    reused_existing: bool = False
    written: List[SetKey] = field(default_factory=list)
    failed: List[SetKey] = field(default_factory=list)
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class CompleteSessionUseCase:
    """
    Use case for finishing a workout session exactly once.

    Orchestrates the following workflow:
    1. Return the in-flight or already successful run if there is one
    2. Reuse an existing completion record or create one
    3. Write every set result concurrently and wait for all of them
    4. Finalize the record with completed_at, rating and notes
    5. Delete the draft and notify the caller

    Usage:
        >>> use_case = CompleteSessionUseCase(
        ...     completion_repo=completion_repo,
        ...     draft_repo=draft_repo,
        ...     workout_id="w-123",
        ...     user_id="user-1",
        ... )
        >>> result = await use_case.execute(store, rating=4)
        >>> if not result.success and result.error_code == "partial_completion":
        ...     result = await use_case.execute(store)  # retry
    """

    def __init__(
        self,
        completion_repo: CompletionRepository,
        draft_repo: DraftRepository,
        *,
        workout_id: str,
        user_id: str,
        started_at: Optional[datetime] = None,
        standalone: bool = False,
        on_complete: Optional[Callable[[CompletionResult], None]] = None,
    ) -> None:
        """
        Args:
            completion_repo: Completion and set-result store
            draft_repo: Draft store, cleared on success
            workout_id: Workout being completed
            user_id: Member completing it
            started_at: When the session started, stored on a new record
            standalone: workout_id names a standalone workout
            on_complete: Called once with the successful result
        """
        self._completion_repo = completion_repo
        self._draft_repo = draft_repo
        self.workout_id = workout_id
        self.user_id = user_id
        self._started_at = started_at
        self.standalone = standalone
        self._on_complete = on_complete

        self._in_flight: Optional["asyncio.Task[CompletionResult]"] = None
        self._completion_id: Optional[str] = None
        self._reused_existing = False
        self._confirmed: Dict[SetKey, SetResultPayload] = {}

    @property
    def is_completed(self) -> bool:
        task = self._in_flight
        if task is None or not task.done() or task.cancelled() or task.exception() is not None:
            return False
        return task.result().success

    @property
    def confirmed_keys(self) -> Set[SetKey]:
        return set(self._confirmed)

    async def execute(
        self,
        store: ExerciseStateStore,
        *,
        rating: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> CompletionResult:
        """
        Execute the completion workflow.

        Args:
            store: Final exercise states of the session
            rating: Optional subjective rating, 1 to 5
            notes: Optional free-text notes

        Returns:
            CompletionResult; on failure the session may call execute() again
        """
        if rating is not None and not 1 <= rating <= 5:
            return CompletionResult(
                success=False,
                error=f"Rating must be between 1 and 5, got {rating}",
                error_code="invalid_rating",
            )

        if self._in_flight is None:
            self._in_flight = asyncio.create_task(self._run(store, rating, notes))
        else:
            logger.info(f"Completion for workout {self.workout_id} already in progress or done")

        task = self._in_flight
        try:
            result = await asyncio.shield(task)
        except Exception:
            if self._in_flight is task:
                self._in_flight = None
            raise
        if not result.success and self._in_flight is task:
            # Release the guard so the member can retry
            self._in_flight = None
        return result

    async def _run(
        self,
        store: ExerciseStateStore,
        rating: Optional[int],
        notes: Optional[str],
    ) -> CompletionResult:
        try:
            completion_id = await self._ensure_completion()
        except Exception as e:
            error = CompletionUnavailableError(f"Could not create completion record: {e}")
            logger.error(f"{error.message} (workout {self.workout_id})")
            return CompletionResult(success=False, error=error.message, error_code=error.code)

        try:
            written = await self._write_results(store, completion_id)
        except PartialCompletionFailure as e:
            logger.error(f"{e.message} for completion {completion_id}: {e.failed}")
            return CompletionResult(
                success=False,
                completion_id=completion_id,
                reused_existing=self._reused_existing,
                written=sorted(self._confirmed),
                failed=e.failed,
                error=e.message,
                error_code=e.code,
            )

        completed_at = datetime.now(timezone.utc)
        try:
            await retry_async_call(
                self._completion_repo.finalize,
                completion_id,
                completed_at=completed_at,
                rating=rating,
                notes=notes,
            )
        except Exception as e:
            error = CompletionUnavailableError(f"Could not finalize completion: {e}")
            logger.error(f"{error.message} (completion {completion_id})")
            return CompletionResult(
                success=False,
                completion_id=completion_id,
                reused_existing=self._reused_existing,
                written=written,
                error=error.message,
                error_code=error.code,
            )

        await self._delete_draft()

        result = CompletionResult(
            success=True,
            completion_id=completion_id,
            reused_existing=self._reused_existing,
            written=written,
            completed_at=completed_at,
        )
        logger.info(
            f"Workout {self.workout_id} completed as {completion_id} "
            f"with {len(written)} set result(s)"
        )
        self._notify(result)
        return result

    async def _ensure_completion(self) -> str:
        if self._completion_id is not None:
            return self._completion_id

        existing = await retry_async_call(
            self._completion_repo.find_existing,
            self.workout_id,
            self.user_id,
            standalone=self.standalone,
        )
        if existing:
            logger.info(f"Reusing completion {existing} for workout {self.workout_id}")
            self._completion_id = existing
            self._reused_existing = True
            return existing

        completion_id = await retry_async_call(
            self._completion_repo.create,
            self.workout_id,
            self.user_id,
            started_at=self._started_at,
            standalone=self.standalone,
        )
        logger.info(f"Created completion {completion_id} for workout {self.workout_id}")
        self._completion_id = completion_id
        return completion_id

    async def _write_results(self, store: ExerciseStateStore, completion_id: str) -> List[SetKey]:
        """
        Write every set result not yet confirmed with its current payload, concurrently.

        Returns:
            All keys confirmed for this completion, in write order

        Raises:
            PartialCompletionFailure: When any write fails or is not acknowledged
        """
        results = collect_set_results(store, completion_id)
        pending = [r for r in results if self._confirmed.get(r.key) != r.payload]
        if len(pending) < len(results):
            logger.info(f"Skipping {len(results) - len(pending)} unchanged set result(s) already confirmed")

        outcomes = await asyncio.gather(
            *(
                self._completion_repo.write_set_result(
                    r.exercise_id,
                    r.completion_id,
                    r.set_number,
                    r.payload,
                    user_id=self.user_id,
                )
                for r in pending
            ),
            return_exceptions=True,
        )

        failed: List[SetKey] = []
        for set_result, outcome in zip(pending, outcomes):
            if isinstance(outcome, BaseException) or outcome is False:
                if isinstance(outcome, BaseException):
                    logger.warning(f"Set result {set_result.key} failed: {outcome}")
                failed.append(set_result.key)
            else:
                self._confirmed[set_result.key] = set_result.payload

        if failed:
            raise PartialCompletionFailure(
                f"{len(failed)} of {len(results)} set result(s) could not be saved",
                failed=failed,
            )
        return [r.key for r in results]

    async def _delete_draft(self) -> None:
        try:
            deleted = await self._draft_repo.delete(self.workout_id, self.user_id)
        except Exception as e:
            logger.warning(f"Draft cleanup failed for workout {self.workout_id}: {e}")
            return
        if not deleted:
            logger.warning(f"Draft for workout {self.workout_id} was not deleted")

    def _notify(self, result: CompletionResult) -> None:
        if self._on_complete is None:
            return
        try:
            self._on_complete(result)
        except Exception:
            logger.exception("Completion callback failed")
