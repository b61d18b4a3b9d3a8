"""
WorkoutSession.

The owning instance of one in-progress workout: it opens the session through
InitializeSessionUseCase, keeps the exercise state store, wires every store
mutation into draft autosave, runs GPS recording for run-like exercises and
finalizes through CompleteSessionUseCase.

``close()`` releases everything the session started (autosave timers, the
late-draft merge, position watches and sample flushers). Any operation on a
closed or completed session raises SessionClosedError.

Usage:
    >>> session = WorkoutSession(
    ...     "w-123",
    ...     "user-1",
    ...     workout_repo=workout_repo,
    ...     draft_repo=draft_repo,
    ...     completion_repo=completion_repo,
    ...     settings=get_settings(),
    ... )
    >>> result = await session.open()
    >>> session.set_field("we-1", "weight", "100", set_number=1)
    >>> session.set_completed("we-1", True, set_number=1)
    >>> completion = await session.complete(rating=5)
    >>> session.close()
"""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from application.ports import (
    CompletionRepository,
    DraftRepository,
    ExercisesRepository,
    GeolocationProvider,
    RunSampleRepository,
    TimerStateStore,
    WorkoutRepository,
)
from application.services.draft_autosave import DraftAutosaveService, SaveStatus
from application.services.run_recorder import RunRecorder, apply_run_summary
from application.services.stopwatch import Stopwatch
from application.use_cases.complete_session import CompleteSessionUseCase, CompletionResult
from application.use_cases.initialize_session import (
    InitializeSessionResult,
    InitializeSessionUseCase,
    draft_kind_for,
    merge_late_draft,
)
from backend.settings import Settings, get_settings
from domain.errors import LocationError, SessionClosedError
from domain.exercise_store import ExerciseStateStore
from domain.models.exercise_state import ExerciseState, RunState
from domain.models.run import RunSummary
from domain.models.workout_definition import CatalogExercise, ResolvedWorkout

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    NEW = "new"
    ACTIVE = "active"
    COMPLETED = "completed"
    CLOSED = "closed"


class WorkoutSession:
    """One member's in-progress attempt at a workout."""

    def __init__(
        self,
        session_id: str,
        user_id: str,
        *,
        workout_repo: WorkoutRepository,
        draft_repo: DraftRepository,
        completion_repo: CompletionRepository,
        exercises_repo: Optional[ExercisesRepository] = None,
        geolocation: Optional[GeolocationProvider] = None,
        run_sample_repo: Optional[RunSampleRepository] = None,
        timer_storage: Optional[TimerStateStore] = None,
        settings: Optional[Settings] = None,
        on_save_status: Optional[Callable[[SaveStatus], None]] = None,
        on_location_error: Optional[Callable[[LocationError], None]] = None,
        on_complete: Optional[Callable[[CompletionResult], None]] = None,
    ) -> None:
        self.session_id = session_id
        self.user_id = user_id
        self._workout_repo = workout_repo
        self._draft_repo = draft_repo
        self._completion_repo = completion_repo
        self._exercises_repo = exercises_repo
        self._geolocation = geolocation
        self._run_sample_repo = run_sample_repo
        self._timer_storage = timer_storage
        self._settings = settings or get_settings()
        self._on_save_status = on_save_status
        self._on_location_error = on_location_error
        self._on_complete = on_complete

        self.phase = SessionPhase.NEW
        self.store: Optional[ExerciseStateStore] = None
        self.resolved: Optional[ResolvedWorkout] = None
        self.stopwatch: Optional[Stopwatch] = None
        self.started_at: Optional[datetime] = None

        self._autosave: Optional[DraftAutosaveService] = None
        self._completion: Optional[CompleteSessionUseCase] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._late_draft_task: Optional[asyncio.Task] = None
        self._recorders: Dict[str, RunRecorder] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> InitializeSessionResult:
        """
        Initialize the session. A failed open leaves the session NEW so it can
        be opened again.
        """
        if self.phase in (SessionPhase.CLOSED, SessionPhase.COMPLETED):
            raise SessionClosedError(f"Session {self.session_id} is {self.phase.value}")
        if self.phase == SessionPhase.ACTIVE:
            raise RuntimeError(f"Session {self.session_id} is already open")

        use_case = InitializeSessionUseCase(
            workout_repo=self._workout_repo,
            draft_repo=self._draft_repo,
            safety_timeout_seconds=self._settings.init_safety_timeout_seconds,
        )
        result = await use_case.execute(self.session_id, self.user_id)
        if not result.success:
            return result

        if self.phase == SessionPhase.CLOSED:
            # Closed while initializing
            if result.pending_draft is not None:
                result.pending_draft.cancel()
            return result

        self.store = result.store
        self.resolved = result.resolved
        self.started_at = datetime.now(timezone.utc)
        workout_id = result.resolved.workout_id

        self._autosave = DraftAutosaveService(
            self._draft_repo,
            workout_id=workout_id,
            user_id=self.user_id,
            kind=draft_kind_for(result.resolved),
            debounce_seconds=self._settings.draft_debounce_seconds,
            min_changes=self._settings.draft_min_changes,
            max_retries=self._settings.draft_max_retries,
            retry_delay_seconds=self._settings.draft_retry_delay_seconds,
            draft_exists=result.draft_restored,
            on_status_change=self._on_save_status,
        )
        self._completion = CompleteSessionUseCase(
            self._completion_repo,
            self._draft_repo,
            workout_id=workout_id,
            user_id=self.user_id,
            started_at=self.started_at,
            standalone=result.resolved.standalone,
            on_complete=self._on_complete,
        )
        self._unsubscribe = self.store.subscribe(self._on_store_changed)

        if result.pending_draft is not None:
            self._late_draft_task = asyncio.create_task(
                merge_late_draft(self.store, result.pending_draft)
            )

        if self._timer_storage is not None:
            self.stopwatch = Stopwatch(self._timer_storage, self.session_id)

        self.phase = SessionPhase.ACTIVE
        logger.info(
            f"Opened session {self.session_id} for workout {workout_id} "
            f"({len(self.store)} exercises, draft restored: {result.draft_restored})"
        )
        return result

    def close(self) -> None:
        """Release timers, watches and background tasks. Safe to call twice."""
        if self.phase == SessionPhase.CLOSED:
            return
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._autosave is not None:
            self._autosave.cancel()
        self._cancel_late_draft()
        for recorder in self._recorders.values():
            recorder.close()
        self.phase = SessionPhase.CLOSED
        logger.info(f"Closed session {self.session_id}")

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def save_status(self) -> SaveStatus:
        return self._autosave.status if self._autosave is not None else SaveStatus.IDLE

    @property
    def autosave(self) -> Optional[DraftAutosaveService]:
        return self._autosave

    @property
    def late_draft_task(self) -> Optional[asyncio.Task]:
        return self._late_draft_task

    def get_state(self, exercise_id: str) -> ExerciseState:
        return self._active_store().get(exercise_id)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_field(self, exercise_id: str, field_name: str, value: str, *, set_number: Optional[int] = None) -> None:
        self._active_store().set_field(exercise_id, field_name, value, set_number=set_number)

    def set_completed(self, exercise_id: str, completed: bool, *, set_number: Optional[int] = None) -> None:
        self._active_store().set_completed(exercise_id, completed, set_number=set_number)

    def toggle_expanded(self, exercise_id: str) -> bool:
        return self._active_store().toggle_expanded(exercise_id)

    def swap_exercise(self, exercise_id: str, replacement: CatalogExercise) -> None:
        self._active_store().swap_exercise(exercise_id, replacement)

    def add_set(self, exercise_id: str) -> int:
        return self._active_store().add_set(exercise_id)

    def remove_set(self, exercise_id: str) -> None:
        self._active_store().remove_set(exercise_id)

    async def find_swap_candidates(self, exercise_id: str) -> List[CatalogExercise]:
        """Catalog exercises sharing the current exercise's muscle group."""
        current = self._active_store().get(exercise_id).current_exercise
        if self._exercises_repo is None or not current.muscle_group:
            return []
        return await self._exercises_repo.find_by_muscle_group(
            current.muscle_group, exclude_id=current.id
        )

    # ------------------------------------------------------------------
    # Draft control
    # ------------------------------------------------------------------

    async def save_now(self) -> bool:
        self._active_store()
        return await self._autosave.flush()

    async def retry_save(self) -> bool:
        self._active_store()
        return await self._autosave.retry_now()

    async def discard_draft(self) -> bool:
        self._active_store()
        return await self._autosave.discard()

    # ------------------------------------------------------------------
    # Run tracking
    # ------------------------------------------------------------------

    async def start_run(self, exercise_id: str) -> bool:
        """
        Start GPS recording for a run-like exercise.

        Returns:
            False when no position source is available; the error is on
            ``recorder.last_error``
        """
        store = self._active_store()
        if not isinstance(store.get(exercise_id), RunState):
            raise ValueError(f"Exercise {exercise_id} is not run-like")
        if self._geolocation is None:
            error = LocationError(LocationError.UNSUPPORTED)
            logger.warning(f"Cannot record run {exercise_id}: {error.message}")
            if self._on_location_error is not None:
                self._on_location_error(error)
            return False

        recorder = self._recorders.get(exercise_id)
        if recorder is None:
            recorder = RunRecorder(
                self._geolocation,
                run_id=exercise_id,
                user_id=self.user_id,
                sample_repo=self._run_sample_repo,
                flush_interval_seconds=self._settings.run_sample_flush_seconds,
                on_error=self._on_location_error,
            )
            await recorder.resume()
            self._recorders[exercise_id] = recorder
        return recorder.start()

    async def stop_run(self, exercise_id: str) -> RunSummary:
        """Stop recording and write distance and duration into the exercise."""
        store = self._active_store()
        recorder = self._recorders.get(exercise_id)
        if recorder is None:
            raise ValueError(f"No run recording for exercise {exercise_id}")
        summary = await recorder.stop()
        apply_run_summary(store, exercise_id, summary)
        return summary

    def get_recorder(self, exercise_id: str) -> Optional[RunRecorder]:
        return self._recorders.get(exercise_id)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    async def complete(self, *, rating: Optional[int] = None, notes: Optional[str] = None) -> CompletionResult:
        """
        Finalize the session. Runs still recording are stopped first.

        On failure the session stays active and complete() may be called again.
        """
        if self.phase == SessionPhase.COMPLETED:
            return await self._completion.execute(self.store, rating=rating, notes=notes)
        store = self._active_store()

        for exercise_id, recorder in self._recorders.items():
            if recorder.is_tracking:
                await self.stop_run(exercise_id)

        await self._autosave.suspend()
        result = await self._completion.execute(store, rating=rating, notes=notes)

        if result.success:
            if self.phase == SessionPhase.ACTIVE:
                self._autosave.cancel()
                self._cancel_late_draft()
                if self.stopwatch is not None:
                    self.stopwatch.reset()
                self.phase = SessionPhase.COMPLETED
        elif self.phase == SessionPhase.ACTIVE:
            self._autosave.resume()
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _active_store(self) -> ExerciseStateStore:
        if self.phase in (SessionPhase.CLOSED, SessionPhase.COMPLETED):
            raise SessionClosedError(f"Session {self.session_id} is {self.phase.value}")
        if self.phase == SessionPhase.NEW:
            raise RuntimeError(f"Session {self.session_id} has not been opened")
        return self.store

    def _cancel_late_draft(self) -> None:
        if self._late_draft_task is not None and not self._late_draft_task.done():
            self._late_draft_task.cancel()
        self._late_draft_task = None

    def _on_store_changed(self, store: ExerciseStateStore) -> None:
        if self._autosave is not None:
            self._autosave.schedule(store.snapshot())
