"""
InitializeSession Use Case.

Resolves the authoritative workout definition for a session, reconciles it
with any saved draft and produces the initial ExerciseStateStore.

The definition and the draft are fetched concurrently. A safety timeout
bounds the whole initialization: if the draft has not arrived by then the
session starts from defaults and the still-running draft fetch is handed back
to the caller as ``pending_draft`` so it can be merged if it lands before the
member edits anything (see ``merge_late_draft``).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from application.ports import DraftRepository, WorkoutRepository
from domain.errors import InitializationTimeoutError, MalformedDraftError, WorkoutNotFoundError
from domain.exercise_store import ExerciseStateStore, MergeReport
from domain.models.draft import Draft
from domain.models.workout_definition import DefinitionSource, ResolvedWorkout

logger = logging.getLogger(__name__)

DEFAULT_SAFETY_TIMEOUT_SECONDS = 5.0


# =============================================================================
# Lookup strategies
# =============================================================================


class DefinitionLookup:
    """One entry route to a workout definition. Returns None when it does not apply."""

    source: DefinitionSource

    def __init__(self, workout_repo: WorkoutRepository) -> None:
        self._workout_repo = workout_repo

    async def lookup(self, session_id: str, user_id: str) -> Optional[ResolvedWorkout]:
        raise NotImplementedError


class CompletionByIdLookup(DefinitionLookup):
    """The session id is an existing completion record."""

    source = DefinitionSource.COMPLETION

    async def lookup(self, session_id: str, user_id: str) -> Optional[ResolvedWorkout]:
        return await self._workout_repo.get_completion_with_workout(session_id, user_id)


class CompletionByWorkoutLookup(DefinitionLookup):
    """The session id is a workout this member already has a completion for."""

    source = DefinitionSource.COMPLETION_BY_WORKOUT

    async def lookup(self, session_id: str, user_id: str) -> Optional[ResolvedWorkout]:
        return await self._workout_repo.get_completion_for_workout(session_id, user_id)


class WorkoutLookup(DefinitionLookup):
    """The session id is a program workout that has not been started."""

    source = DefinitionSource.WORKOUT

    async def lookup(self, session_id: str, user_id: str) -> Optional[ResolvedWorkout]:
        definition = await self._workout_repo.get_workout(session_id)
        if definition is None:
            return None
        return ResolvedWorkout(definition=definition, source=self.source)


class StandaloneWorkoutLookup(DefinitionLookup):
    """The session id is a coach-independent standalone workout."""

    source = DefinitionSource.STANDALONE

    async def lookup(self, session_id: str, user_id: str) -> Optional[ResolvedWorkout]:
        definition = await self._workout_repo.get_standalone_workout(session_id)
        if definition is None:
            return None
        return ResolvedWorkout(definition=definition, source=self.source, standalone=True)


def default_lookup_chain(workout_repo: WorkoutRepository) -> List[DefinitionLookup]:
    """Lookup strategies in the order they are tried."""
    return [
        CompletionByIdLookup(workout_repo),
        CompletionByWorkoutLookup(workout_repo),
        WorkoutLookup(workout_repo),
        StandaloneWorkoutLookup(workout_repo),
    ]


async def resolve_definition(
    strategies: Sequence[DefinitionLookup],
    session_id: str,
    user_id: str,
) -> ResolvedWorkout:
    """
    Try each strategy in order; the first non-None result wins.

    A strategy that raises is treated as not matching so a failing route never
    hides a later one.

    Raises:
        WorkoutNotFoundError: When no strategy resolves the session
    """
    for strategy in strategies:
        try:
            resolved = await strategy.lookup(session_id, user_id)
        except Exception as e:
            logger.warning(f"{strategy.source.value} lookup failed for {session_id}: {e}")
            continue
        if resolved is not None:
            logger.info(
                f"Resolved session {session_id} via {strategy.source.value} "
                f"(workout {resolved.workout_id})"
            )
            return resolved
    raise WorkoutNotFoundError(session_id)


def draft_kind_for(resolved: ResolvedWorkout) -> str:
    return "standalone" if resolved.standalone else "workout"


# =============================================================================
# Use case
# =============================================================================


@dataclass
class InitializeSessionResult:
    """Result of the InitializeSession use case execution."""

    success: bool
    store: Optional[ExerciseStateStore] = None
    resolved: Optional[ResolvedWorkout] = None
    merge_report: Optional[MergeReport] = None
    draft_restored: bool = False
    timed_out: bool = False
    pending_draft: Optional["asyncio.Task[Optional[Draft]]"] = None
    draft_error_code: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class InitializeSessionUseCase:
    """
    Use case for opening a workout session.

    Orchestrates the following workflow:
    1. Start fetching the draft keyed by the session id
    2. Resolve the definition through the ordered lookup chain
    3. Re-fetch the draft if the definition resolved to a different workout id
    4. Build default states and overlay the draft
    5. Give up waiting on the draft once the safety timeout elapses

    Usage:
        >>> use_case = InitializeSessionUseCase(
        ...     workout_repo=workout_repo,
        ...     draft_repo=draft_repo,
        ...     safety_timeout_seconds=5.0,
        ... )
        >>> result = await use_case.execute(session_id="w-123", user_id="user-1")
        >>> if result.success:
        ...     store = result.store
    """

    def __init__(
        self,
        workout_repo: WorkoutRepository,
        draft_repo: DraftRepository,
        *,
        safety_timeout_seconds: float = DEFAULT_SAFETY_TIMEOUT_SECONDS,
        strategies: Optional[Sequence[DefinitionLookup]] = None,
    ) -> None:
        """
        Args:
            workout_repo: Repository for workout definition lookups
            draft_repo: Draft store
            safety_timeout_seconds: Upper bound on initialization
            strategies: Override the default lookup chain
        """
        if safety_timeout_seconds <= 0:
            raise ValueError(f"safety_timeout_seconds must be positive, got {safety_timeout_seconds}")
        self._draft_repo = draft_repo
        self._safety_timeout = safety_timeout_seconds
        self._strategies = list(strategies) if strategies is not None else default_lookup_chain(workout_repo)

    async def execute(self, session_id: str, user_id: str) -> InitializeSessionResult:
        """
        Execute the initialization workflow.

        Args:
            session_id: Completion, workout or standalone workout ID
            user_id: Member opening the session

        Returns:
            InitializeSessionResult with a fully populated store on success
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._safety_timeout

        draft_task = asyncio.create_task(self._fetch_draft(session_id, user_id))
        definition_task = asyncio.create_task(
            resolve_definition(self._strategies, session_id, user_id)
        )

        try:
            resolved = await asyncio.wait_for(definition_task, timeout=self._safety_timeout)
        except asyncio.TimeoutError:
            draft_task.cancel()
            error = InitializationTimeoutError(
                f"Workout definition for {session_id} did not load within {self._safety_timeout}s"
            )
            logger.error(error.message)
            return InitializeSessionResult(success=False, error=error.message, error_code=error.code)
        except WorkoutNotFoundError as e:
            draft_task.cancel()
            logger.error(e.message)
            return InitializeSessionResult(success=False, error=e.message, error_code=e.code)

        if resolved.workout_id != session_id:
            draft_task.cancel()
            draft_task = asyncio.create_task(self._fetch_draft(resolved.workout_id, user_id))

        remaining = max(deadline - loop.time(), 0.0)
        done, _ = await asyncio.wait({draft_task}, timeout=remaining)

        if draft_task not in done:
            logger.warning(
                f"Draft for workout {resolved.workout_id} not loaded within "
                f"{self._safety_timeout}s; starting from defaults"
            )
            store, report = ExerciseStateStore.from_definition(resolved.definition)
            return InitializeSessionResult(
                success=True,
                store=store,
                resolved=resolved,
                merge_report=report,
                timed_out=True,
                pending_draft=draft_task,
            )

        draft_error_code = None
        try:
            draft = draft_task.result()
        except MalformedDraftError as e:
            logger.error(f"Ignoring malformed draft for workout {resolved.workout_id}: {e.message}")
            draft, draft_error_code = None, e.code

        draft_states = draft.exercise_states if draft is not None else None
        store, report = ExerciseStateStore.from_definition(resolved.definition, draft_states)
        if report.draft_applied:
            logger.info(
                f"Restored draft for workout {resolved.workout_id}: "
                f"{len(report.restored)} exercise(s) restored, {len(report.defaulted)} defaulted"
            )

        return InitializeSessionResult(
            success=True,
            store=store,
            resolved=resolved,
            merge_report=report,
            draft_restored=report.draft_applied,
            draft_error_code=draft_error_code,
        )

    async def _fetch_draft(self, workout_id: str, user_id: str) -> Optional[Draft]:
        try:
            draft = await self._draft_repo.get(workout_id, user_id)
        except MalformedDraftError:
            raise
        except Exception as e:
            logger.warning(f"Draft fetch failed for workout {workout_id}: {e}")
            return None
        if draft is None or draft.is_empty:
            return None
        return draft


async def merge_late_draft(
    store: ExerciseStateStore,
    pending_draft: "asyncio.Task[Optional[Draft]]",
) -> Optional[MergeReport]:
    """
    Overlay a draft that arrived after the safety timeout.

    The draft is applied only when the store has not been edited since it was
    built; otherwise it is discarded so in-session edits are never overwritten.

    Returns:
        MergeReport when the draft was applied, None otherwise
    """
    try:
        draft = await pending_draft
    except MalformedDraftError as e:
        logger.error(f"Late draft is malformed and was dropped: {e.message}")
        return None

    if draft is None:
        return None
    if store.revision > 0:
        logger.warning(
            f"Late draft for workout {draft.workout_id} discarded: session already has edits"
        )
        return None

    report = store.overlay_draft(draft.exercise_states)
    if report.draft_applied:
        logger.info(f"Late draft for workout {draft.workout_id} merged into session")
    return report
