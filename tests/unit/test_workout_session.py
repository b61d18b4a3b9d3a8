"""
Unit tests for WorkoutSession.

Tests for:
- Open / close lifecycle and phase guards
- Store mutations flowing into draft autosave
- Late draft merge after the safety timeout
- Run tracking through the session
- Completion (success, failure with autosave resumed, no re-save after completion)
"""

import asyncio

import pytest

from application.services.draft_autosave import SaveStatus
from application.services.workout_session import SessionPhase, WorkoutSession
from domain.errors import LocationError, SessionClosedError
from tests.fakes import create_mixed_workout, create_strength_workout, make_catalog_exercise

USER_ID = "user-1"
SETTLE = 0.1


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def make_session(
    fast_settings,
    workout_repo,
    draft_repo,
    completion_repo,
    exercises_repo,
    run_sample_repo,
    geolocation,
    timer_storage,
):
    """Factory for sessions wired to the shared fakes; w-1 and w-mixed are seeded."""
    workout_repo.seed([create_strength_workout(workout_id="w-1", num_exercises=2), create_mixed_workout()])
    sessions = []

    def factory(session_id="w-1", **overrides):
        options = dict(
            workout_repo=workout_repo,
            draft_repo=draft_repo,
            completion_repo=completion_repo,
            exercises_repo=exercises_repo,
            geolocation=geolocation,
            run_sample_repo=run_sample_repo,
            timer_storage=timer_storage,
            settings=fast_settings,
        )
        options.update(overrides)
        session = WorkoutSession(session_id, USER_ID, **options)
        sessions.append(session)
        return session

    yield factory
    for session in sessions:
        session.close()


# =============================================================================
# Lifecycle
# =============================================================================


@pytest.mark.unit
class TestLifecycle:
    @pytest.mark.asyncio
    async def test_open(self, make_session):
        session = make_session()

        result = await session.open()

        assert result.success is True
        assert session.phase == SessionPhase.ACTIVE
        assert session.store.exercise_ids == ["we-1", "we-2"]
        assert session.stopwatch is not None
        assert session.save_status == SaveStatus.IDLE

    @pytest.mark.asyncio
    async def test_failed_open_leaves_session_new(self, make_session):
        session = make_session("missing")

        result = await session.open()

        assert result.error_code == "not_found"
        assert session.phase == SessionPhase.NEW
        with pytest.raises(RuntimeError):
            session.set_field("we-1", "weight", "1", set_number=1)

    @pytest.mark.asyncio
    async def test_open_twice_is_rejected(self, make_session):
        session = make_session()
        await session.open()
        with pytest.raises(RuntimeError):
            await session.open()

    @pytest.mark.asyncio
    async def test_closed_session_rejects_operations(self, make_session):
        session = make_session()
        await session.open()

        session.close()
        session.close()

        assert session.phase == SessionPhase.CLOSED
        with pytest.raises(SessionClosedError):
            session.set_field("we-1", "weight", "1", set_number=1)
        with pytest.raises(SessionClosedError):
            await session.complete()
        with pytest.raises(SessionClosedError):
            await session.open()


# =============================================================================
# Autosave wiring
# =============================================================================


@pytest.mark.unit
class TestAutosaveWiring:
    @pytest.mark.asyncio
    async def test_edits_are_saved_as_draft(self, make_session, draft_repo):
        statuses = []
        session = make_session(on_save_status=statuses.append)
        await session.open()

        session.set_field("we-1", "weight", "135", set_number=1)
        session.set_field("we-1", "reps", "8", set_number=1)
        await asyncio.sleep(SETTLE)

        stored = draft_repo.stored("w-1", USER_ID)
        assert stored.kind == "workout"
        assert stored.data["exercise_states"]["we-1"]["sets"][0]["weight"] == "135"
        assert len(draft_repo.put_calls) == 1
        assert statuses[-1] == SaveStatus.SAVED

    @pytest.mark.asyncio
    async def test_close_cancels_pending_save(self, make_session, draft_repo):
        session = make_session()
        await session.open()

        session.set_field("we-1", "weight", "135", set_number=1)
        session.close()
        await asyncio.sleep(SETTLE)

        assert draft_repo.put_calls == []

    @pytest.mark.asyncio
    async def test_restored_session_keeps_draft_values(self, make_session, draft_repo):
        first = make_session()
        await first.open()
        first.set_field("we-2", "weight", "225", set_number=3)
        assert await first.save_now() is True
        first.close()

        second = make_session()
        result = await second.open()

        assert result.draft_restored is True
        assert second.get_state("we-2").sets[2].weight == "225"

    @pytest.mark.asyncio
    async def test_discard_draft(self, make_session, draft_repo):
        session = make_session()
        await session.open()
        session.set_completed("we-1", True, set_number=1)
        await session.save_now()

        assert await session.discard_draft() is True
        assert draft_repo.stored("w-1", USER_ID) is None

    @pytest.mark.asyncio
    async def test_late_draft_is_merged(self, make_session, draft_repo, fast_settings):
        draft_repo.seed(
            workout_id="w-1",
            user_id=USER_ID,
            data={"version": 1, "exercise_states": {"we-1": {"expanded": False}}},
        )
        draft_repo.get_delay_seconds = fast_settings.init_safety_timeout_seconds * 1.5
        session = make_session()

        result = await session.open()
        assert result.timed_out is True
        assert session.get_state("we-1").expanded is True

        await session.late_draft_task

        assert session.get_state("we-1").expanded is False

    @pytest.mark.asyncio
    async def test_swap_candidates(self, make_session, exercises_repo):
        exercises_repo.seed(
            [
                make_catalog_exercise("ex-1", "Bench Press"),
                make_catalog_exercise("ex-7", "Push Up"),
                make_catalog_exercise("ex-8", "Goblet Squat", muscle_group="legs"),
            ]
        )
        session = make_session()
        await session.open()

        candidates = await session.find_swap_candidates("we-1")

        assert [c.id for c in candidates] == ["ex-7"]
        session.swap_exercise("we-1", candidates[0])
        assert session.get_state("we-1").current_exercise.name == "Push Up"


# =============================================================================
# Run tracking
# =============================================================================


@pytest.mark.unit
class TestRunTracking:
    @pytest.mark.asyncio
    async def test_start_and_stop_run_fills_fields(self, make_session, geolocation, run_sample_repo):
        session = make_session("w-mixed")
        await session.open()

        assert await session.start_run("we-run") is True
        geolocation.emit(40.0, -74.0)
        geolocation.emit(40.01, -74.0)
        summary = await session.stop_run("we-run")

        assert summary.distance == pytest.approx(0.69, abs=0.01)
        run = session.get_state("we-run").run
        assert run.distance == f"{summary.distance:.2f}"
        assert len(run_sample_repo.get_all("we-run")) == 2

    @pytest.mark.asyncio
    async def test_start_run_rejects_other_categories(self, make_session):
        session = make_session("w-mixed")
        await session.open()
        with pytest.raises(ValueError):
            await session.start_run("we-strength")

    @pytest.mark.asyncio
    async def test_no_position_source(self, make_session):
        errors = []
        session = make_session("w-mixed", geolocation=None, on_location_error=errors.append)
        await session.open()

        assert await session.start_run("we-run") is False
        assert errors[0].reason == LocationError.UNSUPPORTED

    @pytest.mark.asyncio
    async def test_complete_stops_active_runs(self, make_session, geolocation):
        session = make_session("w-mixed")
        await session.open()
        await session.start_run("we-run")
        geolocation.emit(40.0, -74.0)
        geolocation.emit(40.01, -74.0)

        result = await session.complete()

        assert result.success is True
        assert geolocation.active_watches == 0
        assert session.get_recorder("we-run").is_tracking is False


# =============================================================================
# Completion
# =============================================================================


@pytest.mark.unit
class TestCompletion:
    @pytest.mark.asyncio
    async def test_complete(self, make_session, completion_repo, draft_repo, timer_storage):
        session = make_session()
        await session.open()
        session.stopwatch.start()
        session.set_field("we-1", "weight", "135", set_number=1)
        session.set_completed("we-1", True, set_number=1)

        result = await session.complete(rating=5)

        assert result.success is True
        assert session.phase == SessionPhase.COMPLETED
        assert len(completion_repo.get_all()) == 1
        assert draft_repo.stored("w-1", USER_ID) is None
        assert timer_storage.load("w-1") is None

        await asyncio.sleep(SETTLE)
        assert draft_repo.stored("w-1", USER_ID) is None

    @pytest.mark.asyncio
    async def test_standalone_session_completes_as_standalone(
        self, make_session, workout_repo, completion_repo, draft_repo
    ):
        workout_repo.seed([create_strength_workout(workout_id="s-1", num_exercises=1)], standalone=True)
        session = make_session("s-1")
        await session.open()
        session.set_completed("we-1", True, set_number=1)
        assert await session.save_now() is True
        assert draft_repo.stored("s-1", USER_ID).kind == "standalone"

        result = await session.complete()

        assert result.success is True
        record = completion_repo.get_all()[0]
        assert (record.workout_id, record.standalone) == ("s-1", True)

    @pytest.mark.asyncio
    async def test_complete_cancels_pending_late_draft(self, make_session, draft_repo, fast_settings):
        draft_repo.seed(
            workout_id="w-1",
            user_id=USER_ID,
            data={"version": 1, "exercise_states": {"we-1": {"expanded": False}}},
        )
        draft_repo.get_delay_seconds = fast_settings.init_safety_timeout_seconds * 3
        session = make_session()
        result = await session.open()
        assert result.timed_out is True
        late_draft = session.late_draft_task

        completed = await session.complete()

        assert completed.success is True
        assert session.late_draft_task is None
        await asyncio.gather(late_draft, return_exceptions=True)
        assert late_draft.cancelled()
        assert session.store.get("we-1").expanded is True

    @pytest.mark.asyncio
    async def test_complete_again_returns_same_result(self, make_session, completion_repo):
        session = make_session()
        await session.open()
        session.set_completed("we-1", True, set_number=1)

        first = await session.complete()
        second = await session.complete()

        assert second.completion_id == first.completion_id
        assert completion_repo.finalize_calls == 1
        with pytest.raises(SessionClosedError):
            session.set_field("we-1", "weight", "1", set_number=1)

    @pytest.mark.asyncio
    async def test_concurrent_complete_calls(self, make_session, completion_repo):
        completion_repo.delay_seconds = 0.01
        session = make_session()
        await session.open()
        session.set_completed("we-1", True, set_number=1)

        results = await asyncio.gather(*(session.complete() for _ in range(3)))

        assert len({r.completion_id for r in results}) == 1
        assert len(completion_repo.get_all()) == 1

    @pytest.mark.asyncio
    async def test_failed_complete_keeps_session_editable(self, make_session, completion_repo, draft_repo):
        completion_repo.failing_sets.add(("we-1", 1))
        session = make_session()
        await session.open()
        session.set_completed("we-1", True, set_number=1)

        result = await session.complete()

        assert result.success is False
        assert result.error_code == "partial_completion"
        assert session.phase == SessionPhase.ACTIVE

        session.set_field("we-1", "weight", "100", set_number=1)
        await asyncio.sleep(SETTLE)
        assert draft_repo.stored("w-1", USER_ID).data["exercise_states"]["we-1"]["sets"][0]["weight"] == "100"

        completion_repo.failing_sets.clear()
        retried = await session.complete()
        assert retried.success is True
        assert retried.completion_id == result.completion_id
