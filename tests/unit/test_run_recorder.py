"""
Unit tests for application/services/run_recorder.py

Tests for:
- Idle/tracking state machine and position watch lifecycle
- Distance, duration and pace derived from samples
- Location errors (start failure vs. errors while tracking)
- Periodic sample persistence, failed flush retention and resume
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from application.ports import Position, WatchOptions
from application.services.run_recorder import RecorderState, RunRecorder, apply_run_summary
from domain.errors import LocationError
from domain.exercise_store import ExerciseStateStore
from domain.models.run import RunSample, RunSummary
from tests.fakes import FakeGeolocationProvider, FakeRunSampleRepository, create_mixed_workout

START = datetime(2026, 5, 1, 7, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def geo():
    return FakeGeolocationProvider()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def samples_repo():
    return FakeRunSampleRepository()


@pytest.fixture
def recorder(geo, clock):
    """Recorder without persistence."""
    return RunRecorder(geo, run_id="we-run", user_id="user-1", clock=clock)


# =============================================================================
# State machine
# =============================================================================


@pytest.mark.unit
class TestRecorderLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_stop(self, recorder, geo):
        assert recorder.state == RecorderState.IDLE

        assert recorder.start() is True
        assert recorder.is_tracking
        assert geo.active_watches == 1
        assert geo.last_options == WatchOptions()

        await recorder.stop()

        assert recorder.state == RecorderState.IDLE
        assert geo.active_watches == 0
        assert geo.cleared == [1]

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, recorder, geo):
        recorder.start()
        recorder.start()
        assert geo.active_watches == 1
        await recorder.stop()

    @pytest.mark.asyncio
    async def test_stop_when_idle_returns_summary(self, recorder):
        summary = await recorder.stop()
        assert summary == RunSummary()

    @pytest.mark.asyncio
    async def test_positions_after_stop_are_ignored(self, recorder, geo):
        recorder.start()
        geo.emit(40.0, -74.0)
        await recorder.stop()
        geo.emit(40.1, -74.0)
        recorder._handle_position(Position(latitude=40.2, longitude=-74.0))
        assert len(recorder.samples) == 1

    def test_rejects_non_positive_flush_interval(self, geo):
        with pytest.raises(ValueError):
            RunRecorder(geo, run_id="r", user_id="u", flush_interval_seconds=0)


# =============================================================================
# Measurements
# =============================================================================


@pytest.mark.unit
class TestMeasurements:
    @pytest.mark.asyncio
    async def test_distance_duration_and_pace(self, recorder, geo, clock):
        updates = []
        recorder._on_update = updates.append
        recorder.start()

        geo.emit(40.0, -74.0)
        clock.advance(300)
        geo.emit(40.01, -74.0)
        clock.advance(300)
        geo.emit(40.02, -74.0)

        summary = await recorder.stop()

        assert summary.distance == pytest.approx(1.38, abs=0.01)
        assert summary.duration_minutes == pytest.approx(10.0)
        assert summary.pace_minutes_per_mile == pytest.approx(10.0 / summary.distance)
        assert summary.sample_count == 3
        assert len(updates) == 3

    @pytest.mark.asyncio
    async def test_distance_never_decreases(self, recorder, geo):
        recorder.start()
        seen = []
        for lat, lon in [(40.0, -74.0), (40.001, -74.0), (40.0, -74.0), (40.0, -74.0)]:
            geo.emit(lat, lon)
            seen.append(recorder.distance)
        assert seen == sorted(seen)
        await recorder.stop()

    @pytest.mark.asyncio
    async def test_no_samples_means_zero_pace(self, recorder, clock):
        recorder.start()
        clock.advance(120)
        summary = await recorder.stop()
        assert summary.distance == 0.0
        assert summary.duration_minutes == pytest.approx(2.0)
        assert summary.pace_minutes_per_mile == 0.0

    @pytest.mark.asyncio
    async def test_duration_accumulates_across_segments(self, recorder, clock):
        recorder.start()
        clock.advance(60)
        await recorder.stop()
        clock.advance(600)  # paused time is not counted
        recorder.start()
        clock.advance(60)
        summary = await recorder.stop()
        assert summary.duration_minutes == pytest.approx(2.0)

    @pytest.mark.asyncio
    async def test_position_timestamp_is_kept(self, recorder, geo):
        recorder.start()
        geo.emit(40.0, -74.0, timestamp=START)
        assert recorder.samples[0].timestamp == START
        await recorder.stop()


# =============================================================================
# Location errors
# =============================================================================


@pytest.mark.unit
class TestLocationErrors:
    def test_unsupported_device_stays_idle(self, clock):
        errors = []
        recorder = RunRecorder(
            FakeGeolocationProvider(supported=False),
            run_id="we-run",
            user_id="user-1",
            clock=clock,
            on_error=errors.append,
        )

        assert recorder.start() is False
        assert recorder.state == RecorderState.IDLE
        assert recorder.last_error.reason == LocationError.UNSUPPORTED
        assert len(errors) == 1

    @pytest.mark.asyncio
    async def test_errors_while_tracking_do_not_stop_recording(self, recorder, geo):
        recorder.start()
        geo.emit(40.0, -74.0)
        geo.emit_error(LocationError.TIMEOUT)

        assert recorder.is_tracking
        assert recorder.last_error.reason == LocationError.TIMEOUT
        assert "timed out" in recorder.last_error.message

        geo.emit(40.01, -74.0)
        assert len(recorder.samples) == 2

        recorder.dismiss_error()
        assert recorder.last_error is None
        await recorder.stop()

    @pytest.mark.asyncio
    async def test_out_of_range_position_is_dropped(self, geo, clock):
        errors = []
        recorder = RunRecorder(
            geo, run_id="we-run", user_id="user-1", clock=clock, on_error=errors.append
        )
        recorder.start()
        geo.emit(40.0, -74.0)

        geo.emit(91.0, -74.0)
        geo.emit(40.0, 200.0)

        assert recorder.is_tracking
        assert len(recorder.samples) == 1
        assert recorder.summary().distance == 0.0
        assert [e.reason for e in errors] == [LocationError.POSITION_UNAVAILABLE] * 2
        assert "out-of-range" in recorder.last_error.message

        geo.emit(40.01, -74.0)
        assert len(recorder.samples) == 2
        await recorder.stop()


# =============================================================================
# Persistence
# =============================================================================


@pytest.mark.unit
class TestPersistence:
    @pytest.mark.asyncio
    async def test_samples_flushed_periodically_and_on_stop(self, geo, clock, samples_repo):
        recorder = RunRecorder(
            geo,
            run_id="we-run",
            user_id="user-1",
            sample_repo=samples_repo,
            flush_interval_seconds=0.02,
            clock=clock,
        )
        recorder.start()
        geo.emit(40.0, -74.0)
        await asyncio.sleep(0.05)
        assert len(samples_repo.get_all("we-run")) == 1

        geo.emit(40.01, -74.0)
        await recorder.stop()

        assert len(samples_repo.get_all("we-run")) == 2
        assert recorder.unflushed_count == 0

    @pytest.mark.asyncio
    async def test_failed_flush_keeps_batch(self, geo, clock, samples_repo):
        recorder = RunRecorder(
            geo, run_id="we-run", user_id="user-1", sample_repo=samples_repo, clock=clock
        )
        recorder.start()
        geo.emit(40.0, -74.0)
        geo.emit(40.01, -74.0)
        samples_repo.fail_appends = 1

        assert await recorder.flush() is False
        assert recorder.unflushed_count == 2

        assert await recorder.flush() is True
        assert recorder.unflushed_count == 0
        assert samples_repo.append_calls == [2, 2]
        recorder.close()

    @pytest.mark.asyncio
    async def test_resume_reloads_samples(self, geo, clock, samples_repo):
        samples_repo.seed(
            "we-run",
            [
                RunSample(latitude=40.0, longitude=-74.0, timestamp=START),
                RunSample(latitude=40.01, longitude=-74.0, timestamp=START + timedelta(minutes=6)),
            ],
        )
        recorder = RunRecorder(
            geo, run_id="we-run", user_id="user-1", sample_repo=samples_repo, clock=clock
        )

        assert await recorder.resume() == 2
        assert recorder.distance == pytest.approx(0.69, abs=0.01)
        assert recorder.duration_minutes == pytest.approx(6.0)
        assert recorder.unflushed_count == 0

        recorder.start()
        geo.emit(40.02, -74.0)
        assert recorder.distance == pytest.approx(1.38, abs=0.01)
        await recorder.stop()
        assert len(samples_repo.get_all("we-run")) == 3

    @pytest.mark.asyncio
    async def test_resume_while_tracking_is_rejected(self, recorder):
        recorder.start()
        with pytest.raises(RuntimeError):
            await recorder.resume()
        recorder.close()


# =============================================================================
# apply_run_summary
# =============================================================================


@pytest.mark.unit
class TestApplyRunSummary:
    def test_writes_distance_and_duration(self):
        store, _ = ExerciseStateStore.from_definition(create_mixed_workout())

        apply_run_summary(store, "we-run", RunSummary(distance=3.1, duration_minutes=27.5))

        run = store.get("we-run").run
        assert run.distance == "3.10"
        assert run.duration == "00:27:30"
