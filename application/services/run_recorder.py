"""
GPS Run Recorder.

Samples device position while a run-like exercise is being tracked and
derives distance, duration and pace from the ordered sample sequence.

The recorder is a two-state machine (idle <-> tracking). Position-stream
errors are recorded and reported but never stop a recording that is already
running; an error while starting (no position source) leaves the recorder idle.

When a run-sample store is given, samples are buffered and persisted every
``flush_interval_seconds`` and once more on stop. A failed flush keeps the
batch in the buffer for the next attempt.

Usage:
    >>> recorder = RunRecorder(geolocation, run_id="we-3", user_id="user-1", sample_repo=samples)
    >>> await recorder.resume()          # reload samples persisted earlier
    >>> recorder.start()
    >>> ...
    >>> summary = await recorder.stop()
    >>> apply_run_summary(store, "we-3", summary)
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, List, Optional

from pydantic import ValidationError

from application.ports import GeolocationProvider, Position, RunSampleRepository, WatchOptions
from domain.errors import LocationError
from domain.exercise_store import ExerciseStateStore
from domain.formatters import format_minutes_as_duration
from domain.geo import haversine_miles, pace_minutes_per_mile, total_distance_miles
from domain.models.run import RunSample, RunSummary

logger = logging.getLogger(__name__)


class RecorderState(str, Enum):
    IDLE = "idle"
    TRACKING = "tracking"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RunRecorder:
    """Records one run-like exercise instance."""

    def __init__(
        self,
        geolocation: GeolocationProvider,
        *,
        run_id: str,
        user_id: str,
        sample_repo: Optional[RunSampleRepository] = None,
        flush_interval_seconds: float = 5.0,
        watch_options: Optional[WatchOptions] = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = _utcnow,
        on_update: Optional[Callable[[RunSummary], None]] = None,
        on_error: Optional[Callable[[LocationError], None]] = None,
    ) -> None:
        if flush_interval_seconds <= 0:
            raise ValueError(f"flush_interval_seconds must be positive, got {flush_interval_seconds}")

        self._geolocation = geolocation
        self.run_id = run_id
        self.user_id = user_id
        self._sample_repo = sample_repo
        self._flush_interval = flush_interval_seconds
        self._watch_options = watch_options or WatchOptions()
        self._clock = clock
        self._now = now
        self._on_update = on_update
        self._on_error = on_error

        self._state = RecorderState.IDLE
        self._samples: List[RunSample] = []
        self._unflushed: List[RunSample] = []
        self._raw_distance = 0.0
        self._accumulated_seconds = 0.0
        self._started_at: Optional[float] = None
        self._watch_handle: Any = None
        self._flusher: Optional[asyncio.Task] = None
        self._stop_flushing: Optional[asyncio.Event] = None
        self._flush_lock = asyncio.Lock()

        self.last_error: Optional[LocationError] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def is_tracking(self) -> bool:
        return self._state == RecorderState.TRACKING

    @property
    def samples(self) -> List[RunSample]:
        return list(self._samples)

    @property
    def unflushed_count(self) -> int:
        return len(self._unflushed)

    @property
    def distance(self) -> float:
        """Cumulative distance in miles, rounded to 2 decimals."""
        return round(self._raw_distance, 2)

    @property
    def duration_minutes(self) -> float:
        seconds = self._accumulated_seconds
        if self._started_at is not None:
            seconds += self._clock() - self._started_at
        return seconds / 60

    def summary(self) -> RunSummary:
        duration = self.duration_minutes
        distance = self.distance
        return RunSummary(
            distance=distance,
            duration_minutes=duration,
            pace_minutes_per_mile=pace_minutes_per_mile(duration, distance),
            sample_count=len(self._samples),
        )

    def dismiss_error(self) -> None:
        self.last_error = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def resume(self) -> int:
        """
        Load samples persisted by an earlier recording of this run.

        The tracked duration resumes from the time span those samples cover.

        Returns:
            Number of samples loaded
        """
        if self.is_tracking:
            raise RuntimeError("Cannot resume while tracking")
        if self._sample_repo is None:
            return 0

        persisted = await self._sample_repo.list_for_run(self.run_id)
        self._samples = list(persisted)
        self._unflushed = []
        self._raw_distance = total_distance_miles(self._samples)
        if len(self._samples) >= 2:
            span = self._samples[-1].timestamp - self._samples[0].timestamp
            self._accumulated_seconds = max(span.total_seconds(), 0.0)
        logger.info(f"Resumed run {self.run_id} with {len(self._samples)} sample(s)")
        return len(self._samples)

    def start(self) -> bool:
        """
        Begin tracking. Starting an already tracking recorder is a no-op.

        Returns:
            True when tracking, False when the position source is unavailable
        """
        if self.is_tracking:
            return True

        try:
            self._watch_handle = self._geolocation.watch(
                self._handle_position, self._handle_error, self._watch_options
            )
        except LocationError as e:
            self._record_error(e)
            return False

        self._state = RecorderState.TRACKING
        self._started_at = self._clock()
        self.last_error = None
        if self._sample_repo is not None:
            self._stop_flushing = asyncio.Event()
            self._flusher = asyncio.create_task(self._flush_periodically(self._stop_flushing))
        logger.info(f"Started tracking run {self.run_id}")
        return True

    async def stop(self) -> RunSummary:
        """Stop tracking, persist remaining samples and return the final summary."""
        if not self.is_tracking:
            return self.summary()

        self._clear_watch()
        self._accumulated_seconds += self._clock() - self._started_at
        self._started_at = None
        self._state = RecorderState.IDLE

        if self._flusher is not None:
            self._stop_flushing.set()
            await self._flusher
            self._flusher = None
        await self.flush()

        summary = self.summary()
        logger.info(
            f"Stopped run {self.run_id}: {summary.distance} mi in "
            f"{summary.duration_minutes:.1f} min over {summary.sample_count} sample(s)"
        )
        return summary

    def close(self) -> None:
        """Cancel the position watch and the sample flusher without flushing."""
        self._clear_watch()
        if self._started_at is not None:
            self._accumulated_seconds += self._clock() - self._started_at
            self._started_at = None
        self._state = RecorderState.IDLE
        if self._flusher is not None and not self._flusher.done():
            self._flusher.cancel()
        self._flusher = None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def flush(self) -> bool:
        """Persist buffered samples; returns False when the store rejected them."""
        if self._sample_repo is None:
            return True
        async with self._flush_lock:
            if not self._unflushed:
                return True
            batch = list(self._unflushed)
            try:
                await self._sample_repo.append(self.run_id, self.user_id, batch)
            except Exception as e:
                logger.warning(f"Failed to persist {len(batch)} sample(s) for run {self.run_id}: {e}")
                return False
            del self._unflushed[: len(batch)]
            return True

    async def _flush_periodically(self, stop: asyncio.Event) -> None:
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=self._flush_interval)
            except asyncio.TimeoutError:
                await self.flush()

    # ------------------------------------------------------------------
    # Position stream callbacks
    # ------------------------------------------------------------------

    def _handle_position(self, position: Position) -> None:
        if not self.is_tracking:
            return

        try:
            sample = RunSample(
                latitude=position.latitude,
                longitude=position.longitude,
                timestamp=position.timestamp or self._now(),
            )
        except ValidationError:
            self._record_error(
                LocationError(
                    LocationError.POSITION_UNAVAILABLE,
                    f"Dropped out-of-range position ({position.latitude}, {position.longitude})",
                )
            )
            return
        if self._samples:
            prev = self._samples[-1]
            self._raw_distance += haversine_miles(
                prev.latitude, prev.longitude, sample.latitude, sample.longitude
            )
        self._samples.append(sample)
        self._unflushed.append(sample)

        if self._on_update is not None:
            try:
                self._on_update(self.summary())
            except Exception:
                logger.exception("Run update listener failed")

    def _handle_error(self, error: LocationError) -> None:
        # Errors are reported; an active recording keeps going
        self._record_error(error)

    def _record_error(self, error: LocationError) -> None:
        self.last_error = error
        logger.warning(f"Location error on run {self.run_id} ({error.reason}): {error.message}")
        if self._on_error is not None:
            try:
                self._on_error(error)
            except Exception:
                logger.exception("Run error listener failed")

    def _clear_watch(self) -> None:
        if self._watch_handle is not None:
            self._geolocation.clear(self._watch_handle)
            self._watch_handle = None


def apply_run_summary(store: ExerciseStateStore, exercise_id: str, summary: RunSummary) -> None:
    """Write a run summary into the run or cardio fields of an exercise."""
    store.set_field(exercise_id, "distance", f"{summary.distance:.2f}")
    store.set_field(exercise_id, "duration", format_minutes_as_duration(summary.duration_minutes))
