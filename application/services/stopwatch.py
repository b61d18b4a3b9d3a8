"""
Advisory elapsed-time stopwatch for a session.

State is persisted per session id through a TimerStateStore so the display
survives reloads. It never feeds into the completion record.
"""

import logging
import time
from typing import Callable

from application.ports import TimerState, TimerStateStore

logger = logging.getLogger(__name__)


class Stopwatch:
    """
    Start/pause/reset timer backed by persisted state.

    ``accumulated_time`` holds whole seconds from finished running segments;
    ``start_timestamp`` is the wall-clock start of the current segment.
    """

    def __init__(
        self,
        storage: TimerStateStore,
        session_id: str,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self.session_id = session_id
        self._clock = clock
        self._state = storage.load(session_id) or TimerState()
        if self._state.is_running and self._state.start_timestamp is None:
            logger.warning(f"Timer state for {session_id} is running without a start time; pausing")
            self._state = TimerState(accumulated_time=self._state.accumulated_time)

    @property
    def is_running(self) -> bool:
        return self._state.is_running

    def elapsed_seconds(self) -> int:
        elapsed = self._state.accumulated_time
        if self._state.is_running:
            elapsed += max(int(self._clock() - self._state.start_timestamp), 0)
        return elapsed

    def start(self) -> None:
        if self._state.is_running:
            return
        self._state = TimerState(
            is_running=True,
            start_timestamp=self._clock(),
            accumulated_time=self._state.accumulated_time,
        )
        self._storage.save(self.session_id, self._state)

    def pause(self) -> None:
        if not self._state.is_running:
            return
        self._state = TimerState(accumulated_time=self.elapsed_seconds())
        self._storage.save(self.session_id, self._state)

    def toggle(self) -> bool:
        if self._state.is_running:
            self.pause()
        else:
            self.start()
        return self._state.is_running

    def reset(self) -> None:
        self._state = TimerState()
        self._storage.clear(self.session_id)
