"""JSON file storage for stopwatch state, one file per session."""

import json
import logging
import re
from pathlib import Path
from typing import Optional, Union

from application.ports import TimerState

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileTimerStateStore:
    """
    Persist ``{isRunning, startTimestamp, accumulatedTime}`` under
    ``<directory>/workout_timer_<session_id>.json``.

    Unreadable files are treated as absent.
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self._directory = Path(directory)

    def _path(self, session_id: str) -> Path:
        safe_id = _UNSAFE_CHARS.sub("_", session_id)
        return self._directory / f"workout_timer_{safe_id}.json"

    def load(self, session_id: str) -> Optional[TimerState]:
        path = self._path(session_id)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return TimerState(
                is_running=bool(data.get("isRunning", False)),
                start_timestamp=data.get("startTimestamp"),
                accumulated_time=int(data.get("accumulatedTime") or 0),
            )
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable timer state {path}: {e}")
            return None

    def save(self, session_id: str, state: TimerState) -> None:
        path = self._path(session_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "isRunning": state.is_running,
            "startTimestamp": state.start_timestamp,
            "accumulatedTime": state.accumulated_time,
        }
        path.write_text(json.dumps(payload), encoding="utf-8")

    def clear(self, session_id: str) -> None:
        self._path(session_id).unlink(missing_ok=True)
