"""
Timer State Storage Interface (Port).

Local, ephemeral storage for the elapsed-time display of a session. The state
survives reloads but is advisory only: it never contributes to the completion
record.
"""
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class TimerState:
    is_running: bool = False
    start_timestamp: Optional[float] = None
    accumulated_time: int = 0


class TimerStateStore(Protocol):
    """Abstract interface for persisted stopwatch state, keyed by session id."""

    def load(self, session_id: str) -> Optional[TimerState]:
        """Return the persisted state, or None when absent or unreadable."""
        ...

    def save(self, session_id: str, state: TimerState) -> None:
        ...

    def clear(self, session_id: str) -> None:
        ...
