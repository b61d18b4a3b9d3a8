"""Local (device) storage adapters."""

from infrastructure.storage.timer_state_store import JsonFileTimerStateStore

__all__ = ["JsonFileTimerStateStore"]
