"""
Geolocation Provider Interface (Port).

This module defines the device-position contract used by the run recorder.
Providers push updates through callbacks until the subscription is cleared.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Protocol

from domain.errors import LocationError


@dataclass(frozen=True)
class Position:
    """A position fix reported by the device."""

    latitude: float
    longitude: float
    timestamp: Optional[datetime] = None
    accuracy_meters: Optional[float] = None


@dataclass(frozen=True)
class WatchOptions:
    enable_high_accuracy: bool = True
    timeout_seconds: float = 10.0
    maximum_age_seconds: float = 0.0


PositionCallback = Callable[[Position], None]
PositionErrorCallback = Callable[[LocationError], None]


class GeolocationProvider(Protocol):
    """Abstract interface for a device position stream."""

    def watch(
        self,
        on_update: PositionCallback,
        on_error: PositionErrorCallback,
        options: WatchOptions,
    ) -> Any:
        """
        Start watching the device position.

        Raises LocationError with reason "unsupported" when the device has
        no position source.

        Returns:
            Opaque subscription handle for clear()
        """
        ...

    def clear(self, handle: Any) -> None:
        """Stop a watch; clearing an unknown or cleared handle is a no-op."""
        ...
