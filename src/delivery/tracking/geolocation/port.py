"""Geolocation port: the device's position source.

The source is untrusted and may be missing entirely. Callers treat ``None``
from ``current_position`` as "no fix" and carry on.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float
    recorded_at: datetime | None = None

    @property
    def coordinates(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


PositionCallback = Callable[[Position], None]
CancelWatch = Callable[[], None]


class GeolocationPort(ABC):
    """Abstract interface for position sources."""

    @abstractmethod
    def current_position(self) -> Position | None:
        """Return the current fix, or None when no fix is available."""
        ...

    @abstractmethod
    def watch_position(self, callback: PositionCallback) -> CancelWatch:
        """Call ``callback`` with every new fix until the returned function is called."""
        ...


class NullGeolocation(GeolocationPort):
    """A device without geolocation. Never produces a fix."""

    def current_position(self) -> Position | None:
        return None

    def watch_position(self, callback: PositionCallback) -> CancelWatch:
        return lambda: None
