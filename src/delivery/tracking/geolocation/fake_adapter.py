"""Fake geolocation source, driven by tests and local demos."""

import threading
from datetime import UTC, datetime

from delivery.tracking.geolocation.port import (
    CancelWatch,
    GeolocationPort,
    Position,
    PositionCallback,
)


class FakeGeolocation(GeolocationPort):
    """Scriptable position source. Starts without a fix."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current: Position | None = None
        self._watchers: dict[int, PositionCallback] = {}
        self._next_id = 0

    def move_to(self, latitude: float, longitude: float, recorded_at: datetime | None = None) -> Position:
        """Set a new fix and push it to every active watcher."""
        position = Position(latitude, longitude, recorded_at or datetime.now(UTC))
        with self._lock:
            self._current = position
            watchers = list(self._watchers.values())
        for callback in watchers:
            callback(position)
        return position

    def lose_signal(self) -> None:
        with self._lock:
            self._current = None

    @property
    def watcher_count(self) -> int:
        with self._lock:
            return len(self._watchers)

    def current_position(self) -> Position | None:
        with self._lock:
            return self._current

    def watch_position(self, callback: PositionCallback) -> CancelWatch:
        with self._lock:
            watch_id = self._next_id
            self._next_id += 1
            self._watchers[watch_id] = callback

        def cancel() -> None:
            with self._lock:
                self._watchers.pop(watch_id, None)

        return cancel
