"""Geolocation source abstraction, pluggable per deployment."""

import os

from delivery.tracking.geolocation.port import GeolocationPort, NullGeolocation, Position

__all__ = ["GeolocationPort", "NullGeolocation", "Position", "get_geolocation", "reset_geolocation", "set_geolocation"]

_geolocation_instance: GeolocationPort | None = None


def get_geolocation() -> GeolocationPort:
    """Return the configured geolocation source (singleton).

    ``GEOLOCATION_PROVIDER`` selects ``none`` (default) or ``fake``.
    """
    global _geolocation_instance
    if _geolocation_instance is None:
        provider = os.environ.get("GEOLOCATION_PROVIDER", "none")
        if provider == "none":
            _geolocation_instance = NullGeolocation()
        elif provider == "fake":
            from delivery.tracking.geolocation.fake_adapter import FakeGeolocation

            _geolocation_instance = FakeGeolocation()
        else:
            raise ValueError(f"Unknown geolocation provider: {provider}")
    return _geolocation_instance


def set_geolocation(provider: GeolocationPort) -> None:
    global _geolocation_instance
    _geolocation_instance = provider


def reset_geolocation() -> None:
    """Reset the geolocation singleton (useful for testing)."""
    global _geolocation_instance
    _geolocation_instance = None
