"""Identity provider factory.

Provides get_identity_provider() / set_identity_provider() to swap
implementations. The ``IDENTITY_PROVIDER`` environment variable selects the
default; only ``fake`` ships with the service.
"""

import os

from delivery.identity.fake_adapter import FakeIdentityProvider
from delivery.identity.port import SYSTEM_ACTOR, Actor, IdentityProvider, Role

__all__ = [
    "SYSTEM_ACTOR",
    "Actor",
    "IdentityProvider",
    "Role",
    "get_identity_provider",
    "reset_identity_provider",
    "set_identity_provider",
]

_current_provider: IdentityProvider | None = None


def get_identity_provider() -> IdentityProvider:
    """Return the current identity provider. Defaults to FakeIdentityProvider."""
    global _current_provider
    if _current_provider is None:
        name = os.environ.get("IDENTITY_PROVIDER", "fake")
        if name != "fake":
            raise ValueError(f"Unknown identity provider: {name}")
        _current_provider = FakeIdentityProvider()
    return _current_provider


def set_identity_provider(provider: IdentityProvider) -> None:
    """Override the active identity provider (useful for tests)."""
    global _current_provider
    _current_provider = provider


def reset_identity_provider() -> None:
    """Reset to the default provider."""
    global _current_provider
    _current_provider = None
