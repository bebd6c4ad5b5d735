"""Identity provider port (abstract interface).

The identity collaborator authenticates callers and supplies the actor's id
and role. The core never accepts a role claimed by the client; it only trusts
what a provider resolves from a credential.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class Role(Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    DELIVERY_PARTNER = "delivery_partner"
    ADMIN = "admin"
    # Internal actor for automatic re-dispatch. Never issued by a provider.
    SYSTEM = "system"


@dataclass(frozen=True)
class Actor:
    """An authenticated caller."""

    id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


SYSTEM_ACTOR = Actor(id="system", role=Role.SYSTEM)


class IdentityProvider(ABC):
    """Abstract identity provider interface."""

    @abstractmethod
    def resolve(self, token: str) -> Actor | None:
        """Return the actor behind ``token``, or None if it is not recognised."""
        ...
