"""Fake identity provider: an in-memory token table for tests and development."""

from delivery.identity.port import Actor, IdentityProvider, Role


class FakeIdentityProvider(IdentityProvider):
    """Resolves bearer tokens registered ahead of time."""

    def __init__(self):
        self._tokens: dict[str, Actor] = {}

    def register(self, token: str, actor_id: str, role: Role | str) -> Actor:
        role = Role(role)
        if role == Role.SYSTEM:
            raise ValueError("The system role cannot be issued to a token")
        actor = Actor(id=actor_id, role=role)
        self._tokens[token] = actor
        return actor

    def revoke(self, token: str) -> None:
        self._tokens.pop(token, None)

    def resolve(self, token: str) -> Actor | None:
        return self._tokens.get(token)
