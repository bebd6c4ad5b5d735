"""Request dependencies: the authenticated actor."""

from fastapi import Header, HTTPException

from delivery.identity import Actor, get_identity_provider


def resolve_bearer(authorization: str | None) -> Actor | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return get_identity_provider().resolve(token.strip())


def current_actor(authorization: str | None = Header(default=None)) -> Actor:
    """Resolve ``Authorization: Bearer <token>`` to an actor, or answer 401."""
    actor = resolve_bearer(authorization)
    if actor is None:
        raise HTTPException(
            status_code=401,
            detail="Missing or invalid bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor
