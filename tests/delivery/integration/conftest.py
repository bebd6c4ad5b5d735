import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from delivery.api import (
    application_router,
    board_router,
    order_router,
    partner_router,
    request_router,
    stream_router,
    vendor_router,
)
from delivery.api.errors import register_error_handlers
from delivery.identity import Role, get_identity_provider


@pytest.fixture()
def client():
    app = FastAPI()
    for router in (
        order_router,
        request_router,
        vendor_router,
        application_router,
        partner_router,
        board_router,
        stream_router,
    ):
        app.include_router(router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def auth():
    """Issue a bearer token for a user and return the request headers."""

    def _auth(actor_id: str, role: Role | str) -> dict:
        token = f"tok-{actor_id}"
        get_identity_provider().register(token, actor_id, role)
        return {"Authorization": f"Bearer {token}"}

    return _auth
