"""Delivery service HTTP API package."""

from delivery.api.routes import (
    application_router,
    board_router,
    order_router,
    partner_router,
    request_router,
    vendor_router,
)
from delivery.api.stream import stream_router

__all__ = [
    "application_router",
    "board_router",
    "order_router",
    "partner_router",
    "request_router",
    "stream_router",
    "vendor_router",
]
