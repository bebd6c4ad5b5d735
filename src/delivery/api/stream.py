"""Websocket change stream: push change notices to a connected client.

    /changes/ws?token=<bearer>&entity_type=order&entity_id=<id>

The client receives ``{"type": "changed", ...}`` frames and re-reads the
entity over HTTP. Close codes: 4001 unauthenticated, 4003 not allowed to
watch this key, 4400 unknown entity type.
"""

import asyncio

import structlog
from fastapi import APIRouter, Query, WebSocket
from protean.utils.globals import current_domain

from delivery.authority import is_party_to
from delivery.changefeed import ChangeNotice, EntityType, get_hub
from delivery.domain import delivery
from delivery.identity import Actor, Role, get_identity_provider
from delivery.order.order import Order

logger = structlog.get_logger(__name__)

stream_router = APIRouter(prefix="/changes", tags=["changes"])

_OWN_KEYS = {
    EntityType.CUSTOMER: Role.CUSTOMER,
    EntityType.VENDOR: Role.VENDOR,
    EntityType.PARTNER: Role.DELIVERY_PARTNER,
}


def may_subscribe(actor: Actor, entity_type: EntityType, entity_id: str) -> bool:
    """Customers, vendors and partners watch their own key or orders they are party to."""
    if actor.is_admin:
        return True
    if entity_type == EntityType.ORDER:
        order = current_domain.repository_for(Order).get_or_none(entity_id)
        return order is not None and is_party_to(
            actor, order.customer_id, order.vendor_id, order.assigned_partner_id
        )
    return actor.role == _OWN_KEYS[entity_type] and actor.id == entity_id


@stream_router.websocket("/ws")
async def change_stream(
    websocket: WebSocket,
    token: str | None = Query(None),
    entity_type: str = Query(...),
    entity_id: str = Query(...),
):
    actor = get_identity_provider().resolve(token) if token else None
    if actor is None:
        await websocket.close(code=4001, reason="Authentication required")
        return

    try:
        kind = EntityType(entity_type)
    except ValueError:
        await websocket.close(code=4400, reason=f"Unknown entity type: {entity_type}")
        return

    with delivery.domain_context():
        allowed = may_subscribe(actor, kind, entity_id)
    if not allowed:
        await websocket.close(code=4003, reason="Not allowed to watch this entity")
        return

    await websocket.accept()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[ChangeNotice] = asyncio.Queue()

    def forward(notice: ChangeNotice) -> None:
        # Called on the subscription's worker thread
        loop.call_soon_threadsafe(queue.put_nowait, notice)

    subscription = get_hub().subscribe(kind, entity_id, forward)
    logger.info("Change stream opened", actor_id=actor.id, entity_type=kind.value, entity_id=entity_id)

    async def pump() -> None:
        await websocket.send_json({"type": "subscribed", "entity_type": kind.value, "entity_id": entity_id})
        while True:
            notice = await queue.get()
            await websocket.send_json({"type": "changed", **notice.to_dict()})

    async def watch_disconnect() -> None:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return

    tasks = [asyncio.create_task(pump()), asyncio.create_task(watch_disconnect())]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.warning("Change stream closed on error", actor_id=actor.id, error=str(task.exception()))
    finally:
        subscription.cancel()
        logger.info("Change stream closed", actor_id=actor.id, entity_type=kind.value, entity_id=entity_id)
