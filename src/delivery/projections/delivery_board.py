"""Delivery board: one row per order for the customer, vendor and partner views."""

import json

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from delivery.domain import delivery
from delivery.identity import Actor, Role
from delivery.order.events import (
    OrderApproved,
    OrderCancelled,
    OrderDelivered,
    OrderDismissed,
    OrderOutForDelivery,
    OrderPickedUp,
    OrderPlaced,
    OrderPurged,
    OrderRejectedByVendor,
    PartnerAccepted,
    PartnerAssigned,
    PartnerDeclined,
)
from delivery.order.order import Order


@delivery.projection
class DeliveryBoardEntry:
    order_id = Identifier(identifier=True, required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    partner_id = Identifier()
    request_id = Identifier()
    delivery_status = String(required=True, max_length=50)
    item_count = Integer(default=0)
    total_amount = Float(default=0.0)
    dismissed_by = Text()  # JSON list of actor ids
    placed_at = DateTime()
    updated_at = DateTime()


def dismissed_by(entry: DeliveryBoardEntry) -> list[str]:
    return json.loads(entry.dismissed_by) if entry.dismissed_by else []


def board_for(actor: Actor, include_dismissed: bool = False) -> list[DeliveryBoardEntry]:
    """The actor's orders, most recently changed first."""
    query = current_domain.repository_for(DeliveryBoardEntry)._dao.query
    if actor.role == Role.CUSTOMER:
        query = query.filter(customer_id=actor.id)
    elif actor.role == Role.VENDOR:
        query = query.filter(vendor_id=actor.id)
    elif actor.role == Role.DELIVERY_PARTNER:
        query = query.filter(partner_id=actor.id)
    elif actor.role != Role.ADMIN:
        return []

    entries = query.order_by("-updated_at").all().items
    if include_dismissed:
        return entries
    return [entry for entry in entries if actor.id not in dismissed_by(entry)]


@delivery.projector(projector_for=DeliveryBoardEntry, aggregates=[Order])
class DeliveryBoardProjector:
    def _update(self, event, at, **changes) -> None:
        repo = current_domain.repository_for(DeliveryBoardEntry)
        entry = repo.get(event.order_id)
        entry.delivery_status = event.delivery_status
        entry.updated_at = at
        for name, value in changes.items():
            setattr(entry, name, value)
        repo.add(entry)

    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(DeliveryBoardEntry).add(
            DeliveryBoardEntry(
                order_id=event.order_id,
                customer_id=event.customer_id,
                vendor_id=event.vendor_id,
                delivery_status=event.delivery_status,
                item_count=event.item_count,
                total_amount=event.total_amount,
                dismissed_by=json.dumps([]),
                placed_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )

    @on(OrderApproved)
    def on_order_approved(self, event):
        self._update(event, event.approved_at)

    @on(OrderRejectedByVendor)
    def on_order_rejected(self, event):
        self._update(event, event.rejected_at)

    @on(PartnerAssigned)
    def on_partner_assigned(self, event):
        self._update(event, event.assigned_at, partner_id=event.partner_id, request_id=event.request_id)

    @on(PartnerAccepted)
    def on_partner_accepted(self, event):
        self._update(event, event.accepted_at)

    @on(PartnerDeclined)
    def on_partner_declined(self, event):
        self._update(event, event.declined_at, partner_id=None, request_id=None)

    @on(OrderPickedUp)
    def on_order_picked_up(self, event):
        self._update(event, event.picked_up_at)

    @on(OrderOutForDelivery)
    def on_order_out_for_delivery(self, event):
        self._update(event, event.departed_at)

    @on(OrderDelivered)
    def on_order_delivered(self, event):
        self._update(event, event.delivered_at)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        self._update(event, event.cancelled_at, request_id=None)

    @on(OrderDismissed)
    def on_order_dismissed(self, event):
        repo = current_domain.repository_for(DeliveryBoardEntry)
        entry = repo.get(event.order_id)
        actors = dismissed_by(entry)
        if event.dismissed_by not in actors:
            entry.dismissed_by = json.dumps([*actors, event.dismissed_by])
            repo.add(entry)

    @on(OrderPurged)
    def on_order_purged(self, event):
        repo = current_domain.repository_for(DeliveryBoardEntry)
        entry = repo.get_or_none(event.order_id)
        if entry is not None:
            repo._dao.delete(entry)
