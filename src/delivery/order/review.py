"""Vendor review: approve or reject a pending order."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from delivery.authority import actor_of, ensure_vendor_of
from delivery.domain import delivery
from delivery.identity import Role
from delivery.order.order import Order

logger = structlog.get_logger(__name__)


@delivery.command(part_of="Order")
class ApproveOrder:
    """The vendor accepts a pending order."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    order_id = Identifier(required=True)


@delivery.command(part_of="Order")
class RejectOrder:
    """The vendor declines a pending order."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@delivery.command_handler(part_of=Order)
class VendorReviewHandler:
    @handle(ApproveOrder)
    def approve_order(self, command):
        actor = actor_of(command)
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        ensure_vendor_of(actor, order.vendor_id, "approve this order")

        order.approve(approved_by=actor.id)
        repo.add(order)
        logger.info("Order approved", order_id=str(order.id), vendor_id=str(order.vendor_id))

    @handle(RejectOrder)
    def reject_order(self, command):
        actor = actor_of(command)
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        ensure_vendor_of(actor, order.vendor_id, "reject this order")

        order.reject(reason=command.reason)
        repo.add(order)
        logger.info("Order rejected by vendor", order_id=str(order.id), vendor_id=str(order.vendor_id))
