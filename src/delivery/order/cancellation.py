"""Order cancellation by the owning customer or an admin.

A live delivery request is cancelled alongside the order so the bound
partner's binding ends in the same commit.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from delivery.authority import actor_of, ensure_customer_of
from delivery.dispatch.delivery_request import DeliveryRequest
from delivery.domain import delivery
from delivery.identity import Role
from delivery.order.order import Order

logger = structlog.get_logger(__name__)


@delivery.command(part_of="Order")
class CancelOrder:
    """Cancel a non-terminal order."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@delivery.command_handler(part_of=Order)
class CancellationHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        actor = actor_of(command)
        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)
        ensure_customer_of(actor, order.customer_id, "cancel this order")

        request_id = order.active_request_id
        order.cancel(actor, reason=command.reason)

        if request_id:
            request_repo = current_domain.repository_for(DeliveryRequest)
            request = request_repo.get_or_none(str(request_id))
            if request is not None and request.is_active:
                request.cancel()
                request_repo.add(request)

        order_repo.add(order)
        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            cancelled_by=actor.id,
            role=actor.role.value,
            reason=command.reason,
        )
