"""Delivery progress actions driven by the bound partner.

Each action moves the DeliveryRequest and mirrors the same status onto the
Order within one handler invocation.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from delivery.authority import actor_of, ensure_bound_partner
from delivery.dispatch.delivery_request import DeliveryRequest
from delivery.domain import delivery
from delivery.identity import Role
from delivery.order.order import Order

logger = structlog.get_logger(__name__)


@delivery.command(part_of="DeliveryRequest")
class MarkPickedUp:
    """The partner collected the order from the vendor."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    request_id = Identifier(required=True)


@delivery.command(part_of="DeliveryRequest")
class MarkOutForDelivery:
    """The partner set off towards the customer."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    request_id = Identifier(required=True)


@delivery.command(part_of="DeliveryRequest")
class MarkDelivered:
    """The partner handed the order to the customer."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    request_id = Identifier(required=True)


@delivery.command_handler(part_of=DeliveryRequest)
class ProgressHandler:
    def _advance(self, command, step: str) -> None:
        actor = actor_of(command)
        request_repo = current_domain.repository_for(DeliveryRequest)
        request = request_repo.get(command.request_id)
        ensure_bound_partner(actor, request.partner_id, f"mark this delivery {step.replace('_', ' ')}")

        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(str(request.order_id))

        getattr(request, f"mark_{step}")()
        getattr(order, f"mark_{step}")()

        request_repo.add(request)
        order_repo.add(order)
        logger.info("Delivery progressed", request_id=str(request.id), order_id=str(order.id), status=order.delivery_status)

    @handle(MarkPickedUp)
    def mark_picked_up(self, command):
        self._advance(command, "picked_up")

    @handle(MarkOutForDelivery)
    def mark_out_for_delivery(self, command):
        self._advance(command, "out_for_delivery")

    @handle(MarkDelivered)
    def mark_delivered(self, command):
        self._advance(command, "delivered")
