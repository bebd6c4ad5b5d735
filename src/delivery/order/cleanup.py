"""Terminal order cleanup: per-actor dismissal and admin purge.

Dismissal only hides an order from the dismissing actor's board. Purge
removes the order together with everything hanging off it: line items,
delivery requests with their response logs, and tracking samples.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from delivery.authority import actor_of, ensure_admin, is_party_to
from delivery.dispatch.assignment import requests_for_order
from delivery.dispatch.delivery_request import DeliveryPartnerResponse, DeliveryRequest
from delivery.domain import delivery
from delivery.errors import NotAuthorized
from delivery.identity import Role
from delivery.order.order import Order, OrderItem
from delivery.tracking.sample import TrackingSample

logger = structlog.get_logger(__name__)


@delivery.command(part_of="Order")
class DismissOrder:
    """Hide a terminal order from the caller's board."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    order_id = Identifier(required=True)


@delivery.command(part_of="Order")
class PurgeOrder:
    """Physically delete a terminal order and its dependents."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    order_id = Identifier(required=True)


@delivery.command_handler(part_of=Order)
class CleanupHandler:
    @handle(DismissOrder)
    def dismiss_order(self, command):
        actor = actor_of(command)
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if not is_party_to(actor, order.customer_id, order.vendor_id, order.assigned_partner_id):
            raise NotAuthorized(actor.id, actor.role.value, "dismiss this order")

        order.dismiss(actor)
        repo.add(order)

    @handle(PurgeOrder)
    def purge_order(self, command):
        actor = actor_of(command)
        ensure_admin(actor, "purge orders")

        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)
        order.purge(actor)
        # Record the purge event before the rows go away
        order_repo.add(order)

        order_id = str(order.id)
        requests = requests_for_order(order_id)
        response_dao = current_domain.repository_for(DeliveryPartnerResponse)._dao
        request_dao = current_domain.repository_for(DeliveryRequest)._dao
        for request in requests:
            for response in request.responses or []:
                response_dao.delete(response)
            request_dao.delete(request)

        sample_dao = current_domain.repository_for(TrackingSample)._dao
        samples = sample_dao.query.filter(order_id=order_id).all()
        for sample in samples.items:
            sample_dao.delete(sample)

        item_dao = current_domain.repository_for(OrderItem)._dao
        for item in order.items or []:
            item_dao.delete(item)
        order_repo._dao.delete(order)

        logger.info(
            "Order purged",
            order_id=order_id,
            purged_by=actor.id,
            delivery_requests=len(requests),
            tracking_samples=len(samples.items),
        )
