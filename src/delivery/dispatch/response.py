"""Partner Response Protocol: the bound partner accepts or declines.

The response entry, the request's new status and the mirrored order status
are written by a single handler invocation. A decline frees the order for
another dispatch round with the declining partner excluded.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from delivery.authority import actor_of, ensure_bound_partner
from delivery.dispatch.delivery_request import Decision, DeliveryRequest
from delivery.domain import delivery
from delivery.identity import Role
from delivery.order.order import Order

logger = structlog.get_logger(__name__)


@delivery.command(part_of="DeliveryRequest")
class RespondToRequest:
    """Record the bound partner's decision on a delivery request."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    request_id = Identifier(required=True)
    decision = String(required=True, choices=Decision)


@delivery.command_handler(part_of=DeliveryRequest)
class ResponseHandler:
    @handle(RespondToRequest)
    def respond(self, command):
        actor = actor_of(command)
        request_repo = current_domain.repository_for(DeliveryRequest)
        request = request_repo.get(command.request_id)
        ensure_bound_partner(actor, request.partner_id, "respond to this delivery request")

        decision = Decision(command.decision)
        request.respond(actor.id, decision)

        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(str(request.order_id))
        if decision == Decision.ACCEPTED:
            order.mark_accepted()
        else:
            order.return_for_redispatch()

        request_repo.add(request)
        order_repo.add(order)

        logger.info(
            "Partner responded",
            request_id=str(request.id),
            order_id=str(order.id),
            partner_id=actor.id,
            decision=decision.value,
        )
