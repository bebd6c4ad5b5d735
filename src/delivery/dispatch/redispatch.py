"""Automatic re-dispatch after a partner declines.

Enabled with the ``AUTO_REDISPATCH`` domain constant. The declining partner
is excluded by the Dispatch Engine itself. When nobody else is available the
order simply stays ``approved`` for a later manual dispatch.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from delivery.authority import actor_fields
from delivery.dispatch.assignment import AssignDelivery
from delivery.domain import delivery
from delivery.errors import NoAvailablePartner, StaleStateError, VendorLocationUnset
from delivery.identity import SYSTEM_ACTOR
from delivery.order.events import PartnerDeclined
from delivery.order.order import Order

logger = structlog.get_logger(__name__)


@delivery.event_handler(part_of=Order)
class RedispatchEventHandler:
    """Re-runs dispatch for orders whose partner declined."""

    @handle(PartnerDeclined)
    def on_partner_declined(self, event: PartnerDeclined) -> None:
        if not getattr(current_domain, "AUTO_REDISPATCH", False):
            return

        try:
            partner_id = current_domain.process(
                AssignDelivery(
                    **actor_fields(SYSTEM_ACTOR),
                    order_id=event.order_id,
                ),
                asynchronous=False,
            )
        except (NoAvailablePartner, VendorLocationUnset, StaleStateError) as exc:
            logger.warning(
                "Automatic re-dispatch did not bind a partner",
                order_id=str(event.order_id),
                declined_by=str(event.partner_id),
                reason=exc.code,
            )
            return

        logger.info(
            "Order re-dispatched",
            order_id=str(event.order_id),
            declined_by=str(event.partner_id),
            partner_id=partner_id,
        )
