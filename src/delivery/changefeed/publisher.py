"""Publish committed order changes to the change hub.

Every Order event fans out to the order itself, its customer, its vendor
and, once bound, its partner. Position samples only reach the order's own
subscribers.
"""

from protean.utils.mixins import handle

from delivery.changefeed import ChangeNotice, EntityType, get_hub, key_for
from delivery.domain import delivery
from delivery.order.order import Order
from delivery.tracking.sample import PositionReported, TrackingSample


@delivery.event_handler(part_of=Order)
class OrderChangePublisher:
    @handle("$any")
    def publish(self, event) -> None:
        keys = [
            key_for(EntityType.ORDER, event.order_id),
            key_for(EntityType.CUSTOMER, event.customer_id),
            key_for(EntityType.VENDOR, event.vendor_id),
        ]
        partner_id = getattr(event, "partner_id", None)
        if partner_id:
            keys.append(key_for(EntityType.PARTNER, partner_id))

        get_hub().publish(
            ChangeNotice(
                order_id=str(event.order_id),
                change=event.__class__.__name__,
                delivery_status=event.delivery_status,
            ),
            keys,
        )


@delivery.event_handler(part_of=TrackingSample)
class PositionChangePublisher:
    @handle(PositionReported)
    def publish(self, event: PositionReported) -> None:
        get_hub().publish(
            ChangeNotice(order_id=str(event.order_id), change="PositionReported"),
            [key_for(EntityType.ORDER, event.order_id)],
        )
