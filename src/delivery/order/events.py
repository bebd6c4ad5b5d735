"""Order domain events: immutable facts about order lifecycle changes.

Every event carries the order's routing keys (customer, vendor and, once
bound, partner) so the change feed can fan it out without re-reading the
order.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from delivery.domain import delivery


@delivery.event(part_of="Order")
class OrderPlaced:
    """Checkout handed a new order to the delivery core."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of line item snapshots
    item_count = Integer(required=True)
    total_amount = Float(required=True)
    payment_status = String(required=True)
    delivery_status = String(required=True)
    placed_at = DateTime(required=True)


@delivery.event(part_of="Order")
class OrderApproved:
    """The vendor accepted the order for preparation."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    delivery_status = String(required=True)
    approved_by = Identifier(required=True)
    approved_at = DateTime(required=True)


@delivery.event(part_of="Order")
class OrderRejectedByVendor:
    """The vendor declined the order. Terminal."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    delivery_status = String(required=True)
    reason = String(max_length=500)
    rejected_at = DateTime(required=True)


@delivery.event(part_of="Order")
class PartnerAssigned:
    """Dispatch bound a delivery partner to the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    partner_id = Identifier(required=True)
    request_id = Identifier(required=True)
    delivery_status = String(required=True)
    distance_km = Float(required=True)
    assigned_at = DateTime(required=True)


@delivery.event(part_of="Order")
class PartnerAccepted:
    """The bound partner accepted the delivery request."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    partner_id = Identifier(required=True)
    request_id = Identifier(required=True)
    delivery_status = String(required=True)
    accepted_at = DateTime(required=True)


@delivery.event(part_of="Order")
class PartnerDeclined:
    """The bound partner declined. The order is dispatchable again."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    partner_id = Identifier(required=True)
    request_id = Identifier(required=True)
    delivery_status = String(required=True)
    declined_at = DateTime(required=True)


@delivery.event(part_of="Order")
class OrderPickedUp:
    """The partner collected the goods from the vendor."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    partner_id = Identifier(required=True)
    request_id = Identifier(required=True)
    delivery_status = String(required=True)
    picked_up_at = DateTime(required=True)


@delivery.event(part_of="Order")
class OrderOutForDelivery:
    """The partner is on the way to the customer."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    partner_id = Identifier(required=True)
    request_id = Identifier(required=True)
    delivery_status = String(required=True)
    departed_at = DateTime(required=True)


@delivery.event(part_of="Order")
class OrderDelivered:
    """The customer received the order. Terminal."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    partner_id = Identifier(required=True)
    request_id = Identifier(required=True)
    delivery_status = String(required=True)
    delivered_at = DateTime(required=True)


@delivery.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled by its customer or by an admin. Terminal."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    partner_id = Identifier()
    request_id = Identifier()
    delivery_status = String(required=True)
    previous_status = String(required=True)
    cancelled_by = Identifier(required=True)
    cancelled_by_role = String(required=True)
    reason = String(max_length=500)
    cancelled_at = DateTime(required=True)


@delivery.event(part_of="Order")
class OrderDismissed:
    """A party hid a terminal order from their own board."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    partner_id = Identifier()
    delivery_status = String(required=True)
    dismissed_by = Identifier(required=True)
    dismissed_at = DateTime(required=True)


@delivery.event(part_of="Order")
class OrderPurged:
    """An admin hard-deleted a terminal order and its delivery records."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    partner_id = Identifier()
    delivery_status = String(required=True)
    purged_by = Identifier(required=True)
    purged_at = DateTime(required=True)
