"""Checkout hand-off: the checkout collaborator places a pending order."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from delivery.authority import actor_of, ensure_customer_of
from delivery.domain import delivery
from delivery.identity import Role
from delivery.order.order import Order, PaymentStatus
from delivery.vendor.vendor import Vendor


@delivery.command(part_of="Order")
class PlaceOrder:
    """Create a pending order from a completed checkout."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of {product_id, name, unit_price, quantity}
    total_amount = Float(required=True, min_value=0.0)
    payment_method = String(max_length=50)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    delivery_address = Text()
    delivery_latitude = Float(min_value=-90.0, max_value=90.0)
    delivery_longitude = Float(min_value=-180.0, max_value=180.0)


@delivery.command_handler(part_of=Order)
class PlacementHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        actor = actor_of(command)
        ensure_customer_of(actor, command.customer_id, "place orders for this customer")

        items_data = json.loads(command.items)
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one line item"]})

        # Raises ObjectNotFoundError for unknown vendors
        current_domain.repository_for(Vendor).get(command.vendor_id)

        order = Order.place(
            customer_id=command.customer_id,
            vendor_id=command.vendor_id,
            items_data=items_data,
            total_amount=command.total_amount,
            payment_method=command.payment_method,
            payment_status=command.payment_status,
            delivery_address=command.delivery_address,
            delivery_latitude=command.delivery_latitude,
            delivery_longitude=command.delivery_longitude,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
