"""Shared fixtures for the delivery domain tests.

``world`` builds vendors, partners and orders through the same commands the
API uses, so every test starts from states the system itself can reach.
"""

import json

import pytest
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain

from delivery.authority import actor_fields
from delivery.changefeed import reset_hub
from delivery.dispatch.assignment import AssignDelivery
from delivery.dispatch.progress import MarkOutForDelivery, MarkPickedUp
from delivery.dispatch.response import RespondToRequest
from delivery.identity import Actor, Role, reset_identity_provider
from delivery.order.order import Order
from delivery.order.placement import PlaceOrder
from delivery.order.review import ApproveOrder
from delivery.partner.partner import DeliveryPartner
from delivery.tracking.geolocation import reset_geolocation
from delivery.vendor.vendor import Vendor

ADMIN = Actor("admin-1", Role.ADMIN)

DEFAULT_ITEMS = [
    {"product_id": "prod-milk", "name": "Whole Milk 1L", "unit_price": 1.20, "quantity": 2},
    {"product_id": "prod-bread", "name": "Sourdough Loaf", "unit_price": 3.50, "quantity": 1},
]

# Bengaluru, around MG Road
STORE = (12.9756, 77.6050)


def customer(customer_id: str = "cust-1") -> Actor:
    return Actor(customer_id, Role.CUSTOMER)


def vendor(vendor_id: str = "vendor-1") -> Actor:
    return Actor(vendor_id, Role.VENDOR)


def partner(partner_id: str) -> Actor:
    return Actor(partner_id, Role.DELIVERY_PARTNER)


class DeliveryWorld:
    """Builds fixtures inside the active domain context."""

    def add_vendor(self, vendor_id: str = "vendor-1", location: tuple[float, float] | None = STORE) -> Vendor:
        store = Vendor.register(user_id=vendor_id, store_name=f"Store {vendor_id}")
        if location is not None:
            store.set_location(*location)
        current_domain.repository_for(Vendor).add(store)
        return store

    def add_partner(
        self,
        partner_id: str,
        location: tuple[float, float] | None,
        is_active: bool = True,
        is_verified: bool = True,
    ) -> DeliveryPartner:
        rider = DeliveryPartner.register(
            user_id=partner_id,
            full_name=f"Rider {partner_id}",
            vehicle_type="scooter",
            is_active=is_active,
            is_verified=is_verified,
        )
        if location is not None:
            rider.set_home_location(*location)
        current_domain.repository_for(DeliveryPartner).add(rider)
        return rider

    def place_order(self, customer_id: str = "cust-1", vendor_id: str = "vendor-1", **overrides) -> str:
        fields = {
            "customer_id": customer_id,
            "vendor_id": vendor_id,
            "items": json.dumps(DEFAULT_ITEMS),
            "total_amount": 5.90,
            "payment_method": "cod",
            "delivery_address": "12 Residency Road, Bengaluru",
            "delivery_latitude": 12.9680,
            "delivery_longitude": 77.6000,
        }
        fields.update(overrides)
        return current_domain.process(
            PlaceOrder(**actor_fields(customer(customer_id)), **fields),
            asynchronous=False,
        )

    def approved_order(self, customer_id: str = "cust-1", vendor_id: str = "vendor-1") -> str:
        order_id = self.place_order(customer_id, vendor_id)
        current_domain.process(
            ApproveOrder(**actor_fields(vendor(vendor_id)), order_id=order_id),
            asynchronous=False,
        )
        return order_id

    def assign(self, order_id: str, by: Actor | None = None) -> str:
        order = self.order(order_id)
        actor = by or vendor(str(order.vendor_id))
        return current_domain.process(AssignDelivery(**actor_fields(actor), order_id=order_id), asynchronous=False)

    def respond(self, order_id: str, decision: str, by: Actor | None = None) -> None:
        order = self.order(order_id)
        actor = by or partner(str(order.assigned_partner_id))
        current_domain.process(
            RespondToRequest(**actor_fields(actor), request_id=str(order.active_request_id), decision=decision),
            asynchronous=False,
        )

    def accepted_order(self) -> str:
        order_id = self.approved_order()
        self.assign(order_id)
        self.respond(order_id, "accepted")
        return order_id

    def out_for_delivery_order(self) -> str:
        order_id = self.accepted_order()
        order = self.order(order_id)
        rider = partner(str(order.assigned_partner_id))
        request_id = str(order.active_request_id)
        current_domain.process(MarkPickedUp(**actor_fields(rider), request_id=request_id), asynchronous=False)
        current_domain.process(MarkOutForDelivery(**actor_fields(rider), request_id=request_id), asynchronous=False)
        return order_id

    def order(self, order_id: str) -> Order:
        return current_domain.repository_for(Order).get(order_id)


@pytest.fixture(scope="session")
def delivery_bed():
    from delivery.domain import delivery

    bed = DomainFixture(delivery)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(delivery_bed):
    with delivery_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def _reset_ports():
    yield
    reset_hub()
    reset_identity_provider()
    reset_geolocation()


@pytest.fixture()
def world():
    return DeliveryWorld()


@pytest.fixture()
def dispatch_ready(world):
    """A located vendor and one eligible partner nearby."""
    world.add_vendor()
    world.add_partner("rider-1", (12.9716, 77.5946))
    return world
