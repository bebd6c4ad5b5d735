"""Tests for directions links."""

import pytest
from protean.exceptions import ValidationError

from delivery.errors import VendorLocationUnset
from delivery.navigation import Leg, build_directions_url, directions_for_leg
from delivery.order.order import Order
from delivery.vendor.vendor import Vendor

BASE = "https://www.google.com/maps/dir/?api=1"


class TestBuildDirectionsUrl:
    def test_coordinates_only(self):
        url = build_directions_url(destination=(12.97, 77.6))
        assert url == f"{BASE}&destination=12.97,77.6&travelmode=driving&dir_action=navigate"

    def test_origin_waypoints_and_mode(self):
        url = build_directions_url(
            destination=(12.97, 77.6),
            origin=(12.9, 77.5),
            waypoints=[(12.95, 77.55), (12.96, 77.58)],
            travel_mode="bicycling",
            navigate=False,
        )
        assert url == (
            f"{BASE}&origin=12.9,77.5&destination=12.97,77.6"
            "&waypoints=12.95,77.55|12.96,77.58&travelmode=bicycling"
        )

    def test_address_is_url_encoded(self):
        url = build_directions_url(destination="12 Residency Rd, Bengaluru")
        assert "destination=12%20Residency%20Rd%2C%20Bengaluru" in url

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            build_directions_url(destination=(1.0, 2.0), travel_mode="teleport")


def _order(**overrides):
    fields = {
        "customer_id": "cust-1",
        "vendor_id": "vendor-1",
        "items_data": [{"product_id": "p", "name": "Eggs", "unit_price": 2.0, "quantity": 1}],
        "total_amount": 2.0,
        "delivery_address": "12 Residency Rd",
        "delivery_latitude": 12.968,
        "delivery_longitude": 77.6,
    }
    fields.update(overrides)
    return Order.place(**fields)


def _vendor(located=True):
    store = Vendor.register(user_id="vendor-1", store_name="Fresh Mart")
    if located:
        store.set_location(12.9756, 77.605)
    return store


class TestDirectionsForLeg:
    def test_to_vendor_from_partner_position(self):
        url = directions_for_leg(_order(), _vendor(), Leg.TO_VENDOR, current=(12.9, 77.5))
        assert "origin=12.9,77.5" in url
        assert "destination=12.9756,77.605" in url

    def test_to_vendor_without_store_location(self):
        with pytest.raises(VendorLocationUnset):
            directions_for_leg(_order(), _vendor(located=False), "vendor")

    def test_to_customer_from_store(self):
        url = directions_for_leg(_order(), _vendor(), Leg.TO_CUSTOMER, current=(1.0, 1.0))
        assert "origin=12.9756,77.605" in url
        assert "destination=12.968,77.6" in url

    def test_to_customer_falls_back_to_address(self):
        order = _order(delivery_latitude=None, delivery_longitude=None)
        url = directions_for_leg(order, _vendor(), Leg.TO_CUSTOMER)
        assert "destination=12%20Residency%20Rd" in url

    def test_to_customer_without_any_location(self):
        order = _order(delivery_latitude=None, delivery_longitude=None, delivery_address=None)
        with pytest.raises(ValidationError):
            directions_for_leg(order, _vendor(), Leg.TO_CUSTOMER)
