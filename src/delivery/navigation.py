"""Turn-by-turn directions links for delivery partners.

Links use the Google Maps URLs scheme, which opens the native maps app on
phones and the web client elsewhere. A stop is either a ``(lat, lon)`` pair
or a free-text address.
"""

from enum import Enum
from urllib.parse import quote

from protean.exceptions import ValidationError

from delivery.errors import VendorLocationUnset

MAPS_DIRECTIONS_BASE = "https://www.google.com/maps/dir/?api=1"

Stop = tuple[float, float] | str


class TravelMode(Enum):
    DRIVING = "driving"
    WALKING = "walking"
    BICYCLING = "bicycling"
    TRANSIT = "transit"


class Leg(Enum):
    TO_VENDOR = "vendor"
    TO_CUSTOMER = "customer"


def _encode(stop: Stop) -> str:
    if isinstance(stop, str):
        return quote(stop, safe="")
    latitude, longitude = stop
    return f"{latitude},{longitude}"


def build_directions_url(
    destination: Stop,
    origin: Stop | None = None,
    waypoints: tuple[Stop, ...] | list[Stop] = (),
    travel_mode: TravelMode | str = TravelMode.DRIVING,
    navigate: bool = True,
) -> str:
    """Build a directions link. Without an origin the maps app uses the device's position."""
    mode = TravelMode(travel_mode).value
    url = MAPS_DIRECTIONS_BASE
    if origin is not None:
        url += f"&origin={_encode(origin)}"
    url += f"&destination={_encode(destination)}"
    if waypoints:
        url += "&waypoints=" + "|".join(_encode(stop) for stop in waypoints)
    url += f"&travelmode={mode}"
    if navigate:
        url += "&dir_action=navigate"
    return url


def directions_for_leg(order, vendor, leg: Leg | str, current: Stop | None = None) -> str:
    """Directions for one leg of a delivery.

    To the vendor: from the partner's current position (if known) to the store.
    To the customer: from the store, or the partner when the store has no
    location, to the delivery coordinates or the delivery address.
    """
    leg = Leg(leg)
    store = (vendor.latitude, vendor.longitude) if vendor is not None and vendor.has_location else None

    if leg == Leg.TO_VENDOR:
        if store is None:
            raise VendorLocationUnset(str(order.vendor_id))
        return build_directions_url(destination=store, origin=current)

    if order.delivery_latitude is not None and order.delivery_longitude is not None:
        destination: Stop = (order.delivery_latitude, order.delivery_longitude)
    elif order.delivery_address:
        destination = order.delivery_address
    else:
        raise ValidationError({"delivery_address": ["Order has no delivery location"]})
    return build_directions_url(destination=destination, origin=store or current)
