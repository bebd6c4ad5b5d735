"""Shared BDD fixtures and step definitions for delivery coordination."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then, when

from delivery.authority import actor_fields
from delivery.dispatch.assignment import requests_for_order
from delivery.dispatch.response import RespondToRequest
from delivery.errors import DeliveryError
from delivery.identity import Actor, Role
from delivery.order.review import ApproveOrder

# Bengaluru, around MG Road
_STORE = (12.9756, 77.6050)
_KM_PER_DEGREE_LAT = 111.195


def _north_of_store(km: float) -> tuple[float, float]:
    return (_STORE[0] + km / _KM_PER_DEGREE_LAT, _STORE[1])


@pytest.fixture()
def outcome():
    """Container for the result or error of the last action."""
    return {"result": None, "error": None}


def attempt(outcome, action, *args, **kwargs):
    try:
        outcome["result"] = action(*args, **kwargs)
        outcome["error"] = None
    except DeliveryError as exc:
        outcome["error"] = exc
    return outcome


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a vendor with a store location")
def located_vendor(world):
    world.add_vendor(location=_STORE)


@given(parsers.cfparse('an eligible partner "{partner_id}" {km:g} km from the store'))
def eligible_partner(world, partner_id, km):
    world.add_partner(partner_id, _north_of_store(km))


@given(parsers.cfparse('an inactive partner "{partner_id}" {km:g} km from the store'))
def inactive_partner(world, partner_id, km):
    world.add_partner(partner_id, _north_of_store(km), is_active=False)


@given("a pending order", target_fixture="order_id")
def pending_order(world):
    return world.place_order()


@given("an accepted order", target_fixture="order_id")
def accepted_order(world):
    return world.accepted_order()


@given("an order out for delivery", target_fixture="order_id")
def out_for_delivery_order(world):
    return world.out_for_delivery_order()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order is "{status}"'))
def order_status_is(world, order_id, status):
    assert world.order(order_id).delivery_status == status


@then(parsers.cfparse('the action is refused with "{code}"'))
def refused_with(outcome, code):
    assert outcome["error"] is not None
    assert outcome["error"].code == code


@then("the action succeeds")
def action_succeeds(outcome):
    assert outcome["error"] is None


# ---------------------------------------------------------------------------
# When steps shared across features
# ---------------------------------------------------------------------------
@when("the vendor approves the order")
def vendor_approves(order_id):
    current_domain.process(ApproveOrder(**actor_fields(Actor("vendor-1", Role.VENDOR)), order_id=order_id), asynchronous=False)


@when("the order is dispatched")
def dispatch(world, order_id, outcome):
    attempt(outcome, world.assign, order_id)


@when(parsers.cfparse('partner "{partner_id}" {verb} the request'))
def partner_responds(order_id, outcome, partner_id, verb):
    decision = {"accepts": "accepted", "rejects": "rejected"}[verb]
    request = requests_for_order(order_id)[-1]
    command = RespondToRequest(
        **actor_fields(Actor(partner_id, Role.DELIVERY_PARTNER)),
        request_id=str(request.id),
        decision=decision,
    )
    attempt(outcome, current_domain.process, command, asynchronous=False)


@then(parsers.cfparse('the delivery request is "{status}"'))
def latest_request_status(order_id, status):
    assert requests_for_order(order_id)[-1].status == status
