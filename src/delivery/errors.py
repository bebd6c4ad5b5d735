"""Typed business errors raised by the delivery coordination core.

Every error is recoverable and is surfaced to the initiating actor verbatim.
The ``code`` attribute is the stable wire name used by the HTTP layer.

    StaleStateError           compare-and-set precondition failed
    CancellationWindowClosed  customer cancel after the order left pending/approved
    AlreadyResponded          duplicate partner decision on a request
    NotAuthorized             actor/role mismatch against the bound entity
    NoAvailablePartner        dispatch pool empty; retryable
    VendorLocationUnset       dispatch precondition missing; fix upstream first
"""

from protean.exceptions import (
    DatabaseError,
    InvalidOperationError,
    InvalidStateError,
    TransactionError,
)


class DeliveryError(Exception):
    """Base of the business errors. Carries the wire code and retry hint."""

    retryable = False

    @property
    def code(self) -> str:
        return type(self).__name__


# ---------------------------------------------------------------------------
# Conflicts with current state (409)
# ---------------------------------------------------------------------------
class StaleStateError(DeliveryError, InvalidStateError):
    """The record's current status is not the expected predecessor."""

    def __init__(self, entity: str, current: str, attempted: str) -> None:
        self.entity = entity
        self.current = current
        self.attempted = attempted
        super().__init__(f"{entity} is '{current}'; cannot move to '{attempted}'")


class CancellationWindowClosed(DeliveryError, InvalidStateError):
    """Customers may only cancel while the order is pending or approved."""

    def __init__(self, order_id: str, current: str) -> None:
        self.order_id = order_id
        self.current = current
        super().__init__(f"Order {order_id} is '{current}'; the cancellation window has closed")


class AlreadyResponded(DeliveryError, InvalidStateError):
    """The partner already recorded a decision for this delivery request."""

    def __init__(self, request_id: str, partner_id: str) -> None:
        self.request_id = request_id
        self.partner_id = partner_id
        super().__init__(f"Partner {partner_id} already responded to delivery request {request_id}")


# ---------------------------------------------------------------------------
# Refused operations
# ---------------------------------------------------------------------------
class NotAuthorized(DeliveryError, InvalidOperationError):
    """The actor may not drive this operation on this entity."""

    def __init__(self, actor_id: str, role: str, action: str) -> None:
        self.actor_id = actor_id
        self.role = role
        self.action = action
        super().__init__(f"{role} {actor_id} is not allowed to {action}")


class NoAvailablePartner(DeliveryError, InvalidOperationError):
    """No eligible partner could be selected. The order stays approved."""

    retryable = True

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"No delivery partner is available for order {order_id}")


class VendorLocationUnset(DeliveryError, InvalidOperationError):
    """The vendor has not registered a store location yet."""

    def __init__(self, vendor_id: str) -> None:
        self.vendor_id = vendor_id
        super().__init__(f"Vendor {vendor_id} has no registered location")


# ---------------------------------------------------------------------------
# Storage failures
# ---------------------------------------------------------------------------
TRANSIENT_ERRORS = (ConnectionError, TimeoutError, DatabaseError, TransactionError)


def is_transient(exc: BaseException) -> bool:
    """True when ``exc`` is a storage-layer failure worth retrying later."""
    return isinstance(exc, TRANSIENT_ERRORS)
