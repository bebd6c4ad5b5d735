"""DeliveryRequest aggregate: the binding between an order and its partner.

The request keeps its own small state, which the Order's delivery status
mirrors. Partner decisions are appended to an immutable response log, one
entry per partner.

State Machine:
    ASSIGNED -> ACCEPTED -> PICKED_UP -> OUT_FOR_DELIVERY -> DELIVERED
    ASSIGNED -> REJECTED_BY_PARTNER
    {any non-terminal} -> CANCELLED

At most one non-terminal request exists per order; dispatch refuses to bind
a second one while another is live.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, HasMany, Identifier, String

from delivery.domain import delivery
from delivery.errors import AlreadyResponded, StaleStateError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class RequestStatus(Enum):
    ASSIGNED = "assigned"
    ACCEPTED = "accepted"
    REJECTED_BY_PARTNER = "rejected_by_partner"
    PICKED_UP = "picked_up"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Decision(Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


_VALID_TRANSITIONS = {
    RequestStatus.ASSIGNED: {
        RequestStatus.ACCEPTED,
        RequestStatus.REJECTED_BY_PARTNER,
        RequestStatus.CANCELLED,
    },
    RequestStatus.ACCEPTED: {RequestStatus.PICKED_UP, RequestStatus.CANCELLED},
    RequestStatus.PICKED_UP: {RequestStatus.OUT_FOR_DELIVERY, RequestStatus.CANCELLED},
    RequestStatus.OUT_FOR_DELIVERY: {RequestStatus.DELIVERED, RequestStatus.CANCELLED},
    RequestStatus.REJECTED_BY_PARTNER: set(),  # terminal
    RequestStatus.DELIVERED: set(),  # terminal
    RequestStatus.CANCELLED: set(),  # terminal
}

ACTIVE_STATUSES = frozenset(status for status, targets in _VALID_TRANSITIONS.items() if targets)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@delivery.entity(part_of="DeliveryRequest")
class DeliveryPartnerResponse:
    """A partner's decision on a request. Append-only."""

    partner_id = Identifier(required=True)
    decision = String(required=True, choices=Decision)
    responded_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@delivery.aggregate
class DeliveryRequest:
    order_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    partner_id = Identifier()
    status = String(choices=RequestStatus, default=RequestStatus.ASSIGNED.value)
    distance_km = Float(min_value=0.0)
    responses = HasMany(DeliveryPartnerResponse)
    created_at = DateTime()
    updated_at = DateTime()
    picked_up_at = DateTime()
    delivered_at = DateTime()

    @classmethod
    def bind(cls, order_id: str, vendor_id: str, partner_id: str, distance_km: float):
        """Create a request already bound to the selected partner."""
        now = datetime.now(UTC)
        return cls(
            order_id=order_id,
            vendor_id=vendor_id,
            partner_id=partner_id,
            status=RequestStatus.ASSIGNED.value,
            distance_km=distance_km,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_active(self) -> bool:
        return RequestStatus(self.status) in ACTIVE_STATUSES

    def _compare_and_set(self, expected: RequestStatus, target: RequestStatus) -> datetime:
        current = RequestStatus(self.status)
        if current != expected or target not in _VALID_TRANSITIONS[current]:
            raise StaleStateError("DeliveryRequest", current.value, target.value)
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        return now

    # -------------------------------------------------------------------
    # Partner response
    # -------------------------------------------------------------------
    def has_response_from(self, partner_id: str) -> bool:
        return any(str(r.partner_id) == partner_id for r in (self.responses or []))

    def respond(self, partner_id: str, decision: Decision) -> None:
        if self.has_response_from(partner_id):
            raise AlreadyResponded(str(self.id), partner_id)

        target = RequestStatus.ACCEPTED if decision == Decision.ACCEPTED else RequestStatus.REJECTED_BY_PARTNER
        now = self._compare_and_set(RequestStatus.ASSIGNED, target)
        self.add_responses(
            DeliveryPartnerResponse(
                partner_id=partner_id,
                decision=decision.value,
                responded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------
    def mark_picked_up(self) -> None:
        self.picked_up_at = self._compare_and_set(RequestStatus.ACCEPTED, RequestStatus.PICKED_UP)

    def mark_out_for_delivery(self) -> None:
        self._compare_and_set(RequestStatus.PICKED_UP, RequestStatus.OUT_FOR_DELIVERY)

    def mark_delivered(self) -> None:
        self.delivered_at = self._compare_and_set(RequestStatus.OUT_FOR_DELIVERY, RequestStatus.DELIVERED)

    def cancel(self) -> None:
        current = RequestStatus(self.status)
        self._compare_and_set(current, RequestStatus.CANCELLED)
