"""Order aggregate: the Order Record Store and the Lifecycle State Machine.

Every status change is a guarded compare-and-set. A method names the status
it expects to find; if the loaded order is anywhere else the change is refused
with StaleStateError and nothing is written. At commit, the repository's
version check turns a concurrent writer's success into a conflict, and the
retried handler then sees the fresh status and refuses.

State Machine:
    PENDING -> APPROVED -> ASSIGNED -> ACCEPTED -> PICKED_UP -> OUT_FOR_DELIVERY -> DELIVERED
    PENDING -> REJECTED_BY_VENDOR
    ASSIGNED -> APPROVED                      (partner declined; dispatch again)
    {any non-terminal} -> CANCELLED           (customer only from PENDING/APPROVED)

Payment fields are co-resident but never touched by lifecycle methods.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    List,
    String,
    Text,
)

from delivery.domain import delivery
from delivery.errors import CancellationWindowClosed, StaleStateError
from delivery.identity import Actor
from delivery.order.events import (
    OrderApproved,
    OrderCancelled,
    OrderDelivered,
    OrderDismissed,
    OrderOutForDelivery,
    OrderPickedUp,
    OrderPlaced,
    OrderPurged,
    OrderRejectedByVendor,
    PartnerAccepted,
    PartnerAssigned,
    PartnerDeclined,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class DeliveryStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    ASSIGNED = "assigned"
    ACCEPTED = "accepted"
    PICKED_UP = "picked_up"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REJECTED_BY_VENDOR = "rejected_by_vendor"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


_VALID_TRANSITIONS = {
    DeliveryStatus.PENDING: {
        DeliveryStatus.APPROVED,
        DeliveryStatus.REJECTED_BY_VENDOR,
        DeliveryStatus.CANCELLED,
    },
    DeliveryStatus.APPROVED: {DeliveryStatus.ASSIGNED, DeliveryStatus.CANCELLED},
    DeliveryStatus.ASSIGNED: {
        DeliveryStatus.ACCEPTED,
        DeliveryStatus.APPROVED,
        DeliveryStatus.CANCELLED,
    },
    DeliveryStatus.ACCEPTED: {DeliveryStatus.PICKED_UP, DeliveryStatus.CANCELLED},
    DeliveryStatus.PICKED_UP: {DeliveryStatus.OUT_FOR_DELIVERY, DeliveryStatus.CANCELLED},
    DeliveryStatus.OUT_FOR_DELIVERY: {DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED},
    DeliveryStatus.DELIVERED: set(),  # terminal
    DeliveryStatus.CANCELLED: set(),  # terminal
    DeliveryStatus.REJECTED_BY_VENDOR: set(),  # terminal
}

TERMINAL_STATUSES = frozenset(status for status, targets in _VALID_TRANSITIONS.items() if not targets)

_CUSTOMER_CANCELLABLE_STATUSES = {DeliveryStatus.PENDING, DeliveryStatus.APPROVED}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@delivery.entity(part_of="Order")
class OrderItem:
    """A line item snapshotted at checkout. Never edited afterwards."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@delivery.aggregate
class Order:
    customer_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    items = HasMany(OrderItem)
    total_amount = Float(required=True, min_value=0.0)
    payment_method = String(max_length=50)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    delivery_address = Text()
    delivery_latitude = Float(min_value=-90.0, max_value=90.0)
    delivery_longitude = Float(min_value=-180.0, max_value=180.0)
    delivery_status = String(
        choices=DeliveryStatus,
        default=DeliveryStatus.PENDING.value,
    )
    assigned_partner_id = Identifier()
    active_request_id = Identifier()
    cancellation_reason = String(max_length=500)
    dismissed_by = List(content_type=String(max_length=100))
    created_at = DateTime()
    updated_at = DateTime()
    approved_at = DateTime()
    picked_up_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id: str,
        vendor_id: str,
        items_data: list[dict],
        total_amount: float,
        payment_method: str | None = None,
        payment_status: str = PaymentStatus.PENDING.value,
        delivery_address: str | None = None,
        delivery_latitude: float | None = None,
        delivery_longitude: float | None = None,
    ):
        """Create a pending order from a checkout snapshot."""
        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            vendor_id=vendor_id,
            total_amount=total_amount,
            payment_method=payment_method,
            payment_status=payment_status,
            delivery_address=delivery_address,
            delivery_latitude=delivery_latitude,
            delivery_longitude=delivery_longitude,
            delivery_status=DeliveryStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            order.add_items(OrderItem(**item_data))
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=customer_id,
                vendor_id=vendor_id,
                items=json.dumps(items_data),
                item_count=len(items_data),
                total_amount=total_amount,
                payment_status=order.payment_status,
                delivery_status=order.delivery_status,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Compare-and-set helper
    # -------------------------------------------------------------------
    @property
    def status(self) -> DeliveryStatus:
        return DeliveryStatus(self.delivery_status)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _compare_and_set(self, expected: set[DeliveryStatus], target: DeliveryStatus) -> datetime:
        current = self.status
        if current not in expected or target not in _VALID_TRANSITIONS[current]:
            raise StaleStateError("Order", current.value, target.value)
        now = datetime.now(UTC)
        self.delivery_status = target.value
        self.updated_at = now
        return now

    def ensure_status(self, expected: DeliveryStatus, attempted: DeliveryStatus) -> None:
        """Fail fast before any side work when the order has already moved on."""
        if self.status != expected:
            raise StaleStateError("Order", self.status.value, attempted.value)

    def _keys(self) -> dict:
        return {
            "order_id": str(self.id),
            "customer_id": str(self.customer_id),
            "vendor_id": str(self.vendor_id),
        }

    # -------------------------------------------------------------------
    # Vendor review
    # -------------------------------------------------------------------
    def approve(self, approved_by: str) -> None:
        now = self._compare_and_set({DeliveryStatus.PENDING}, DeliveryStatus.APPROVED)
        self.approved_at = now
        self.raise_(
            OrderApproved(
                **self._keys(),
                delivery_status=self.delivery_status,
                approved_by=approved_by,
                approved_at=now,
            )
        )

    def reject(self, reason: str | None = None) -> None:
        now = self._compare_and_set({DeliveryStatus.PENDING}, DeliveryStatus.REJECTED_BY_VENDOR)
        self.raise_(
            OrderRejectedByVendor(
                **self._keys(),
                delivery_status=self.delivery_status,
                reason=reason,
                rejected_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Dispatch and partner response
    # -------------------------------------------------------------------
    def mark_assigned(self, partner_id: str, request_id: str, distance_km: float) -> None:
        now = self._compare_and_set({DeliveryStatus.APPROVED}, DeliveryStatus.ASSIGNED)
        self.assigned_partner_id = partner_id
        self.active_request_id = request_id
        self.raise_(
            PartnerAssigned(
                **self._keys(),
                partner_id=partner_id,
                request_id=request_id,
                delivery_status=self.delivery_status,
                distance_km=distance_km,
                assigned_at=now,
            )
        )

    def mark_accepted(self) -> None:
        now = self._compare_and_set({DeliveryStatus.ASSIGNED}, DeliveryStatus.ACCEPTED)
        self.raise_(
            PartnerAccepted(
                **self._keys(),
                partner_id=str(self.assigned_partner_id),
                request_id=str(self.active_request_id),
                delivery_status=self.delivery_status,
                accepted_at=now,
            )
        )

    def return_for_redispatch(self) -> None:
        """The bound partner declined: unbind and become dispatchable again."""
        partner_id = str(self.assigned_partner_id)
        request_id = str(self.active_request_id)
        now = self._compare_and_set({DeliveryStatus.ASSIGNED}, DeliveryStatus.APPROVED)
        self.assigned_partner_id = None
        self.active_request_id = None
        self.raise_(
            PartnerDeclined(
                **self._keys(),
                partner_id=partner_id,
                request_id=request_id,
                delivery_status=self.delivery_status,
                declined_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Delivery progress
    # -------------------------------------------------------------------
    def _progress_keys(self) -> dict:
        return {
            **self._keys(),
            "partner_id": str(self.assigned_partner_id),
            "request_id": str(self.active_request_id),
            "delivery_status": self.delivery_status,
        }

    def mark_picked_up(self) -> None:
        now = self._compare_and_set({DeliveryStatus.ACCEPTED}, DeliveryStatus.PICKED_UP)
        self.picked_up_at = now
        self.raise_(OrderPickedUp(**self._progress_keys(), picked_up_at=now))

    def mark_out_for_delivery(self) -> None:
        now = self._compare_and_set({DeliveryStatus.PICKED_UP}, DeliveryStatus.OUT_FOR_DELIVERY)
        self.raise_(OrderOutForDelivery(**self._progress_keys(), departed_at=now))

    def mark_delivered(self) -> None:
        now = self._compare_and_set({DeliveryStatus.OUT_FOR_DELIVERY}, DeliveryStatus.DELIVERED)
        self.delivered_at = now
        self.raise_(OrderDelivered(**self._progress_keys(), delivered_at=now))

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, actor: Actor, reason: str | None = None) -> None:
        """Cancel the order.

        Customers may cancel only while the order is pending or approved;
        admins may cancel any non-terminal order.
        """
        current = self.status
        if not actor.is_admin and current not in _CUSTOMER_CANCELLABLE_STATUSES:
            raise CancellationWindowClosed(str(self.id), current.value)
        if current in TERMINAL_STATUSES:
            raise StaleStateError("Order", current.value, DeliveryStatus.CANCELLED.value)

        partner_id = self.assigned_partner_id
        request_id = self.active_request_id
        allowed = {s for s in _VALID_TRANSITIONS if DeliveryStatus.CANCELLED in _VALID_TRANSITIONS[s]}
        now = self._compare_and_set(allowed, DeliveryStatus.CANCELLED)
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.active_request_id = None
        self.raise_(
            OrderCancelled(
                **self._keys(),
                partner_id=str(partner_id) if partner_id else None,
                request_id=str(request_id) if request_id else None,
                delivery_status=self.delivery_status,
                previous_status=current.value,
                cancelled_by=actor.id,
                cancelled_by_role=actor.role.value,
                reason=reason,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Terminal cleanup
    # -------------------------------------------------------------------
    def dismiss(self, actor: Actor) -> None:
        """Hide a terminal order from the actor's own board."""
        if not self.is_terminal:
            raise StaleStateError("Order", self.delivery_status, "dismissed")
        if actor.id in (self.dismissed_by or []):
            return

        now = datetime.now(UTC)
        self.dismissed_by = [*(self.dismissed_by or []), actor.id]
        self.updated_at = now
        self.raise_(
            OrderDismissed(
                **self._keys(),
                partner_id=str(self.assigned_partner_id) if self.assigned_partner_id else None,
                delivery_status=self.delivery_status,
                dismissed_by=actor.id,
                dismissed_at=now,
            )
        )

    def purge(self, actor: Actor) -> None:
        """Record the purge. The handler deletes the rows afterwards."""
        if not self.is_terminal:
            raise StaleStateError("Order", self.delivery_status, "purged")

        self.raise_(
            OrderPurged(
                **self._keys(),
                partner_id=str(self.assigned_partner_id) if self.assigned_partner_id else None,
                delivery_status=self.delivery_status,
                purged_by=actor.id,
                purged_at=datetime.now(UTC),
            )
        )
