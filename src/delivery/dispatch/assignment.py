"""Dispatch Engine: bind the nearest eligible partner to an approved order.

The order's status check, the new DeliveryRequest and the order's move to
``assigned`` all happen in one handler invocation, so they commit together
or not at all. Two dispatchers racing on the same order both create a
request in memory, but only the first commit passes the order's version
check. The loser's retry then finds the order already assigned.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from delivery.authority import actor_of, ensure_dispatcher_for
from delivery.dispatch.delivery_request import ACTIVE_STATUSES, DeliveryRequest, RequestStatus
from delivery.dispatch.selection import Candidate, select_nearest
from delivery.domain import delivery
from delivery.errors import NoAvailablePartner, StaleStateError, VendorLocationUnset
from delivery.identity import Role
from delivery.order.order import DeliveryStatus, Order
from delivery.partner.partner import DeliveryPartner
from delivery.vendor.vendor import Vendor

logger = structlog.get_logger(__name__)


@delivery.command(part_of="DeliveryRequest")
class AssignDelivery:
    """Select and bind a delivery partner to an approved order."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    order_id = Identifier(required=True)


def _active_statuses() -> list[str]:
    return [status.value for status in ACTIVE_STATUSES]


def requests_for_order(order_id: str) -> list[DeliveryRequest]:
    repo = current_domain.repository_for(DeliveryRequest)
    return repo._dao.query.filter(order_id=order_id).order_by("created_at").all().items


def excluded_partners(order_id: str) -> set[str]:
    """Partners who already declined this order."""
    repo = current_domain.repository_for(DeliveryRequest)
    declined = repo._dao.query.filter(
        order_id=order_id,
        status=RequestStatus.REJECTED_BY_PARTNER.value,
    ).all()
    return {str(request.partner_id) for request in declined.items}


def _busy_partners(limit: int) -> set[str]:
    """Partners already carrying ``limit`` live requests. 0 disables the cap."""
    if not limit:
        return set()

    repo = current_domain.repository_for(DeliveryRequest)
    live = repo._dao.query.filter(status__in=_active_statuses()).all()
    counts: dict[str, int] = {}
    for request in live.items:
        counts[str(request.partner_id)] = counts.get(str(request.partner_id), 0) + 1
    return {partner_id for partner_id, count in counts.items() if count >= limit}


def eligible_candidates() -> list[Candidate]:
    """Active, verified partners with a known home location."""
    repo = current_domain.repository_for(DeliveryPartner)
    partners = repo._dao.query.filter(is_active=True, is_verified=True).all()
    return [
        Candidate(
            partner_id=str(partner.id),
            latitude=partner.latitude,
            longitude=partner.longitude,
            created_at=partner.created_at,
        )
        for partner in partners.items
        if partner.has_location
    ]


@delivery.command_handler(part_of=DeliveryRequest)
class AssignmentHandler:
    @handle(AssignDelivery)
    def assign(self, command):
        actor = actor_of(command)
        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)

        ensure_dispatcher_for(actor, order.vendor_id)
        order.ensure_status(DeliveryStatus.APPROVED, DeliveryStatus.ASSIGNED)

        vendor = current_domain.repository_for(Vendor).get_or_none(str(order.vendor_id))
        if vendor is None or not vendor.has_location:
            logger.warning("Dispatch refused: vendor location unset", order_id=str(order.id), vendor_id=str(order.vendor_id))
            raise VendorLocationUnset(str(order.vendor_id))

        live = [request for request in requests_for_order(str(order.id)) if request.is_active]
        if live:
            raise StaleStateError("Order", live[0].status, DeliveryStatus.ASSIGNED.value)

        excluded = excluded_partners(str(order.id))
        excluded |= _busy_partners(int(getattr(current_domain, "MAX_ACTIVE_ASSIGNMENTS_PER_PARTNER", 0) or 0))
        selection = select_nearest(
            origin=(vendor.latitude, vendor.longitude),
            candidates=eligible_candidates(),
            excluded=excluded,
            max_radius_km=float(getattr(current_domain, "MAX_DISPATCH_RADIUS_KM", 0) or 0),
        )
        if selection is None:
            logger.warning("No delivery partner available", order_id=str(order.id), excluded=sorted(excluded))
            raise NoAvailablePartner(str(order.id))

        request = DeliveryRequest.bind(
            order_id=str(order.id),
            vendor_id=str(order.vendor_id),
            partner_id=selection.partner_id,
            distance_km=selection.distance_km,
        )
        order.mark_assigned(selection.partner_id, str(request.id), selection.distance_km)

        current_domain.repository_for(DeliveryRequest).add(request)
        order_repo.add(order)

        logger.info(
            "Partner assigned",
            order_id=str(order.id),
            partner_id=selection.partner_id,
            request_id=str(request.id),
            distance_km=selection.distance_km,
        )
        return selection.partner_id
