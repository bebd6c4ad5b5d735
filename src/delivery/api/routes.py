"""FastAPI routes for the delivery service."""

import json

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from delivery.api.dependencies import current_actor
from delivery.api.schemas import (
    AssignmentResponse,
    AvailabilityRequest,
    BoardEntryResponse,
    BoardResponse,
    DeliveryRequestResponse,
    DirectionsResponse,
    IdResponse,
    LocationRequest,
    OrderIdResponse,
    OrderItemResponse,
    OrderResponse,
    PartnerApplicationRequest,
    PartnerResponseEntry,
    PlaceOrderRequest,
    PositionReportRequest,
    PositionResponse,
    ReasonRequest,
    RegisterVendorRequest,
    RespondRequest,
    ReviewApplicationRequest,
    StatusResponse,
    VerificationRequest,
)
from delivery.authority import actor_fields, ensure_bound_partner, is_party_to
from delivery.dispatch.assignment import AssignDelivery
from delivery.dispatch.delivery_request import DeliveryRequest
from delivery.dispatch.progress import MarkDelivered, MarkOutForDelivery, MarkPickedUp
from delivery.dispatch.response import RespondToRequest
from delivery.errors import NotAuthorized
from delivery.identity import Actor
from delivery.navigation import Leg, directions_for_leg
from delivery.order.cancellation import CancelOrder
from delivery.order.cleanup import DismissOrder, PurgeOrder
from delivery.order.order import Order
from delivery.order.placement import PlaceOrder
from delivery.order.review import ApproveOrder, RejectOrder
from delivery.partner.management import SetPartnerEligibility, SetPartnerHomeLocation
from delivery.partner.onboarding import ReviewPartnerApplication, SubmitPartnerApplication
from delivery.partner.partner import DeliveryPartner
from delivery.projections.delivery_board import board_for
from delivery.tracking.reporting import ReportPosition, latest_position
from delivery.vendor.registration import RegisterVendor, SetVendorLocation
from delivery.vendor.vendor import Vendor


def _load_order_for(actor: Actor, order_id: str, action: str) -> Order:
    order = current_domain.repository_for(Order).get(order_id)
    if not is_party_to(actor, order.customer_id, order.vendor_id, order.assigned_partner_id):
        raise NotAuthorized(actor.id, actor.role.value, action)
    return order


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        customer_id=str(order.customer_id),
        vendor_id=str(order.vendor_id),
        delivery_status=order.delivery_status,
        payment_status=order.payment_status,
        total_amount=order.total_amount,
        items=[
            OrderItemResponse(
                product_id=str(item.product_id),
                name=item.name,
                unit_price=item.unit_price,
                quantity=item.quantity,
            )
            for item in order.items
        ],
        assigned_partner_id=str(order.assigned_partner_id) if order.assigned_partner_id else None,
        active_request_id=str(order.active_request_id) if order.active_request_id else None,
        delivery_address=order.delivery_address,
        cancellation_reason=order.cancellation_reason,
        created_at=order.created_at,
        approved_at=order.approved_at,
        picked_up_at=order.picked_up_at,
        delivered_at=order.delivered_at,
        cancelled_at=order.cancelled_at,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest, actor: Actor = Depends(current_actor)) -> OrderIdResponse:
    """Hand a completed checkout over as a pending order."""
    command = PlaceOrder(
        **actor_fields(actor),
        customer_id=body.customer_id or actor.id,
        vendor_id=body.vendor_id,
        items=json.dumps([item.model_dump() for item in body.items]),
        total_amount=body.total_amount,
        payment_method=body.payment_method,
        payment_status=body.payment_status,
        delivery_address=body.delivery_address,
        delivery_latitude=body.delivery_latitude,
        delivery_longitude=body.delivery_longitude,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, actor: Actor = Depends(current_actor)) -> OrderResponse:
    return _order_response(_load_order_for(actor, order_id, "view this order"))


@order_router.put("/{order_id}/approve", response_model=StatusResponse)
async def approve_order(order_id: str, actor: Actor = Depends(current_actor)) -> StatusResponse:
    current_domain.process(ApproveOrder(**actor_fields(actor), order_id=order_id), asynchronous=False)
    return StatusResponse(status="approved")


@order_router.put("/{order_id}/reject", response_model=StatusResponse)
async def reject_order(
    order_id: str,
    body: ReasonRequest | None = None,
    actor: Actor = Depends(current_actor),
) -> StatusResponse:
    command = RejectOrder(**actor_fields(actor), order_id=order_id, reason=body.reason if body else None)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="rejected_by_vendor")


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(
    order_id: str,
    body: ReasonRequest | None = None,
    actor: Actor = Depends(current_actor),
) -> StatusResponse:
    command = CancelOrder(**actor_fields(actor), order_id=order_id, reason=body.reason if body else None)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="cancelled")


@order_router.put("/{order_id}/dismiss", response_model=StatusResponse)
async def dismiss_order(order_id: str, actor: Actor = Depends(current_actor)) -> StatusResponse:
    """Hide a finished order from the caller's own board."""
    current_domain.process(DismissOrder(**actor_fields(actor), order_id=order_id), asynchronous=False)
    return StatusResponse(status="dismissed")


@order_router.post("/{order_id}/assign", response_model=AssignmentResponse)
async def assign_order(order_id: str, actor: Actor = Depends(current_actor)) -> AssignmentResponse:
    """Dispatch the nearest eligible partner to an approved order."""
    partner_id = current_domain.process(AssignDelivery(**actor_fields(actor), order_id=order_id), asynchronous=False)
    order = current_domain.repository_for(Order).get(order_id)
    return AssignmentResponse(
        order_id=order_id,
        partner_id=partner_id,
        request_id=str(order.active_request_id) if order.active_request_id else None,
        status=order.delivery_status,
    )


@order_router.delete("/{order_id}", response_model=StatusResponse)
async def purge_order(order_id: str, actor: Actor = Depends(current_actor)) -> StatusResponse:
    """Admin hard delete of a terminal order."""
    current_domain.process(PurgeOrder(**actor_fields(actor), order_id=order_id), asynchronous=False)
    return StatusResponse(status="purged")


@order_router.get("/{order_id}/position", response_model=PositionResponse)
async def get_latest_position(order_id: str, actor: Actor = Depends(current_actor)) -> PositionResponse:
    _load_order_for(actor, order_id, "track this order")
    position = latest_position(order_id)
    if position is None:
        return PositionResponse(order_id=order_id, found=False)
    return PositionResponse(
        order_id=order_id,
        found=True,
        latitude=position.latitude,
        longitude=position.longitude,
        recorded_at=position.recorded_at,
    )


@order_router.post("/{order_id}/positions", status_code=202, response_model=StatusResponse)
async def report_position(
    order_id: str,
    body: PositionReportRequest,
    actor: Actor = Depends(current_actor),
) -> StatusResponse:
    """Accept a position sample. Out-of-window samples are dropped, not refused."""
    command = ReportPosition(
        **actor_fields(actor),
        order_id=order_id,
        latitude=body.latitude,
        longitude=body.longitude,
        recorded_at=body.recorded_at,
    )
    outcome = current_domain.process(command, asynchronous=False)
    return StatusResponse(status=outcome)


@order_router.get("/{order_id}/directions", response_model=DirectionsResponse)
async def get_directions(
    order_id: str,
    leg: Leg = Leg.TO_CUSTOMER,
    actor: Actor = Depends(current_actor),
) -> DirectionsResponse:
    """Maps link for the bound partner's next leg."""
    order = current_domain.repository_for(Order).get(order_id)
    if not actor.is_admin:
        ensure_bound_partner(actor, order.assigned_partner_id, "get directions for this order")

    vendor = current_domain.repository_for(Vendor).get_or_none(str(order.vendor_id))
    position = latest_position(order_id)
    current = position.coordinates if position else None
    if current is None and order.assigned_partner_id:
        partner = current_domain.repository_for(DeliveryPartner).get_or_none(str(order.assigned_partner_id))
        if partner is not None and partner.has_location:
            current = (partner.latitude, partner.longitude)

    url = directions_for_leg(order, vendor, leg, current=current)
    return DirectionsResponse(order_id=order_id, leg=leg.value, url=url)


# ---------------------------------------------------------------------------
# Delivery Request Router
# ---------------------------------------------------------------------------
request_router = APIRouter(prefix="/delivery-requests", tags=["delivery-requests"])


@request_router.get("/{request_id}", response_model=DeliveryRequestResponse)
async def get_delivery_request(request_id: str, actor: Actor = Depends(current_actor)) -> DeliveryRequestResponse:
    request = current_domain.repository_for(DeliveryRequest).get(request_id)
    order = current_domain.repository_for(Order).get_or_none(str(request.order_id))
    customer_id = order.customer_id if order else None
    if not is_party_to(actor, customer_id, request.vendor_id, request.partner_id):
        raise NotAuthorized(actor.id, actor.role.value, "view this delivery request")

    return DeliveryRequestResponse(
        request_id=str(request.id),
        order_id=str(request.order_id),
        vendor_id=str(request.vendor_id),
        partner_id=str(request.partner_id) if request.partner_id else None,
        status=request.status,
        distance_km=request.distance_km,
        responses=[
            PartnerResponseEntry(
                partner_id=str(response.partner_id),
                decision=response.decision,
                responded_at=response.responded_at,
            )
            for response in request.responses
        ],
        created_at=request.created_at,
    )


@request_router.put("/{request_id}/respond", response_model=StatusResponse)
async def respond_to_request(
    request_id: str,
    body: RespondRequest,
    actor: Actor = Depends(current_actor),
) -> StatusResponse:
    command = RespondToRequest(**actor_fields(actor), request_id=request_id, decision=body.decision)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="accepted" if body.decision == "accepted" else "rejected_by_partner")


@request_router.put("/{request_id}/picked-up", response_model=StatusResponse)
async def mark_picked_up(request_id: str, actor: Actor = Depends(current_actor)) -> StatusResponse:
    current_domain.process(MarkPickedUp(**actor_fields(actor), request_id=request_id), asynchronous=False)
    return StatusResponse(status="picked_up")


@request_router.put("/{request_id}/out-for-delivery", response_model=StatusResponse)
async def mark_out_for_delivery(request_id: str, actor: Actor = Depends(current_actor)) -> StatusResponse:
    current_domain.process(MarkOutForDelivery(**actor_fields(actor), request_id=request_id), asynchronous=False)
    return StatusResponse(status="out_for_delivery")


@request_router.put("/{request_id}/delivered", response_model=StatusResponse)
async def mark_delivered(request_id: str, actor: Actor = Depends(current_actor)) -> StatusResponse:
    current_domain.process(MarkDelivered(**actor_fields(actor), request_id=request_id), asynchronous=False)
    return StatusResponse(status="delivered")


# ---------------------------------------------------------------------------
# Vendor Router
# ---------------------------------------------------------------------------
vendor_router = APIRouter(prefix="/vendors", tags=["vendors"])


@vendor_router.post("", status_code=201, response_model=IdResponse)
async def register_vendor(body: RegisterVendorRequest, actor: Actor = Depends(current_actor)) -> IdResponse:
    result = current_domain.process(
        RegisterVendor(**actor_fields(actor), store_name=body.store_name),
        asynchronous=False,
    )
    return IdResponse(id=result)


@vendor_router.put("/me/location", response_model=StatusResponse)
async def set_vendor_location(body: LocationRequest, actor: Actor = Depends(current_actor)) -> StatusResponse:
    command = SetVendorLocation(
        **actor_fields(actor),
        vendor_id=actor.id,
        latitude=body.latitude,
        longitude=body.longitude,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="location_set")


# ---------------------------------------------------------------------------
# Partner Routers
# ---------------------------------------------------------------------------
application_router = APIRouter(prefix="/partner-applications", tags=["partners"])


@application_router.post("", status_code=201, response_model=IdResponse)
async def submit_application(body: PartnerApplicationRequest, actor: Actor = Depends(current_actor)) -> IdResponse:
    command = SubmitPartnerApplication(
        **actor_fields(actor),
        full_name=body.full_name,
        email=body.email,
        phone=body.phone,
        vehicle_type=body.vehicle_type,
        vehicle_number=body.vehicle_number,
    )
    result = current_domain.process(command, asynchronous=False)
    return IdResponse(id=result)


@application_router.put("/{application_id}/review", response_model=StatusResponse)
async def review_application(
    application_id: str,
    body: ReviewApplicationRequest,
    actor: Actor = Depends(current_actor),
) -> StatusResponse:
    command = ReviewPartnerApplication(
        **actor_fields(actor),
        application_id=application_id,
        decision=body.decision,
        notes=body.notes,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="approved" if body.decision == "approve" else "rejected")


partner_router = APIRouter(prefix="/partners", tags=["partners"])


@partner_router.put("/me/location", response_model=StatusResponse)
async def set_home_location(body: LocationRequest, actor: Actor = Depends(current_actor)) -> StatusResponse:
    command = SetPartnerHomeLocation(
        **actor_fields(actor),
        partner_id=actor.id,
        latitude=body.latitude,
        longitude=body.longitude,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="location_set")


@partner_router.put("/{partner_id}/verification", response_model=StatusResponse)
async def set_verification(
    partner_id: str,
    body: VerificationRequest,
    actor: Actor = Depends(current_actor),
) -> StatusResponse:
    command = SetPartnerEligibility(**actor_fields(actor), partner_id=partner_id, is_verified=body.is_verified)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="verified" if body.is_verified else "unverified")


@partner_router.put("/{partner_id}/availability", response_model=StatusResponse)
async def set_availability(
    partner_id: str,
    body: AvailabilityRequest,
    actor: Actor = Depends(current_actor),
) -> StatusResponse:
    command = SetPartnerEligibility(**actor_fields(actor), partner_id=partner_id, is_active=body.is_active)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="active" if body.is_active else "inactive")


# ---------------------------------------------------------------------------
# Board Router
# ---------------------------------------------------------------------------
board_router = APIRouter(prefix="/boards", tags=["boards"])


@board_router.get("/mine", response_model=BoardResponse)
async def my_board(include_dismissed: bool = False, actor: Actor = Depends(current_actor)) -> BoardResponse:
    """The caller's orders, without the ones they dismissed."""
    entries = board_for(actor, include_dismissed=include_dismissed)
    return BoardResponse(
        entries=[
            BoardEntryResponse(
                order_id=str(entry.order_id),
                customer_id=str(entry.customer_id),
                vendor_id=str(entry.vendor_id),
                partner_id=str(entry.partner_id) if entry.partner_id else None,
                request_id=str(entry.request_id) if entry.request_id else None,
                delivery_status=entry.delivery_status,
                item_count=entry.item_count,
                total_amount=entry.total_amount,
                placed_at=entry.placed_at,
                updated_at=entry.updated_at,
            )
            for entry in entries
        ]
    )
