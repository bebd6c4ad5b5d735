"""Pydantic API schemas for the delivery service.

These are the external API contracts, separate from domain commands. Request
bodies never carry a role: the actor always comes from the bearer token.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class OrderItemRequest(BaseModel):
    product_id: str
    name: str
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1)


class PlaceOrderRequest(BaseModel):
    customer_id: str | None = None
    vendor_id: str
    items: list[OrderItemRequest]
    total_amount: float = Field(ge=0)
    payment_method: str | None = None
    payment_status: Literal["pending", "paid"] = "pending"
    delivery_address: str | None = None
    delivery_latitude: float | None = Field(default=None, ge=-90, le=90)
    delivery_longitude: float | None = Field(default=None, ge=-180, le=180)


class ReasonRequest(BaseModel):
    reason: str | None = None


class RespondRequest(BaseModel):
    decision: Literal["accepted", "rejected"]


class PositionReportRequest(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    recorded_at: datetime | None = None


class LocationRequest(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class RegisterVendorRequest(BaseModel):
    store_name: str


class PartnerApplicationRequest(BaseModel):
    full_name: str
    email: str
    phone: str
    vehicle_type: Literal["bicycle", "motorcycle", "scooter", "car"]
    vehicle_number: str | None = None


class ReviewApplicationRequest(BaseModel):
    decision: Literal["approve", "reject"]
    notes: str | None = None


class VerificationRequest(BaseModel):
    is_verified: bool


class AvailabilityRequest(BaseModel):
    is_active: bool


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str


class IdResponse(BaseModel):
    id: str


class OrderIdResponse(BaseModel):
    order_id: str


class AssignmentResponse(BaseModel):
    order_id: str
    partner_id: str
    request_id: str | None = None
    status: str


class OrderItemResponse(BaseModel):
    product_id: str
    name: str
    unit_price: float
    quantity: int


class OrderResponse(BaseModel):
    order_id: str
    customer_id: str
    vendor_id: str
    delivery_status: str
    payment_status: str | None = None
    total_amount: float
    items: list[OrderItemResponse]
    assigned_partner_id: str | None = None
    active_request_id: str | None = None
    delivery_address: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    approved_at: datetime | None = None
    picked_up_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None


class PartnerResponseEntry(BaseModel):
    partner_id: str
    decision: str
    responded_at: datetime


class DeliveryRequestResponse(BaseModel):
    request_id: str
    order_id: str
    vendor_id: str
    partner_id: str | None = None
    status: str
    distance_km: float | None = None
    responses: list[PartnerResponseEntry]
    created_at: datetime | None = None


class PositionResponse(BaseModel):
    order_id: str
    found: bool
    latitude: float | None = None
    longitude: float | None = None
    recorded_at: datetime | None = None


class DirectionsResponse(BaseModel):
    order_id: str
    leg: str
    url: str


class BoardEntryResponse(BaseModel):
    order_id: str
    customer_id: str
    vendor_id: str
    partner_id: str | None = None
    request_id: str | None = None
    delivery_status: str
    item_count: int | None = None
    total_amount: float | None = None
    placed_at: datetime | None = None
    updated_at: datetime | None = None


class BoardResponse(BaseModel):
    entries: list[BoardEntryResponse]
