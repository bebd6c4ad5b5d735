"""Delivery partner domain events."""

from protean.fields import Boolean, DateTime, Float, Identifier, String

from delivery.domain import delivery


@delivery.event(part_of="PartnerApplication")
class PartnerApplicationSubmitted:
    """A user applied to deliver for the platform."""

    __version__ = 1

    application_id = Identifier(required=True)
    user_id = Identifier(required=True)
    full_name = String(required=True)
    vehicle_type = String(required=True)
    submitted_at = DateTime(required=True)


@delivery.event(part_of="PartnerApplication")
class PartnerApplicationApproved:
    """An admin approved a partner application."""

    __version__ = 1

    application_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reviewed_by = Identifier(required=True)
    reviewed_at = DateTime(required=True)


@delivery.event(part_of="PartnerApplication")
class PartnerApplicationRejected:
    """An admin rejected a partner application."""

    __version__ = 1

    application_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reviewed_by = Identifier(required=True)
    notes = String(max_length=500)
    reviewed_at = DateTime(required=True)


@delivery.event(part_of="DeliveryPartner")
class DeliveryPartnerRegistered:
    """A delivery partner joined the dispatch pool."""

    __version__ = 1

    partner_id = Identifier(required=True)
    full_name = String(required=True)
    vehicle_type = String(required=True)
    is_verified = Boolean(required=True)
    is_active = Boolean(required=True)
    registered_at = DateTime(required=True)


@delivery.event(part_of="DeliveryPartner")
class PartnerEligibilityChanged:
    """An admin toggled a partner's verification or availability."""

    __version__ = 1

    partner_id = Identifier(required=True)
    is_verified = Boolean(required=True)
    is_active = Boolean(required=True)
    changed_by = Identifier(required=True)
    changed_at = DateTime(required=True)


@delivery.event(part_of="DeliveryPartner")
class PartnerHomeLocationSet:
    """A partner reported the home location dispatch measures from."""

    __version__ = 1

    partner_id = Identifier(required=True)
    latitude = Float(required=True)
    longitude = Float(required=True)
    updated_at = DateTime(required=True)
