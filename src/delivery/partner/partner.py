"""DeliveryPartner and PartnerApplication aggregates.

A partner's identity is its user account id. Only partners that are both
verified and active enter the dispatch candidate pool, and only those with a
self-reported home location can be ranked by distance.

Application State Machine:
    SUBMITTED -> APPROVED   (registers a verified, active DeliveryPartner)
    SUBMITTED -> REJECTED
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, String

from delivery.domain import delivery
from delivery.partner.events import (
    DeliveryPartnerRegistered,
    PartnerApplicationApproved,
    PartnerApplicationRejected,
    PartnerApplicationSubmitted,
    PartnerEligibilityChanged,
    PartnerHomeLocationSet,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class VehicleType(Enum):
    BICYCLE = "bicycle"
    MOTORCYCLE = "motorcycle"
    SCOOTER = "scooter"
    CAR = "car"


class ApplicationStatus(Enum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


# ---------------------------------------------------------------------------
# Delivery Partner
# ---------------------------------------------------------------------------
@delivery.aggregate
class DeliveryPartner:
    full_name = String(required=True, max_length=200)
    phone = String(max_length=30)
    vehicle_type = String(choices=VehicleType, default=VehicleType.BICYCLE.value)
    vehicle_number = String(max_length=50)
    is_verified = Boolean(default=False)
    is_active = Boolean(default=False)
    latitude = Float(min_value=-90.0, max_value=90.0)
    longitude = Float(min_value=-180.0, max_value=180.0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(
        cls,
        user_id: str,
        full_name: str,
        vehicle_type: str,
        phone: str | None = None,
        vehicle_number: str | None = None,
        is_verified: bool = True,
        is_active: bool = True,
    ):
        now = datetime.now(UTC)
        partner = cls(
            id=user_id,
            full_name=full_name,
            phone=phone,
            vehicle_type=vehicle_type,
            vehicle_number=vehicle_number,
            is_verified=is_verified,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        partner.raise_(
            DeliveryPartnerRegistered(
                partner_id=user_id,
                full_name=full_name,
                vehicle_type=vehicle_type,
                is_verified=is_verified,
                is_active=is_active,
                registered_at=now,
            )
        )
        return partner

    @property
    def is_eligible(self) -> bool:
        return bool(self.is_active and self.is_verified)

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def set_eligibility(self, changed_by: str, is_verified: bool | None = None, is_active: bool | None = None) -> None:
        if is_verified is None and is_active is None:
            raise ValidationError({"eligibility": ["Nothing to change"]})

        now = datetime.now(UTC)
        if is_verified is not None:
            self.is_verified = is_verified
        if is_active is not None:
            self.is_active = is_active
        self.updated_at = now
        self.raise_(
            PartnerEligibilityChanged(
                partner_id=str(self.id),
                is_verified=self.is_verified,
                is_active=self.is_active,
                changed_by=changed_by,
                changed_at=now,
            )
        )

    def set_home_location(self, latitude: float, longitude: float) -> None:
        now = datetime.now(UTC)
        self.latitude = latitude
        self.longitude = longitude
        self.updated_at = now
        self.raise_(
            PartnerHomeLocationSet(
                partner_id=str(self.id),
                latitude=latitude,
                longitude=longitude,
                updated_at=now,
            )
        )


# ---------------------------------------------------------------------------
# Partner Application
# ---------------------------------------------------------------------------
@delivery.aggregate
class PartnerApplication:
    user_id = Identifier(required=True)
    full_name = String(required=True, max_length=200)
    email = String(required=True, max_length=254)
    phone = String(required=True, max_length=30)
    vehicle_type = String(required=True, choices=VehicleType)
    vehicle_number = String(max_length=50)
    status = String(choices=ApplicationStatus, default=ApplicationStatus.SUBMITTED.value)
    reviewed_by = Identifier()
    notes = String(max_length=500)
    submitted_at = DateTime()
    reviewed_at = DateTime()

    @classmethod
    def submit(
        cls,
        user_id: str,
        full_name: str,
        email: str,
        phone: str,
        vehicle_type: str,
        vehicle_number: str | None = None,
    ):
        now = datetime.now(UTC)
        application = cls(
            user_id=user_id,
            full_name=full_name,
            email=email,
            phone=phone,
            vehicle_type=vehicle_type,
            vehicle_number=vehicle_number,
            status=ApplicationStatus.SUBMITTED.value,
            submitted_at=now,
        )
        application.raise_(
            PartnerApplicationSubmitted(
                application_id=str(application.id),
                user_id=user_id,
                full_name=full_name,
                vehicle_type=vehicle_type,
                submitted_at=now,
            )
        )
        return application

    def _assert_submitted(self) -> None:
        if ApplicationStatus(self.status) != ApplicationStatus.SUBMITTED:
            raise ValidationError({"status": [f"Application was already {self.status}"]})

    def approve(self, reviewed_by: str) -> None:
        self._assert_submitted()
        now = datetime.now(UTC)
        self.status = ApplicationStatus.APPROVED.value
        self.reviewed_by = reviewed_by
        self.reviewed_at = now
        self.raise_(
            PartnerApplicationApproved(
                application_id=str(self.id),
                user_id=str(self.user_id),
                reviewed_by=reviewed_by,
                reviewed_at=now,
            )
        )

    def reject(self, reviewed_by: str, notes: str | None = None) -> None:
        self._assert_submitted()
        now = datetime.now(UTC)
        self.status = ApplicationStatus.REJECTED.value
        self.reviewed_by = reviewed_by
        self.notes = notes
        self.reviewed_at = now
        self.raise_(
            PartnerApplicationRejected(
                application_id=str(self.id),
                user_id=str(self.user_id),
                reviewed_by=reviewed_by,
                notes=notes,
                reviewed_at=now,
            )
        )
