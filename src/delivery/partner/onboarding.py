"""Partner onboarding: applications, admin review and partner registration.

Approval is recorded on the application; the DeliveryPartner itself is
registered by the event handler below so each transaction writes a single
aggregate.
"""

from enum import Enum

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from delivery.authority import actor_of, ensure_admin, ensure_role
from delivery.domain import delivery
from delivery.identity import Role
from delivery.partner.events import PartnerApplicationApproved
from delivery.partner.partner import (
    ApplicationStatus,
    DeliveryPartner,
    PartnerApplication,
    VehicleType,
)

logger = structlog.get_logger(__name__)


class ReviewDecision(Enum):
    APPROVE = "approve"
    REJECT = "reject"


@delivery.command(part_of="PartnerApplication")
class SubmitPartnerApplication:
    """Apply to join the delivery partner pool."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    full_name = String(required=True, max_length=200)
    email = String(required=True, max_length=254)
    phone = String(required=True, max_length=30)
    vehicle_type = String(required=True, choices=VehicleType)
    vehicle_number = String(max_length=50)


@delivery.command(part_of="PartnerApplication")
class ReviewPartnerApplication:
    """Approve or reject a pending partner application (admin only)."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    application_id = Identifier(required=True)
    decision = String(required=True, choices=ReviewDecision)
    notes = String(max_length=500)


@delivery.command_handler(part_of=PartnerApplication)
class PartnerApplicationHandler:
    @handle(SubmitPartnerApplication)
    def submit_application(self, command):
        actor = actor_of(command)
        # Any signed-in user except staff roles may apply
        ensure_role(actor, {Role.CUSTOMER, Role.DELIVERY_PARTNER}, "apply as a delivery partner")

        repo = current_domain.repository_for(PartnerApplication)
        pending = repo._dao.query.filter(
            user_id=actor.id,
            status=ApplicationStatus.SUBMITTED.value,
        ).all()
        if pending.total:
            raise ValidationError({"user_id": ["An application is already awaiting review"]})
        if current_domain.repository_for(DeliveryPartner).get_or_none(actor.id) is not None:
            raise ValidationError({"user_id": ["Already registered as a delivery partner"]})

        application = PartnerApplication.submit(
            user_id=actor.id,
            full_name=command.full_name,
            email=command.email,
            phone=command.phone,
            vehicle_type=command.vehicle_type,
            vehicle_number=command.vehicle_number,
        )
        repo.add(application)
        return str(application.id)

    @handle(ReviewPartnerApplication)
    def review_application(self, command):
        actor = actor_of(command)
        ensure_admin(actor, "review partner applications")

        repo = current_domain.repository_for(PartnerApplication)
        application = repo.get(command.application_id)
        if ReviewDecision(command.decision) == ReviewDecision.APPROVE:
            application.approve(reviewed_by=actor.id)
        else:
            application.reject(reviewed_by=actor.id, notes=command.notes)
        repo.add(application)


@delivery.event_handler(part_of=PartnerApplication)
class PartnerRegistrationEventHandler:
    """Registers a verified, active partner once an application is approved."""

    @handle(PartnerApplicationApproved)
    def on_application_approved(self, event: PartnerApplicationApproved) -> None:
        application = current_domain.repository_for(PartnerApplication).get(event.application_id)
        repo = current_domain.repository_for(DeliveryPartner)
        if repo.get_or_none(str(application.user_id)) is not None:
            logger.info("Partner already registered", partner_id=str(application.user_id))
            return

        partner = DeliveryPartner.register(
            user_id=str(application.user_id),
            full_name=application.full_name,
            vehicle_type=application.vehicle_type,
            phone=application.phone,
            vehicle_number=application.vehicle_number,
        )
        repo.add(partner)
        logger.info(
            "Delivery partner registered",
            partner_id=str(partner.id),
            application_id=str(application.id),
        )
