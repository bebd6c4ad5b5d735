"""Admin eligibility toggles and partner self-service location."""

from protean import handle
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from delivery.authority import actor_of, ensure_admin, ensure_bound_partner
from delivery.domain import delivery
from delivery.identity import Role
from delivery.partner.partner import DeliveryPartner


@delivery.command(part_of="DeliveryPartner")
class SetPartnerEligibility:
    """Toggle a partner's verification and/or availability (admin only)."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    partner_id = Identifier(required=True)
    is_verified = Boolean()
    is_active = Boolean()


@delivery.command(part_of="DeliveryPartner")
class SetPartnerHomeLocation:
    """A partner reports the home location dispatch ranks them by."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    partner_id = Identifier(required=True)
    latitude = Float(required=True, min_value=-90.0, max_value=90.0)
    longitude = Float(required=True, min_value=-180.0, max_value=180.0)


@delivery.command_handler(part_of=DeliveryPartner)
class PartnerManagementHandler:
    @handle(SetPartnerEligibility)
    def set_eligibility(self, command):
        actor = actor_of(command)
        ensure_admin(actor, "change partner eligibility")

        repo = current_domain.repository_for(DeliveryPartner)
        partner = repo.get(command.partner_id)
        partner.set_eligibility(
            changed_by=actor.id,
            is_verified=command.is_verified,
            is_active=command.is_active,
        )
        repo.add(partner)

    @handle(SetPartnerHomeLocation)
    def set_home_location(self, command):
        actor = actor_of(command)
        ensure_bound_partner(actor, command.partner_id, "move another partner")

        repo = current_domain.repository_for(DeliveryPartner)
        partner = repo.get(command.partner_id)
        partner.set_home_location(command.latitude, command.longitude)
        repo.add(partner)
