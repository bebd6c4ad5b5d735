"""Authority matrix: which actor may drive which operation.

    pending -> approved / rejected_by_vendor       owning vendor
    approved -> assigned                          owning vendor, admin, system
    assigned -> accepted / rejected_by_partner     bound partner
    accepted -> picked_up -> ... -> delivered      bound partner
    * -> cancelled                                 owning customer (pending/approved), admin
    purge                                          admin

Admins override vendor-side decisions. Partner decisions are never made on a
partner's behalf.
"""

from delivery.errors import NotAuthorized
from delivery.identity import Actor, Role


def actor_of(command) -> Actor:
    """Rebuild the authenticated actor carried by a command."""
    return Actor(id=str(command.actor_id), role=Role(command.actor_role))


def actor_fields(actor: Actor) -> dict:
    """The command fields that carry ``actor``."""
    return {"actor_id": actor.id, "actor_role": actor.role.value}


def ensure_role(actor: Actor, roles: set[Role], action: str) -> None:
    if actor.role not in roles:
        raise NotAuthorized(actor.id, actor.role.value, action)


def ensure_admin(actor: Actor, action: str) -> None:
    ensure_role(actor, {Role.ADMIN}, action)


def ensure_vendor_of(actor: Actor, vendor_id: str, action: str) -> None:
    if actor.is_admin:
        return
    if actor.role != Role.VENDOR or actor.id != str(vendor_id):
        raise NotAuthorized(actor.id, actor.role.value, action)


def ensure_dispatcher_for(actor: Actor, vendor_id: str) -> None:
    if actor.role == Role.SYSTEM:
        return
    ensure_vendor_of(actor, vendor_id, "dispatch this order")


def ensure_customer_of(actor: Actor, customer_id: str, action: str) -> None:
    if actor.is_admin:
        return
    if actor.role != Role.CUSTOMER or actor.id != str(customer_id):
        raise NotAuthorized(actor.id, actor.role.value, action)


def ensure_bound_partner(actor: Actor, partner_id: str | None, action: str) -> None:
    if actor.role != Role.DELIVERY_PARTNER or partner_id is None or actor.id != str(partner_id):
        raise NotAuthorized(actor.id, actor.role.value, action)


def is_party_to(actor: Actor, customer_id, vendor_id, partner_id) -> bool:
    """True when the actor owns, sells or delivers the order."""
    if actor.is_admin:
        return True
    if actor.role == Role.CUSTOMER:
        return actor.id == str(customer_id)
    if actor.role == Role.VENDOR:
        return actor.id == str(vendor_id)
    if actor.role == Role.DELIVERY_PARTNER:
        return partner_id is not None and actor.id == str(partner_id)
    return False
