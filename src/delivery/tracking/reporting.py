"""Location Tracking Feed: ingest partner positions and read the latest one.

A report is kept only while the order is out for delivery and comes from
the bound partner. Anything else is dropped without an error: late or early
samples are expected from a partner's device and are harmless to ignore.
"""

from enum import Enum

import structlog
from protean import handle
from protean.fields import DateTime, Float, Identifier, String
from protean.utils.globals import current_domain

from delivery.authority import actor_of, ensure_role
from delivery.domain import delivery
from delivery.identity import Role
from delivery.order.order import DeliveryStatus, Order
from delivery.tracking.geolocation.port import Position
from delivery.tracking.sample import TrackingSample

logger = structlog.get_logger(__name__)


class ReportOutcome(Enum):
    RECORDED = "recorded"
    DROPPED = "dropped"


@delivery.command(part_of="TrackingSample")
class ReportPosition:
    """A position sample from the partner carrying an order."""

    actor_id = Identifier(required=True)
    actor_role = String(required=True, choices=Role)
    order_id = Identifier(required=True)
    latitude = Float(required=True, min_value=-90.0, max_value=90.0)
    longitude = Float(required=True, min_value=-180.0, max_value=180.0)
    recorded_at = DateTime()


@delivery.command_handler(part_of=TrackingSample)
class PositionReportHandler:
    @handle(ReportPosition)
    def report_position(self, command) -> str:
        actor = actor_of(command)
        ensure_role(actor, {Role.DELIVERY_PARTNER}, "report delivery positions")

        order = current_domain.repository_for(Order).get_or_none(command.order_id)
        if (
            order is None
            or order.status != DeliveryStatus.OUT_FOR_DELIVERY
            or str(order.assigned_partner_id) != actor.id
        ):
            logger.debug(
                "Position report dropped",
                order_id=str(command.order_id),
                partner_id=actor.id,
                status=order.delivery_status if order else None,
            )
            return ReportOutcome.DROPPED.value

        sample = TrackingSample.record(
            order_id=str(order.id),
            partner_id=actor.id,
            latitude=command.latitude,
            longitude=command.longitude,
            recorded_at=command.recorded_at,
        )
        current_domain.repository_for(TrackingSample).add(sample)
        return ReportOutcome.RECORDED.value


def latest_position(order_id: str) -> Position | None:
    """The sample with the greatest ``recorded_at`` for an order, if any."""
    repo = current_domain.repository_for(TrackingSample)
    latest = repo._dao.query.filter(order_id=order_id).order_by("-recorded_at").limit(1).all().first
    if latest is None:
        return None
    return Position(latest.latitude, latest.longitude, latest.recorded_at)
