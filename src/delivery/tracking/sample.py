"""TrackingSample aggregate: one timestamped position of an in-transit partner.

Samples are append-only. The latest position of an order is the sample with
the greatest ``recorded_at``, whatever the order of arrival.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Float, Identifier

from delivery.domain import delivery


@delivery.event(part_of="TrackingSample")
class PositionReported:
    __version__ = 1

    sample_id = Identifier(required=True)
    order_id = Identifier(required=True)
    partner_id = Identifier(required=True)
    latitude = Float(required=True)
    longitude = Float(required=True)
    recorded_at = DateTime(required=True)


@delivery.aggregate
class TrackingSample:
    order_id = Identifier(required=True)
    partner_id = Identifier(required=True)
    latitude = Float(required=True, min_value=-90.0, max_value=90.0)
    longitude = Float(required=True, min_value=-180.0, max_value=180.0)
    recorded_at = DateTime(required=True)
    received_at = DateTime()

    @classmethod
    def record(
        cls,
        order_id: str,
        partner_id: str,
        latitude: float,
        longitude: float,
        recorded_at: datetime | None = None,
    ):
        now = datetime.now(UTC)
        # Naive device timestamps are taken as UTC
        if recorded_at is not None and recorded_at.tzinfo is None:
            recorded_at = recorded_at.replace(tzinfo=UTC)
        sample = cls(
            order_id=order_id,
            partner_id=partner_id,
            latitude=latitude,
            longitude=longitude,
            recorded_at=recorded_at or now,
            received_at=now,
        )
        sample.raise_(
            PositionReported(
                sample_id=str(sample.id),
                order_id=order_id,
                partner_id=partner_id,
                latitude=latitude,
                longitude=longitude,
                recorded_at=sample.recorded_at,
            )
        )
        return sample
