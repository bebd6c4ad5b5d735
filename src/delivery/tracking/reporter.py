"""Forward a partner device's watched positions into the tracking feed.

The reporter runs on the partner side while an order is out for delivery.
A missing or failing geolocation source never interrupts delivery work: the
reporter just stops producing samples.
"""

import time

import structlog
from protean.domain import Domain

from delivery.identity import Role
from delivery.tracking.geolocation import GeolocationPort, Position, get_geolocation
from delivery.tracking.reporting import ReportPosition

logger = structlog.get_logger(__name__)


class PositionReporter:
    def __init__(
        self,
        domain: Domain,
        order_id: str,
        partner_id: str,
        provider: GeolocationPort | None = None,
        min_interval: float | None = None,
    ):
        self.domain = domain
        self.order_id = order_id
        self.partner_id = partner_id
        self.provider = provider or get_geolocation()
        if min_interval is None:
            min_interval = float(getattr(domain, "TRACKING_INTERVAL_SECONDS", 0) or 0)
        self.min_interval = min_interval
        self._cancel = None
        self._last_sent: float | None = None

    @property
    def is_running(self) -> bool:
        return self._cancel is not None

    def start(self) -> None:
        if self._cancel is not None:
            return
        self._cancel = self.provider.watch_position(self._on_position)
        logger.info("Position reporting started", order_id=self.order_id, partner_id=self.partner_id)

    def stop(self) -> None:
        if self._cancel is None:
            return
        cancel, self._cancel = self._cancel, None
        cancel()
        logger.info("Position reporting stopped", order_id=self.order_id, partner_id=self.partner_id)

    def report_once(self) -> str | None:
        """Send the current fix. Returns None when the device has no fix."""
        position = self.provider.current_position()
        if position is None:
            return None
        return self._send(position)

    def _on_position(self, position: Position) -> None:
        now = time.monotonic()
        if self._last_sent is not None and now - self._last_sent < self.min_interval:
            return
        self._last_sent = now
        try:
            outcome = self._send(position)
        except Exception as exc:
            # Runs on the provider's thread; failures must not reach the device
            logger.warning(
                "Position report failed",
                order_id=self.order_id,
                partner_id=self.partner_id,
                error=str(exc),
            )
            return
        if outcome == "dropped":
            # The order has moved past out_for_delivery
            self.stop()

    def _send(self, position: Position) -> str:
        with self.domain.domain_context():
            return self.domain.process(
                ReportPosition(
                    actor_id=self.partner_id,
                    actor_role=Role.DELIVERY_PARTNER.value,
                    order_id=self.order_id,
                    latitude=position.latitude,
                    longitude=position.longitude,
                    recorded_at=position.recorded_at,
                ),
                asynchronous=False,
            )
