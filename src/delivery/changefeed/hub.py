"""Change Notification Layer: in-process publish/subscribe for order changes.

Subscribers register a callback for an ``(entity type, entity id)`` key and
receive a ``ChangeNotice`` whenever an order touching that key changes.
Notices are invalidation signals, not state: a subscriber re-reads the order.

Each subscription owns a worker thread, so a slow subscriber never delays
the publisher or other subscribers. Pending notices are coalesced per order,
keeping only the latest. A callback that raises gets the notice again after
a pause (at-least-once). Cancelling a subscription discards whatever is
pending and stops its worker; nothing is buffered for departed subscribers.
"""

import itertools
import threading
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum

import structlog

logger = structlog.get_logger(__name__)


class EntityType(Enum):
    ORDER = "order"
    CUSTOMER = "customer"
    VENDOR = "vendor"
    PARTNER = "partner"


SubscriptionKey = tuple[EntityType, str]


def key_for(entity_type: EntityType | str, entity_id) -> SubscriptionKey:
    return (EntityType(entity_type), str(entity_id))


@dataclass(frozen=True)
class ChangeNotice:
    order_id: str
    change: str
    delivery_status: str | None = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict:
        data = asdict(self)
        data["occurred_at"] = self.occurred_at.isoformat()
        return data


NoticeCallback = Callable[[ChangeNotice], None]


class Subscription:
    """A registered interest with its own delivery worker."""

    def __init__(
        self,
        hub: "ChangeHub",
        key: SubscriptionKey,
        callback: NoticeCallback,
        retry_seconds: float,
    ):
        self.id = next(hub._ids)
        self.key = key
        self._hub = hub
        self._callback = callback
        self._retry_seconds = retry_seconds
        self._pending: dict[str, ChangeNotice] = {}
        self._in_flight = False
        self._cancelled = False
        self._condition = threading.Condition()
        self._worker = threading.Thread(
            target=self._run,
            name=f"changefeed-{key[0].value}-{self.id}",
            daemon=True,
        )
        self._worker.start()

    def __repr__(self) -> str:
        return f"<Subscription {self.id} {self.key[0].value}:{self.key[1]}>"

    @property
    def active(self) -> bool:
        return not self._cancelled

    @property
    def pending_count(self) -> int:
        with self._condition:
            return len(self._pending)

    def offer(self, notice: ChangeNotice) -> None:
        """Queue a notice, replacing any older pending notice for the same order."""
        with self._condition:
            if self._cancelled:
                return
            self._pending.pop(notice.order_id, None)
            self._pending[notice.order_id] = notice
            self._condition.notify_all()

    def cancel(self) -> None:
        """Stop delivery. Pending notices are discarded."""
        with self._condition:
            if self._cancelled:
                return
            self._cancelled = True
            self._pending.clear()
            self._condition.notify_all()
        self._hub._forget(self)
        if threading.current_thread() is not self._worker:
            self._worker.join(timeout=1.0)

    def wait_idle(self, timeout: float = 2.0) -> bool:
        """Block until nothing is pending or in flight. Returns False on timeout."""
        with self._condition:
            return self._condition.wait_for(
                lambda: self._cancelled or (not self._pending and not self._in_flight),
                timeout=timeout,
            )

    def _next(self) -> ChangeNotice | None:
        with self._condition:
            self._condition.wait_for(lambda: self._cancelled or self._pending)
            if self._cancelled:
                return None
            order_id = next(iter(self._pending))
            self._in_flight = True
            return self._pending.pop(order_id)

    def _run(self) -> None:
        while True:
            notice = self._next()
            if notice is None:
                return
            try:
                self._callback(notice)
            except Exception as exc:
                logger.warning(
                    "Change notice delivery failed; will retry",
                    subscription=self.id,
                    entity_type=self.key[0].value,
                    entity_id=self.key[1],
                    order_id=notice.order_id,
                    error=str(exc),
                )
                with self._condition:
                    if not self._cancelled:
                        # A newer notice for the same order supersedes the failed one
                        self._pending.setdefault(notice.order_id, notice)
                    self._in_flight = False
                    self._condition.wait_for(lambda: self._cancelled, timeout=self._retry_seconds)
                continue

            with self._condition:
                self._in_flight = False
                self._condition.notify_all()


class ChangeHub:
    """Registry of subscriptions keyed by ``(entity type, entity id)``."""

    def __init__(self, retry_seconds: float = 1.0):
        self.retry_seconds = retry_seconds
        self._lock = threading.Lock()
        self._subscriptions: dict[SubscriptionKey, dict[int, Subscription]] = {}
        self._ids = itertools.count(1)

    def subscribe(self, entity_type: EntityType | str, entity_id, callback: NoticeCallback) -> Subscription:
        key = key_for(entity_type, entity_id)
        subscription = Subscription(self, key, callback, self.retry_seconds)
        with self._lock:
            self._subscriptions.setdefault(key, {})[subscription.id] = subscription
        logger.info("Change feed subscribed", subscription=subscription.id, entity_type=key[0].value, entity_id=key[1])
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.cancel()

    def _forget(self, subscription: Subscription) -> None:
        with self._lock:
            registered = self._subscriptions.get(subscription.key, {})
            if registered.pop(subscription.id, None) is None:
                return
            if not registered:
                self._subscriptions.pop(subscription.key, None)
        logger.info(
            "Change feed unsubscribed",
            subscription=subscription.id,
            entity_type=subscription.key[0].value,
            entity_id=subscription.key[1],
        )

    def publish(self, notice: ChangeNotice, keys: Iterable[SubscriptionKey]) -> int:
        """Offer ``notice`` to every subscription on any of ``keys``.

        A subscription registered under several matching keys still gets a
        single notice. Returns the number of subscriptions offered.
        """
        with self._lock:
            targets: dict[int, Subscription] = {}
            for key in set(keys):
                targets.update(self._subscriptions.get(key, {}))
        for subscription in targets.values():
            subscription.offer(notice)
        return len(targets)

    def subscription_count(self, entity_type: EntityType | str | None = None, entity_id=None) -> int:
        with self._lock:
            if entity_type is None:
                return sum(len(subs) for subs in self._subscriptions.values())
            return len(self._subscriptions.get(key_for(entity_type, entity_id), {}))

    def close(self) -> None:
        """Cancel every subscription."""
        with self._lock:
            subscriptions = [s for subs in self._subscriptions.values() for s in subs.values()]
        for subscription in subscriptions:
            subscription.cancel()
