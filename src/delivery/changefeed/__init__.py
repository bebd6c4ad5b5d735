"""Change Notification Layer: process-wide hub access."""

from delivery.changefeed.hub import ChangeHub, ChangeNotice, EntityType, Subscription, key_for

__all__ = ["ChangeHub", "ChangeNotice", "EntityType", "Subscription", "get_hub", "key_for", "reset_hub"]

_hub_instance: ChangeHub | None = None


def get_hub() -> ChangeHub:
    """Return the process-wide change hub (singleton)."""
    global _hub_instance
    if _hub_instance is None:
        from delivery.domain import delivery

        _hub_instance = ChangeHub(retry_seconds=float(getattr(delivery, "CHANGEFEED_RETRY_SECONDS", 1.0)))
    return _hub_instance


def reset_hub() -> None:
    """Cancel all subscriptions and drop the hub (useful for testing)."""
    global _hub_instance
    if _hub_instance is not None:
        _hub_instance.close()
    _hub_instance = None
