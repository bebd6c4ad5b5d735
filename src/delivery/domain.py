"""Domain initialization and configuration."""

from protean.domain import Domain

from delivery.utils.logging import configure_logging

# Configure logging for the application
configure_logging()

# Domain Composition Root
delivery = Domain(name="delivery")
