"""Schema management for the relational providers (SQLite, PostgreSQL).

The memory provider needs none of this; ``setup_db`` is a no-op there.
"""

from protean.domain import Domain
from sqlalchemy import create_engine

_RELATIONAL_PROVIDERS = ("sqlite", "postgresql")


def _relational_providers(domain: Domain):
    for provider in domain.providers.values():
        if provider.conn_info["provider"] in _RELATIONAL_PROVIDERS:
            yield provider


def _load_models(domain: Domain, provider_name: str) -> None:
    # Touching each repository's DAO registers its table with SQLAlchemy
    registry = domain.registry
    for records in (registry.aggregates, registry.entities, registry.projections):
        for record in records.values():
            if record.cls.meta_.provider == provider_name:
                domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain) -> None:
    """Create tables for every aggregate, entity and projection."""
    with domain.domain_context():
        for provider in _relational_providers(domain):
            _load_models(domain, provider.name)
            engine = create_engine(provider.conn_info["database_uri"])
            provider._metadata.create_all(engine)


def drop_db(domain: Domain) -> None:
    """Drop every table created by ``setup_db``."""
    with domain.domain_context():
        for provider in _relational_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            provider._metadata.drop_all(engine)
