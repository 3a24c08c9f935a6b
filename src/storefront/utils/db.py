"""Schema management for SQL-backed providers (``manage.py setup-db`` and the test session)."""

from protean.domain import Domain
from sqlalchemy import create_engine

_SQL_PROVIDERS = ("sqlite", "postgresql")


def _sql_providers(domain: Domain):
    for provider in domain.providers.values():
        if provider.conn_info["provider"] in _SQL_PROVIDERS:
            yield provider, create_engine(provider.conn_info["database_uri"])


def setup_db(domain: Domain):
    """Create the tables of every storefront aggregate and entity."""
    with domain.domain_context():
        for provider, engine in _sql_providers(domain):
            # Touching a DAO registers its table on the provider's metadata
            records = [*domain.registry.aggregates.values(), *domain.registry.entities.values()]
            for record in records:
                if record.cls.meta_.provider == provider.name:
                    domain.repository_for(record.cls)._dao  # noqa: B018
            provider._metadata.create_all(engine)


def drop_db(domain: Domain):
    with domain.domain_context():
        for provider, engine in _sql_providers(domain):
            provider._metadata.drop_all(engine)
