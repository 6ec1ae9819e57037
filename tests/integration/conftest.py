"""
Shared fixtures for integration tests against PostgreSQL.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresSubscriberRepository
from tests.postgres import open_pool, reset_database


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests."""
    yield from open_pool()


@pytest.fixture
def pg_repository(pool: ConnectionPool) -> PostgresSubscriberRepository:
    """Create repository instance on clean, seeded tables."""
    reset_database(pool)
    return PostgresSubscriberRepository(pool)
