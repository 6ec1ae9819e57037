"""
Shared fixtures for adversarial tests.

Provides a PostgreSQL pool for race condition tests that need the real
uniqueness constraint; the in-memory fixtures come from tests/conftest.py.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from tests.postgres import open_pool, reset_database

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for adversarial tests."""
    yield from open_pool()


@pytest.fixture
def clean_pool(pool: ConnectionPool) -> ConnectionPool:
    """Pool on clean, seeded tables."""
    reset_database(pool)
    return pool
