"""Repository adapters - Database implementations."""

from .memory import InMemorySubscriberRepository
from .postgres import PostgresSubscriberRepository, run_migrations

__all__ = ["InMemorySubscriberRepository", "PostgresSubscriberRepository", "run_migrations"]
