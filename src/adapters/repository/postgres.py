"""
PostgreSQL repository adapter - Implements SubscriberRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Consistency Design:
-------------------
1. **UNIQUE (event_id, identity_number)**: The database constraint is the
   sole authoritative duplicate arbiter. Concurrent registrations that both
   pass the advisory check race to INSERT; the loser gets UniqueViolation,
   translated here into the domain's ConflictError.

2. **Batched acceptance**: set_accepted issues a single
   ``UPDATE ... WHERE id = ANY(...)`` so a bulk toggle is all-or-nothing.

3. **Requirement deletion**: event_subscribers.job_requirement_id is
   declared ``ON DELETE SET NULL``; deleting a requirement keeps the
   subscriber and clears its reference.

4. **Reconciliation**: apply_requirement_plan runs every create, update and
   delete on one connection and commits once.
"""

import logging
from collections.abc import Sequence
from decimal import Decimal
from pathlib import Path
from typing import Any

from psycopg import errors
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from src.domain.exceptions import ConflictError, NotFoundError
from src.domain.models import (
    Event,
    ExportRow,
    Gender,
    Job,
    JobRequirement,
    Nationality,
    NewSubscriber,
    RequirementPlan,
    Subscriber,
)

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"

_SUBSCRIBER_COLUMNS = (
    "event_id",
    "job_requirement_id",
    "nationality_id",
    "name",
    "mobile",
    "email",
    "identity_number",
    "identity_expiry_date",
    "birth_date",
    "age",
    "gender",
    "city",
    "iban",
    "bank_name",
    "account_holder",
    "id_image_url",
    "id_image_asset_id",
    "personal_image_url",
    "personal_image_asset_id",
    "accepted",
)

_SELECT_SUBSCRIBER = f"""
    SELECT s.id, s.created_at, {", ".join(f"s.{column}" for column in _SUBSCRIBER_COLUMNS)}
    FROM event_subscribers s
"""


def _subscriber_values(subscriber: NewSubscriber) -> tuple[Any, ...]:
    values = []
    for column in _SUBSCRIBER_COLUMNS:
        value = getattr(subscriber, column)
        values.append(value.value if isinstance(value, Gender) else value)
    return tuple(values)


def _to_subscriber(row: dict[str, Any]) -> Subscriber:
    fields = {column: row[column] for column in _SUBSCRIBER_COLUMNS}
    fields["gender"] = Gender(row["gender"])
    fields["identity_number"] = row["identity_number"].strip()
    return Subscriber(id=row["id"], created_at=row["created_at"], **fields)


def _to_requirement(row: dict[str, Any]) -> JobRequirement:
    return JobRequirement(
        id=row["id"],
        event_id=row["event_id"],
        job_id=row["job_id"],
        daily_rate=Decimal(row["daily_rate"]),
    )


def _to_event(row: dict[str, Any]) -> Event:
    return Event(
        id=row["id"],
        title=row["title"] or {},
        description=row["description"] or {},
        date=row["date"],
        location_id=row["location_id"],
        accepting_applications=row["accepting_applications"],
        published=row["published"],
        completed=row["completed"],
        requirement_notes=tuple(row["requirement_notes"] or ()),
    )


class PostgresSubscriberRepository:
    """
    Implements SubscriberRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def _fetchone(self, sql: str, params: Sequence[Any]) -> dict[str, Any] | None:
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, params)
            return cursor.fetchone()

    def _fetchall(self, sql: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, params)
            return cursor.fetchall()

    def get_event(self, event_id: str) -> Event | None:
        row = self._fetchone("SELECT * FROM events WHERE id = %s", (event_id,))
        return _to_event(row) if row else None

    def get_job(self, job_id: str) -> Job | None:
        row = self._fetchone("SELECT id, name FROM jobs WHERE id = %s", (job_id,))
        return Job(id=row["id"], name=row["name"]) if row else None

    def get_nationality(self, nationality_id: str) -> Nationality | None:
        row = self._fetchone(
            "SELECT id, name_en, name_ar FROM nationalities WHERE id = %s", (nationality_id,)
        )
        return Nationality(id=row["id"], name_en=row["name_en"], name_ar=row["name_ar"]) if row else None

    def set_event_flags(
        self,
        event_id: str,
        *,
        accepting_applications: bool | None = None,
        published: bool | None = None,
        completed: bool | None = None,
    ) -> Event | None:
        """NULL parameters keep the stored flag through COALESCE."""
        sql = """
            UPDATE events
            SET accepting_applications = COALESCE(%s::boolean, accepting_applications),
                published = COALESCE(%s::boolean, published),
                completed = COALESCE(%s::boolean, completed)
            WHERE id = %s
            RETURNING *
        """
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (accepting_applications, published, completed, event_id))
            row = cursor.fetchone()
            conn.commit()
        return _to_event(row) if row else None

    def find_subscriber(self, event_id: str, identity_number: str) -> Subscriber | None:
        row = self._fetchone(
            _SELECT_SUBSCRIBER + " WHERE s.event_id = %s AND s.identity_number = %s",
            (event_id, identity_number),
        )
        return _to_subscriber(row) if row else None

    def get_subscriber(self, subscriber_id: str) -> Subscriber | None:
        row = self._fetchone(_SELECT_SUBSCRIBER + " WHERE s.id = %s", (subscriber_id,))
        return _to_subscriber(row) if row else None

    def list_all_subscribers(self) -> list[Subscriber]:
        sql = _SELECT_SUBSCRIBER + " ORDER BY s.created_at DESC, s.id"
        return [_to_subscriber(row) for row in self._fetchall(sql, ())]

    def list_subscribers(self, event_id: str, accepted_only: bool = False) -> list[Subscriber]:
        sql = _SELECT_SUBSCRIBER + " WHERE s.event_id = %s"
        if accepted_only:
            sql += " AND s.accepted"
        sql += " ORDER BY s.created_at DESC, s.id"
        return [_to_subscriber(row) for row in self._fetchall(sql, (event_id,))]

    def create_subscriber(self, subscriber: NewSubscriber) -> Subscriber:
        """
        Insert a subscriber, relying on the UNIQUE constraint for duplicates.

        Raises:
            ConflictError: (event_id, identity_number) already registered
            NotFoundError: Event, nationality or requirement reference missing
        """
        placeholders = ", ".join(["%s"] * len(_SUBSCRIBER_COLUMNS))
        sql = f"""
            INSERT INTO event_subscribers ({", ".join(_SUBSCRIBER_COLUMNS)})
            VALUES ({placeholders})
            RETURNING id, created_at
        """
        try:
            with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(sql, _subscriber_values(subscriber))
                row = cursor.fetchone()
                conn.commit()
        except errors.UniqueViolation as e:
            raise ConflictError("Identity number already registered for this event") from e
        except errors.ForeignKeyViolation as e:
            raise NotFoundError("Referenced record not found") from e

        return Subscriber(id=row["id"], created_at=row["created_at"], **vars(subscriber))

    def update_subscriber(self, subscriber: Subscriber) -> Subscriber:
        assignments = ", ".join(f"{column} = %s" for column in _SUBSCRIBER_COLUMNS if column != "event_id")
        values = [
            value
            for column, value in zip(_SUBSCRIBER_COLUMNS, _subscriber_values(subscriber), strict=True)
            if column != "event_id"
        ]
        sql = f"UPDATE event_subscribers SET {assignments} WHERE id = %s RETURNING created_at"
        try:
            with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(sql, (*values, subscriber.id))
                row = cursor.fetchone()
                conn.commit()
        except errors.UniqueViolation as e:
            raise ConflictError("Identity number already registered for this event") from e
        except errors.ForeignKeyViolation as e:
            raise NotFoundError("Referenced record not found") from e

        if row is None:
            raise NotFoundError("Subscriber not found")
        return subscriber

    def delete_subscriber(self, subscriber_id: str) -> Subscriber | None:
        sql = f"""
            DELETE FROM event_subscribers
            WHERE id = %s
            RETURNING id, created_at, {", ".join(_SUBSCRIBER_COLUMNS)}
        """
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (subscriber_id,))
            row = cursor.fetchone()
            conn.commit()
        return _to_subscriber(row) if row else None

    def set_accepted(self, subscriber_ids: Sequence[str], accepted: bool) -> set[str]:
        """Single batched UPDATE; unknown ids simply match no rows."""
        sql = """
            UPDATE event_subscribers
            SET accepted = %s
            WHERE id = ANY(%s)
            RETURNING event_id
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (accepted, list(subscriber_ids)))
            event_ids = {row[0] for row in cursor.fetchall()}
            conn.commit()
        return event_ids

    def list_export_rows(self, event_id: str) -> list[ExportRow]:
        sql = f"""
            SELECT s.id, s.created_at, {", ".join(f"s.{column}" for column in _SUBSCRIBER_COLUMNS)},
                   COALESCE(n.name_en, '') AS nationality_name,
                   COALESCE(j.name, '') AS job_name,
                   r.daily_rate AS daily_rate
            FROM event_subscribers s
            LEFT JOIN nationalities n ON n.id = s.nationality_id
            LEFT JOIN event_job_requirements r ON r.id = s.job_requirement_id
            LEFT JOIN jobs j ON j.id = r.job_id
            WHERE s.event_id = %s
            ORDER BY s.created_at DESC, s.id
        """
        return [
            ExportRow(
                subscriber=_to_subscriber(row),
                nationality_name=row["nationality_name"],
                job_name=row["job_name"],
                daily_rate=row["daily_rate"],
            )
            for row in self._fetchall(sql, (event_id,))
        ]

    def get_requirement(self, requirement_id: str) -> JobRequirement | None:
        row = self._fetchone("SELECT * FROM event_job_requirements WHERE id = %s", (requirement_id,))
        return _to_requirement(row) if row else None

    def list_requirements(self, event_id: str) -> list[JobRequirement]:
        rows = self._fetchall(
            "SELECT * FROM event_job_requirements WHERE event_id = %s ORDER BY id", (event_id,)
        )
        return [_to_requirement(row) for row in rows]

    def create_requirement(self, event_id: str, job_id: str, daily_rate: Decimal) -> JobRequirement:
        sql = """
            INSERT INTO event_job_requirements (event_id, job_id, daily_rate)
            VALUES (%s, %s, %s)
            RETURNING *
        """
        try:
            with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(sql, (event_id, job_id, daily_rate))
                row = cursor.fetchone()
                conn.commit()
        except errors.ForeignKeyViolation as e:
            raise NotFoundError("Event or job not found") from e
        return _to_requirement(row)

    def update_requirement_rate(self, requirement_id: str, daily_rate: Decimal) -> JobRequirement | None:
        sql = "UPDATE event_job_requirements SET daily_rate = %s WHERE id = %s RETURNING *"
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (daily_rate, requirement_id))
            row = cursor.fetchone()
            conn.commit()
        return _to_requirement(row) if row else None

    def delete_requirement(self, requirement_id: str) -> JobRequirement | None:
        # Subscriber references are cleared by ON DELETE SET NULL
        sql = "DELETE FROM event_job_requirements WHERE id = %s RETURNING *"
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (requirement_id,))
            row = cursor.fetchone()
            conn.commit()
        return _to_requirement(row) if row else None

    def apply_requirement_plan(
        self, event_id: str, plan: RequirementPlan, notes: Sequence[str] | None = None
    ) -> None:
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                if notes is not None:
                    cursor.execute(
                        "UPDATE events SET requirement_notes = %s WHERE id = %s",
                        (list(notes), event_id),
                    )
                if plan.delete:
                    cursor.execute(
                        "DELETE FROM event_job_requirements WHERE event_id = %s AND id = ANY(%s)",
                        (event_id, list(plan.delete)),
                    )
                if plan.update:
                    cursor.executemany(
                        "UPDATE event_job_requirements SET daily_rate = %s WHERE id = %s AND event_id = %s",
                        [(rate, requirement_id, event_id) for requirement_id, rate in plan.update],
                    )
                if plan.create:
                    cursor.executemany(
                        "INSERT INTO event_job_requirements (event_id, job_id, daily_rate) VALUES (%s, %s, %s)",
                        [(event_id, item.job_id, item.daily_rate) for item in plan.create],
                    )
                conn.commit()
        except errors.ForeignKeyViolation as e:
            raise NotFoundError("Event or job not found") from e


def run_migrations(pool: ConnectionPool, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
    """
    Apply every ``*.sql`` file in migrations_dir, in filename order.

    Files must be idempotent; all of them run on every startup. Each file
    commits on its own, so a failure leaves the earlier ones applied.

    Returns:
        Names of the files that were executed

    Raises:
        RuntimeError: A migration file failed
    """
    sql_files = sorted(migrations_dir.glob("*.sql"))
    if not sql_files:
        logger.warning("No migrations found in %s", migrations_dir)
        return []

    applied = []
    with pool.connection() as conn:
        for sql_file in sql_files:
            try:
                with conn.transaction():
                    conn.execute(sql_file.read_text(encoding="utf-8"))
            except errors.Error as e:
                logger.exception("Migration %s failed", sql_file.name)
                raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
            applied.append(sql_file.name)
            logger.info("Applied migration %s", sql_file.name)
    return applied
