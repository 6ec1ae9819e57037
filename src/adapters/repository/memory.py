"""
In-memory repository adapter - Implements SubscriberRepository protocol.

Used by tests and local development. No external dependencies. A single
lock serialises every operation, and the (event_id, identity_number)
index plays the role of the database UNIQUE constraint, so concurrent
registrations behave exactly like they do against PostgreSQL.
"""

import itertools
import logging
import threading
import uuid
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from src.domain.exceptions import ConflictError, NotFoundError
from src.domain.models import (
    Event,
    ExportRow,
    Job,
    JobRequirement,
    Nationality,
    NewSubscriber,
    RequirementPlan,
    Subscriber,
)

logger = logging.getLogger(__name__)


class InMemorySubscriberRepository:
    """
    Implements SubscriberRepository protocol with plain dictionaries.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Reference data is seeded through add_event/add_job/add_nationality.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: dict[str, Event] = {}
        self._jobs: dict[str, Job] = {}
        self._nationalities: dict[str, Nationality] = {}
        self._requirements: dict[str, JobRequirement] = {}
        self._subscribers: dict[str, Subscriber] = {}
        self._identity_index: dict[tuple[str, str], str] = {}
        # Strictly increasing timestamps keep "newest first" stable
        self._sequence = itertools.count()
        self._epoch = datetime.now(timezone.utc)

    def add_event(self, event: Event) -> Event:
        with self._lock:
            self._events[event.id] = event
        return event

    def add_job(self, job: Job) -> Job:
        with self._lock:
            self._jobs[job.id] = job
        return job

    def add_nationality(self, nationality: Nationality) -> Nationality:
        with self._lock:
            self._nationalities[nationality.id] = nationality
        return nationality

    def get_event(self, event_id: str) -> Event | None:
        return self._events.get(event_id)

    def get_job(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def get_nationality(self, nationality_id: str) -> Nationality | None:
        return self._nationalities.get(nationality_id)

    def set_event_flags(
        self,
        event_id: str,
        *,
        accepting_applications: bool | None = None,
        published: bool | None = None,
        completed: bool | None = None,
    ) -> Event | None:
        flags = {
            "accepting_applications": accepting_applications,
            "published": published,
            "completed": completed,
        }
        with self._lock:
            current = self._events.get(event_id)
            if current is None:
                return None
            updated = replace(current, **{name: value for name, value in flags.items() if value is not None})
            self._events[event_id] = updated
            return updated

    def find_subscriber(self, event_id: str, identity_number: str) -> Subscriber | None:
        with self._lock:
            subscriber_id = self._identity_index.get((event_id, identity_number))
            return self._subscribers.get(subscriber_id) if subscriber_id else None

    def get_subscriber(self, subscriber_id: str) -> Subscriber | None:
        return self._subscribers.get(subscriber_id)

    def list_all_subscribers(self) -> list[Subscriber]:
        with self._lock:
            subscribers = list(self._subscribers.values())
        return sorted(subscribers, key=lambda s: s.created_at, reverse=True)

    def list_subscribers(self, event_id: str, accepted_only: bool = False) -> list[Subscriber]:
        with self._lock:
            subscribers = [
                s
                for s in self._subscribers.values()
                if s.event_id == event_id and (s.accepted or not accepted_only)
            ]
        return sorted(subscribers, key=lambda s: s.created_at, reverse=True)

    def _check_references(self, subscriber: NewSubscriber) -> None:
        if subscriber.event_id not in self._events:
            raise NotFoundError("Event not found")
        if subscriber.nationality_id not in self._nationalities:
            raise NotFoundError("Nationality not found")
        if subscriber.job_requirement_id and subscriber.job_requirement_id not in self._requirements:
            raise NotFoundError("Job requirement not found")

    def create_subscriber(self, subscriber: NewSubscriber) -> Subscriber:
        with self._lock:
            key = (subscriber.event_id, subscriber.identity_number)
            if key in self._identity_index:
                raise ConflictError("Identity number already registered for this event")
            self._check_references(subscriber)
            created = Subscriber(
                id=str(uuid.uuid4()),
                created_at=self._epoch + timedelta(microseconds=next(self._sequence)),
                **vars(subscriber),
            )
            self._subscribers[created.id] = created
            self._identity_index[key] = created.id
            return created

    def update_subscriber(self, subscriber: Subscriber) -> Subscriber:
        with self._lock:
            current = self._subscribers.get(subscriber.id)
            if current is None:
                raise NotFoundError("Subscriber not found")
            key = (current.event_id, subscriber.identity_number)
            owner = self._identity_index.get(key)
            if owner is not None and owner != subscriber.id:
                raise ConflictError("Identity number already registered for this event")
            self._check_references(subscriber)
            updated = replace(subscriber, event_id=current.event_id, created_at=current.created_at)
            del self._identity_index[(current.event_id, current.identity_number)]
            self._identity_index[key] = updated.id
            self._subscribers[updated.id] = updated
            return updated

    def delete_subscriber(self, subscriber_id: str) -> Subscriber | None:
        with self._lock:
            deleted = self._subscribers.pop(subscriber_id, None)
            if deleted is not None:
                del self._identity_index[(deleted.event_id, deleted.identity_number)]
            return deleted

    def set_accepted(self, subscriber_ids: Sequence[str], accepted: bool) -> set[str]:
        with self._lock:
            event_ids = set()
            for subscriber_id in subscriber_ids:
                current = self._subscribers.get(subscriber_id)
                if current is None:
                    continue
                self._subscribers[subscriber_id] = replace(current, accepted=accepted)
                event_ids.add(current.event_id)
            return event_ids

    def list_export_rows(self, event_id: str) -> list[ExportRow]:
        rows = []
        for subscriber in self.list_subscribers(event_id):
            nationality = self._nationalities.get(subscriber.nationality_id)
            requirement = self._requirements.get(subscriber.job_requirement_id or "")
            job = self._jobs.get(requirement.job_id) if requirement else None
            rows.append(
                ExportRow(
                    subscriber=subscriber,
                    nationality_name=nationality.name_en if nationality else "",
                    job_name=job.name if job else "",
                    daily_rate=requirement.daily_rate if requirement else None,
                )
            )
        return rows

    def get_requirement(self, requirement_id: str) -> JobRequirement | None:
        return self._requirements.get(requirement_id)

    def list_requirements(self, event_id: str) -> list[JobRequirement]:
        with self._lock:
            return [r for r in self._requirements.values() if r.event_id == event_id]

    def _insert_requirement(self, event_id: str, job_id: str, daily_rate: Decimal) -> JobRequirement:
        if event_id not in self._events or job_id not in self._jobs:
            raise NotFoundError("Event or job not found")
        requirement = JobRequirement(
            id=str(uuid.uuid4()), event_id=event_id, job_id=job_id, daily_rate=daily_rate
        )
        self._requirements[requirement.id] = requirement
        return requirement

    def _remove_requirement(self, requirement_id: str) -> JobRequirement | None:
        requirement = self._requirements.pop(requirement_id, None)
        if requirement is not None:
            for subscriber in list(self._subscribers.values()):
                if subscriber.job_requirement_id == requirement_id:
                    self._subscribers[subscriber.id] = replace(subscriber, job_requirement_id=None)
        return requirement

    def create_requirement(self, event_id: str, job_id: str, daily_rate: Decimal) -> JobRequirement:
        with self._lock:
            return self._insert_requirement(event_id, job_id, daily_rate)

    def update_requirement_rate(self, requirement_id: str, daily_rate: Decimal) -> JobRequirement | None:
        with self._lock:
            current = self._requirements.get(requirement_id)
            if current is None:
                return None
            updated = replace(current, daily_rate=daily_rate)
            self._requirements[requirement_id] = updated
            return updated

    def delete_requirement(self, requirement_id: str) -> JobRequirement | None:
        with self._lock:
            return self._remove_requirement(requirement_id)

    def apply_requirement_plan(
        self, event_id: str, plan: RequirementPlan, notes: Sequence[str] | None = None
    ) -> None:
        with self._lock:
            event = self._events.get(event_id)
            if event is None:
                raise NotFoundError("Event not found")
            missing = [item.job_id for item in plan.create if item.job_id not in self._jobs]
            if missing:
                raise NotFoundError(f"Job {missing[0]} not found")

            if notes is not None:
                self._events[event_id] = replace(event, requirement_notes=tuple(notes))
            owned = {r.id: r for r in self._requirements.values() if r.event_id == event_id}
            for requirement_id in plan.delete:
                if requirement_id in owned:
                    self._remove_requirement(requirement_id)
            for requirement_id, rate in plan.update:
                if requirement_id in owned:
                    self._requirements[requirement_id] = replace(owned[requirement_id], daily_rate=rate)
            for item in plan.create:
                self._insert_requirement(event_id, item.job_id, item.daily_rate)
