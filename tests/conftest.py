"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A seeded in-memory repository (event, jobs, nationality)
- Mock asset store and view notifier ports
- Domain services wired to them with a fixed clock
"""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import Mock

import pytest

from src.adapters.repository.memory import InMemorySubscriberRepository
from src.domain.acceptance import AcceptanceService
from src.domain.events import EventService
from src.domain.export import ExportService
from src.domain.models import Event, Job, JobRequirement, Nationality
from src.domain.registration import RegistrationService
from src.domain.requirements import RequirementService
from tests.factories import (
    CLOSED_EVENT_ID,
    EVENT_ID,
    FIXED_NOW,
    JOB_ID,
    NATIONALITY_ID,
    OTHER_EVENT_ID,
    OTHER_JOB_ID,
    make_asset_store,
)


@pytest.fixture
def repository() -> InMemorySubscriberRepository:
    repo = InMemorySubscriberRepository()
    repo.add_nationality(Nationality(id=NATIONALITY_ID, name_en="Saudi", name_ar="سعودي"))
    repo.add_job(Job(id=JOB_ID, name="Usher"))
    repo.add_job(Job(id=OTHER_JOB_ID, name="Steward"))
    for event_id in (EVENT_ID, OTHER_EVENT_ID):
        repo.add_event(
            Event(
                id=event_id,
                title={"en": f"Event {event_id}", "ar": "فعالية"},
                date=datetime(2024, 9, 23, tzinfo=timezone.utc),
                published=True,
            )
        )
    repo.add_event(
        Event(
            id=CLOSED_EVENT_ID,
            title={"en": "Closed"},
            date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            accepting_applications=False,
        )
    )
    return repo


@pytest.fixture
def asset_store() -> Mock:
    return make_asset_store()


@pytest.fixture
def notifier() -> Mock:
    return Mock()


@pytest.fixture
def registration_service(
    repository: InMemorySubscriberRepository, asset_store: Mock, notifier: Mock
) -> RegistrationService:
    return RegistrationService(
        repository=repository,
        asset_store=asset_store,
        notifier=notifier,
        upload_timeout=2.0,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def acceptance_service(repository: InMemorySubscriberRepository, notifier: Mock) -> AcceptanceService:
    return AcceptanceService(repository=repository, notifier=notifier)


@pytest.fixture
def event_service(repository: InMemorySubscriberRepository, notifier: Mock) -> EventService:
    return EventService(repository=repository, notifier=notifier)


@pytest.fixture
def requirement_service(repository: InMemorySubscriberRepository, notifier: Mock) -> RequirementService:
    return RequirementService(repository=repository, notifier=notifier)


@pytest.fixture
def export_service(repository: InMemorySubscriberRepository) -> ExportService:
    return ExportService(repository=repository)


@pytest.fixture
def usher_requirement(repository: InMemorySubscriberRepository) -> JobRequirement:
    return repository.create_requirement(EVENT_ID, JOB_ID, Decimal("150.00"))
