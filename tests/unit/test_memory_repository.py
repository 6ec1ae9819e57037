"""
Unit tests for the in-memory repository adapter.

The in-memory adapter mirrors the PostgreSQL constraints; these tests pin
the behaviour the domain relies on.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from src.adapters.repository.memory import InMemorySubscriberRepository
from src.domain.exceptions import ConflictError, NotFoundError
from src.domain.models import DesiredRequirement, Gender, NewSubscriber, RequirementPlan
from tests.factories import (
    EVENT_ID,
    JOB_ID,
    NATIONAL_ID,
    NATIONAL_ID_2,
    NATIONALITY_ID,
    OTHER_EVENT_ID,
    OTHER_JOB_ID,
)


def new_subscriber(**overrides: object) -> NewSubscriber:
    subscriber = NewSubscriber(
        event_id=EVENT_ID,
        job_requirement_id=None,
        nationality_id=NATIONALITY_ID,
        name="Noura",
        mobile="0551234567",
        email="noura@example.com",
        identity_number=NATIONAL_ID,
        identity_expiry_date=date(2027, 1, 1),
        birth_date=date(2000, 1, 1),
        age=24,
        gender=Gender.FEMALE,
        city="Riyadh",
        iban="SA0380000000608010167519",
        bank_name="Al Rajhi",
        account_holder="Noura",
        id_image_url="https://cdn.example.com/upload/v1/a.jpg",
        id_image_asset_id="a",
        personal_image_url="https://cdn.example.com/upload/v1/b.jpg",
        personal_image_asset_id="b",
    )
    return replace(subscriber, **overrides)


class TestEvents:
    def test_set_event_flags_updates_given_flags(self, repository: InMemorySubscriberRepository) -> None:
        updated = repository.set_event_flags(EVENT_ID, accepting_applications=False)

        assert updated.accepting_applications is False
        assert updated.published is True
        assert repository.get_event(EVENT_ID) == updated

    def test_set_event_flags_unknown_event(self, repository: InMemorySubscriberRepository) -> None:
        assert repository.set_event_flags("missing", published=True) is None


class TestSubscribers:
    def test_create_assigns_id_and_timestamp(self, repository: InMemorySubscriberRepository) -> None:
        created = repository.create_subscriber(new_subscriber())

        assert created.id
        assert created.created_at is not None
        assert repository.find_subscriber(EVENT_ID, NATIONAL_ID) == created

    def test_unique_per_event(self, repository: InMemorySubscriberRepository) -> None:
        repository.create_subscriber(new_subscriber())

        with pytest.raises(ConflictError):
            repository.create_subscriber(new_subscriber())

    def test_same_identity_other_event(self, repository: InMemorySubscriberRepository) -> None:
        repository.create_subscriber(new_subscriber())

        repository.create_subscriber(new_subscriber(event_id=OTHER_EVENT_ID))

        assert repository.find_subscriber(OTHER_EVENT_ID, NATIONAL_ID) is not None

    def test_unknown_references_rejected(self, repository: InMemorySubscriberRepository) -> None:
        with pytest.raises(NotFoundError):
            repository.create_subscriber(new_subscriber(nationality_id="nat-unknown"))
        with pytest.raises(NotFoundError):
            repository.create_subscriber(new_subscriber(job_requirement_id="req-unknown"))

    def test_update_moves_identity_index(self, repository: InMemorySubscriberRepository) -> None:
        created = repository.create_subscriber(new_subscriber())

        repository.update_subscriber(replace(created, identity_number=NATIONAL_ID_2))

        assert repository.find_subscriber(EVENT_ID, NATIONAL_ID) is None
        assert repository.find_subscriber(EVENT_ID, NATIONAL_ID_2).id == created.id

    def test_update_to_taken_identity_conflicts(self, repository: InMemorySubscriberRepository) -> None:
        repository.create_subscriber(new_subscriber())
        other = repository.create_subscriber(new_subscriber(identity_number=NATIONAL_ID_2))

        with pytest.raises(ConflictError):
            repository.update_subscriber(replace(other, identity_number=NATIONAL_ID))

    def test_delete_returns_removed(self, repository: InMemorySubscriberRepository) -> None:
        created = repository.create_subscriber(new_subscriber())

        assert repository.delete_subscriber(created.id) == created
        assert repository.delete_subscriber(created.id) is None
        assert repository.find_subscriber(EVENT_ID, NATIONAL_ID) is None

    def test_list_all_subscribers_newest_first(self, repository: InMemorySubscriberRepository) -> None:
        first = repository.create_subscriber(new_subscriber())
        second = repository.create_subscriber(new_subscriber(event_id=OTHER_EVENT_ID))

        assert [s.id for s in repository.list_all_subscribers()] == [second.id, first.id]

    def test_set_accepted_reports_events(self, repository: InMemorySubscriberRepository) -> None:
        here = repository.create_subscriber(new_subscriber())
        there = repository.create_subscriber(new_subscriber(event_id=OTHER_EVENT_ID))

        event_ids = repository.set_accepted([here.id, there.id, "missing"], True)

        assert event_ids == {EVENT_ID, OTHER_EVENT_ID}
        assert repository.list_subscribers(EVENT_ID, accepted_only=True) == [
            repository.get_subscriber(here.id)
        ]


class TestRequirements:
    def test_delete_requirement_nulls_references(self, repository: InMemorySubscriberRepository) -> None:
        requirement = repository.create_requirement(EVENT_ID, JOB_ID, Decimal("150"))
        subscriber = repository.create_subscriber(new_subscriber(job_requirement_id=requirement.id))

        assert repository.delete_requirement(requirement.id) == requirement
        assert repository.get_subscriber(subscriber.id).job_requirement_id is None

    def test_create_requires_known_event_and_job(self, repository: InMemorySubscriberRepository) -> None:
        with pytest.raises(NotFoundError):
            repository.create_requirement("missing", JOB_ID, Decimal("1"))
        with pytest.raises(NotFoundError):
            repository.create_requirement(EVENT_ID, "job-missing", Decimal("1"))

    def test_plan_ignores_other_events_requirements(self, repository: InMemorySubscriberRepository) -> None:
        foreign = repository.create_requirement(OTHER_EVENT_ID, JOB_ID, Decimal("10"))

        repository.apply_requirement_plan(
            EVENT_ID, RequirementPlan(update=((foreign.id, Decimal("99")),), delete=(foreign.id,))
        )

        assert repository.get_requirement(foreign.id) == foreign

    def test_plan_with_unknown_job_changes_nothing(self, repository: InMemorySubscriberRepository) -> None:
        existing = repository.create_requirement(EVENT_ID, JOB_ID, Decimal("10"))
        plan = RequirementPlan(
            create=(DesiredRequirement(job_id="job-missing", daily_rate=Decimal("1")),),
            delete=(existing.id,),
        )

        with pytest.raises(NotFoundError):
            repository.apply_requirement_plan(EVENT_ID, plan)

        assert repository.list_requirements(EVENT_ID) == [existing]

    def test_export_rows_join_reference_data(self, repository: InMemorySubscriberRepository) -> None:
        requirement = repository.create_requirement(EVENT_ID, OTHER_JOB_ID, Decimal("80"))
        repository.create_subscriber(new_subscriber(job_requirement_id=requirement.id))

        (row,) = repository.list_export_rows(EVENT_ID)

        assert row.nationality_name == "Saudi"
        assert row.job_name == "Steward"
        assert row.daily_rate == Decimal("80")
