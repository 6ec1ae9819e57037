"""
Unit tests for the advisory eligibility check.
"""

from unittest.mock import Mock

import pytest

from src.adapters.repository.memory import InMemorySubscriberRepository
from src.domain.eligibility import DUPLICATE_MESSAGE, EligibilityGate
from src.domain.exceptions import DuplicateError, ErrorKind
from src.domain.registration import RegistrationService
from tests.factories import EVENT_ID, NATIONAL_ID, OTHER_EVENT_ID, RESIDENT_ID, make_payload


class TestEligibilityCheck:
    """Tests for EligibilityGate.check outcomes."""

    def test_unregistered_valid_number(self, repository: InMemorySubscriberRepository) -> None:
        result = EligibilityGate(repository).check(EVENT_ID, NATIONAL_ID)

        assert result.valid is True
        assert result.is_duplicate is False
        assert result.error is None

    def test_resident_permit_accepted(self, repository: InMemorySubscriberRepository) -> None:
        assert EligibilityGate(repository).check(EVENT_ID, RESIDENT_ID).valid is True

    def test_invalid_checksum(self, repository: InMemorySubscriberRepository) -> None:
        result = EligibilityGate(repository).check(EVENT_ID, "1000000000")

        assert result.valid is False
        assert result.is_duplicate is False
        assert result.error == ErrorKind.CHECKSUM

    def test_invalid_format(self, repository: InMemorySubscriberRepository) -> None:
        result = EligibilityGate(repository).check(EVENT_ID, "abc")

        assert result.valid is False
        assert result.error == ErrorKind.FORMAT

    def test_registered_number_is_duplicate(
        self, repository: InMemorySubscriberRepository, registration_service: RegistrationService
    ) -> None:
        registration_service.register(make_payload())

        result = EligibilityGate(repository).check(EVENT_ID, NATIONAL_ID)

        assert result.valid is True
        assert result.is_duplicate is True
        assert result.error == ErrorKind.DUPLICATE
        assert result.message == DUPLICATE_MESSAGE

    def test_duplicate_is_per_event(
        self, repository: InMemorySubscriberRepository, registration_service: RegistrationService
    ) -> None:
        registration_service.register(make_payload())

        assert EligibilityGate(repository).check(OTHER_EVENT_ID, NATIONAL_ID).is_duplicate is False

    def test_whitespace_around_number_ignored(
        self, repository: InMemorySubscriberRepository, registration_service: RegistrationService
    ) -> None:
        registration_service.register(make_payload())

        assert EligibilityGate(repository).check(EVENT_ID, f" {NATIONAL_ID} ").is_duplicate is True

    def test_lookup_failure_is_internal(self) -> None:
        """A storage failure never reports a number as eligible."""
        repo = Mock()
        repo.find_subscriber.side_effect = RuntimeError("connection lost")

        result = EligibilityGate(repo).check(EVENT_ID, NATIONAL_ID)

        assert result.valid is False
        assert result.error == ErrorKind.INTERNAL

    def test_invalid_number_skips_lookup(self) -> None:
        repo = Mock()

        EligibilityGate(repo).check(EVENT_ID, "1000000000")

        repo.find_subscriber.assert_not_called()


class TestEnsureNotRegistered:
    def test_raises_for_existing(self) -> None:
        repo = Mock()
        repo.find_subscriber.return_value = object()

        with pytest.raises(DuplicateError):
            EligibilityGate(repo).ensure_not_registered(EVENT_ID, NATIONAL_ID)

    def test_passes_for_new(self) -> None:
        repo = Mock()
        repo.find_subscriber.return_value = None

        EligibilityGate(repo).ensure_not_registered(EVENT_ID, NATIONAL_ID)

        repo.find_subscriber.assert_called_once_with(EVENT_ID, NATIONAL_ID)
