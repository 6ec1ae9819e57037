"""
Eligibility gate - Advisory pre-registration check.

Combines identity-number validation with a duplicate lookup so the public
form can answer quickly before the registration workflow runs. The answer
is advisory: the storage uniqueness constraint remains the final arbiter
and the registration workflow re-checks before committing.
"""

import logging
from dataclasses import dataclass

from .exceptions import DuplicateError, ErrorKind, RegistrationError
from .identity import validate_identity_number
from .ports import SubscriberRepository
from .results import EligibilityResult

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "This identity number is already registered for this event"


@dataclass
class EligibilityGate:
    repository: SubscriberRepository

    def ensure_not_registered(self, event_id: str, identity_number: str) -> None:
        """
        Raises:
            DuplicateError: A subscriber with this identity number exists for the event
        """
        if self.repository.find_subscriber(event_id, identity_number) is not None:
            raise DuplicateError(DUPLICATE_MESSAGE)

    def check(self, event_id: str, identity_number: str) -> EligibilityResult:
        """
        Answer whether identity_number can register for event_id.

        Returns:
            - invalid number: valid=False, is_duplicate=False, error=FORMAT/CHECKSUM
            - already registered: valid=True, is_duplicate=True, error=DUPLICATE
            - otherwise: valid=True, is_duplicate=False
        """
        try:
            check = validate_identity_number(identity_number)
        except RegistrationError as e:
            return EligibilityResult(valid=False, is_duplicate=False, error=e.kind, message=str(e))

        try:
            self.ensure_not_registered(event_id, check.number)
        except DuplicateError as e:
            return EligibilityResult(valid=True, is_duplicate=True, error=e.kind, message=str(e))
        except Exception:
            logger.exception("Eligibility lookup failed for event %s", event_id)
            return EligibilityResult(
                valid=False,
                is_duplicate=False,
                error=ErrorKind.INTERNAL,
                message="Failed to verify identity number",
            )

        return EligibilityResult(valid=True, is_duplicate=False)
