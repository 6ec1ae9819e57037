"""
Domain exceptions - Semantic error types for event registration.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Every exception carries an ErrorKind so the operation boundary can
translate it into a structured result.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """
    Error vocabulary shared by every public operation.

    CONFLICT is raised by storage adapters when the uniqueness constraint
    on (event_id, identity_number) fires at commit time. Callers never see
    it: the registration workflow re-surfaces it as DUPLICATE.
    """

    FORMAT = "format_error"
    CHECKSUM = "checksum_error"
    DUPLICATE = "duplicate_error"
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict_error"
    UPLOAD = "upload_error"
    NOTHING_TO_EXPORT = "nothing_to_export"
    INTERNAL = "internal_error"


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    kind: ErrorKind = ErrorKind.INTERNAL


class IdentityFormatError(RegistrationError):
    """Identity number is not 10 digits or has an unknown leading digit."""

    kind = ErrorKind.FORMAT


class ChecksumError(RegistrationError):
    """Identity number check digit does not match the first nine digits."""

    kind = ErrorKind.CHECKSUM

    def __init__(self, message: str, expected: int, actual: int) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class DuplicateError(RegistrationError):
    """Identity number is already registered for this event."""

    kind = ErrorKind.DUPLICATE


class ValidationError(RegistrationError):
    """A payload field other than the identity number is invalid."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(RegistrationError):
    """Referenced event, subscriber, job or requirement does not exist."""

    kind = ErrorKind.NOT_FOUND


class ConflictError(RegistrationError):
    """Storage-level uniqueness violation detected at commit time."""

    kind = ErrorKind.CONFLICT


class UploadError(RegistrationError):
    """Asset store failed or timed out."""

    kind = ErrorKind.UPLOAD


class NothingToExport(RegistrationError):
    """Export requested for an event without subscribers."""

    kind = ErrorKind.NOTHING_TO_EXPORT
