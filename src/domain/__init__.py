"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for event registration:
identity-number validation, the eligibility gate, the registration and
acceptance workflows, event settings, job-requirement binding and
subscriber export. It defines its own port interfaces for infrastructure
abstraction, ensuring true hexagonal architecture decoupling.
"""

from .acceptance import AcceptanceService
from .eligibility import EligibilityGate
from .events import EventService
from .exceptions import (
    ChecksumError,
    ConflictError,
    DuplicateError,
    ErrorKind,
    IdentityFormatError,
    NotFoundError,
    NothingToExport,
    RegistrationError,
    UploadError,
    ValidationError,
)
from .export import ExportService
from .identity import DocumentType, validate_identity_number
from .ports import AssetStore, SubscriberRepository, ViewNotifier
from .registration import RegistrationService
from .requirements import RequirementService
from .results import EligibilityResult, OperationResult

__all__ = [
    "AcceptanceService",
    "AssetStore",
    "ChecksumError",
    "ConflictError",
    "DocumentType",
    "DuplicateError",
    "EligibilityGate",
    "EligibilityResult",
    "ErrorKind",
    "EventService",
    "ExportService",
    "IdentityFormatError",
    "NotFoundError",
    "NothingToExport",
    "OperationResult",
    "RegistrationError",
    "RegistrationService",
    "RequirementService",
    "SubscriberRepository",
    "UploadError",
    "ValidationError",
    "ViewNotifier",
    "validate_identity_number",
]
