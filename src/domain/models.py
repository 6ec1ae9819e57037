"""
Domain entities and value objects.

Typed records exchanged across the domain boundary. Reference data
(Nationality, Job) is read-only here; Event is read-mostly apart from its
requirement notes.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


@dataclass(frozen=True)
class Nationality:
    id: str
    name_en: str
    name_ar: str = ""


@dataclass(frozen=True)
class Job:
    id: str
    name: str


@dataclass(frozen=True)
class Event:
    """
    Event open (or closed) for applications.

    Titles and descriptions are keyed by display language.
    """

    id: str
    title: dict[str, str]
    date: datetime
    location_id: str | None = None
    description: dict[str, str] = field(default_factory=dict)
    accepting_applications: bool = True
    published: bool = False
    completed: bool = False
    requirement_notes: tuple[str, ...] = ()


@dataclass(frozen=True)
class JobRequirement:
    """Event-scoped open role with its daily rate."""

    id: str
    event_id: str
    job_id: str
    daily_rate: Decimal


@dataclass(frozen=True)
class DesiredRequirement:
    """One entry of the full desired requirement set for an event."""

    job_id: str
    daily_rate: Decimal


@dataclass(frozen=True)
class RequirementPlan:
    """Creates, rate updates and deletions reconciling an event's requirements."""

    create: tuple[DesiredRequirement, ...] = ()
    update: tuple[tuple[str, Decimal], ...] = ()
    delete: tuple[str, ...] = ()


@dataclass(frozen=True)
class UploadFile:
    """Image received from an applicant, not yet stored."""

    filename: str
    content_type: str
    content: bytes


@dataclass(frozen=True)
class StoredAsset:
    url: str
    asset_id: str


@dataclass(frozen=True)
class RegistrationPayload:
    """Public registration request as submitted by an applicant."""

    event_id: str
    name: str
    mobile: str
    email: str
    identity_number: str
    nationality_id: str
    birth_date: date
    identity_expiry_date: date
    iban: str
    bank_name: str
    account_holder: str
    gender: str
    city: str
    agreed_to_requirements: bool
    id_image: UploadFile | None
    personal_image: UploadFile | None
    job_requirement_id: str | None = None


@dataclass(frozen=True)
class NewSubscriber:
    """Fully validated subscriber ready to be committed."""

    event_id: str
    job_requirement_id: str | None
    nationality_id: str
    name: str
    mobile: str
    email: str
    identity_number: str
    identity_expiry_date: date
    birth_date: date
    age: int
    gender: Gender
    city: str
    iban: str
    bank_name: str
    account_holder: str
    id_image_url: str
    id_image_asset_id: str | None
    personal_image_url: str
    personal_image_asset_id: str | None
    accepted: bool = False


@dataclass(frozen=True)
class Subscriber(NewSubscriber):
    """Persisted registration record."""

    id: str = ""
    created_at: datetime | None = None


@dataclass(frozen=True)
class SubscriberChanges:
    """
    Administrative edit of an existing subscriber.

    None means "leave unchanged". job_requirement_id uses an empty string
    to clear the reference.
    """

    name: str | None = None
    mobile: str | None = None
    email: str | None = None
    identity_number: str | None = None
    nationality_id: str | None = None
    birth_date: date | None = None
    identity_expiry_date: date | None = None
    iban: str | None = None
    bank_name: str | None = None
    account_holder: str | None = None
    gender: str | None = None
    city: str | None = None
    job_requirement_id: str | None = None
    id_image: UploadFile | None = None
    personal_image: UploadFile | None = None


@dataclass(frozen=True)
class ExportRow:
    """Subscriber joined with its nationality, job and rate."""

    subscriber: Subscriber
    nationality_name: str = ""
    job_name: str = ""
    daily_rate: Decimal | None = None
