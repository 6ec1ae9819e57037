"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Registration itself is submitted as multipart form data (see v1 routes).
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.domain.models import Gender


class EligibilityRequest(BaseModel):
    """Request model for the advisory eligibility check."""

    identity_number: str = Field(..., description="10-digit national ID or resident permit number")


class EligibilityResponse(BaseModel):
    """Response model for the eligibility check."""

    valid: bool
    is_duplicate: bool
    error: str | None = None
    message: str | None = None


class SubscriberResponse(BaseModel):
    """Subscriber as returned to administrators and registrants."""

    model_config = ConfigDict(from_attributes=True)

    id: str
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
    personal_image_url: str
    accepted: bool
    created_at: datetime | None


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    message: str
    subscriber: SubscriberResponse


class SubscriberUpdateRequest(BaseModel):
    """Administrative edit; omitted fields are left unchanged."""

    name: str | None = None
    mobile: str | None = None
    email: EmailStr | None = None
    identity_number: str | None = None
    nationality_id: str | None = None
    birth_date: date | None = None
    identity_expiry_date: date | None = None
    iban: str | None = None
    bank_name: str | None = None
    account_holder: str | None = None
    gender: str | None = None
    city: str | None = None
    job_requirement_id: str | None = Field(None, description="Empty string clears the job")


class AcceptedRequest(BaseModel):
    """Request model for a single acceptance toggle."""

    accepted: bool


class EventFlagsRequest(BaseModel):
    """Event settings toggle; omitted flags are left unchanged."""

    accepting_applications: bool | None = Field(None, description="Open or close the application window")
    published: bool | None = None
    completed: bool | None = None


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: dict[str, str]
    accepting_applications: bool
    published: bool
    completed: bool


class BulkAcceptedRequest(BaseModel):
    """Request model for a bulk acceptance toggle."""

    subscriber_ids: list[str]
    accepted: bool


class RequirementCreateRequest(BaseModel):
    job_id: str = Field(..., min_length=1)
    daily_rate: Decimal


class RequirementRateRequest(BaseModel):
    daily_rate: Decimal


class RequirementItem(BaseModel):
    job_id: str = Field(..., min_length=1)
    daily_rate: Decimal


class RequirementsReplaceRequest(BaseModel):
    """Full desired requirement set for an event."""

    requirements: list[RequirementItem] = Field(default_factory=list)
    notes: list[str] | None = Field(None, description="Free-text requirement notes; omitted keeps the current ones")


class RequirementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    event_id: str
    job_id: str
    daily_rate: Decimal


class RequirementsReplaceResponse(BaseModel):
    created: int
    updated: int
    deleted: int


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    error: str
