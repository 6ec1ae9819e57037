"""
API v1 routes.

Defines REST endpoints for the event registration API. Domain services
return structured results; failures are rendered as
``{"detail": <message>, "error": <kind>}`` with a status code per kind.

The services block on the database and the asset store, so handlers are
plain functions run in the threadpool. Registration reads its uploads
asynchronously and hands the service call to the threadpool itself.
"""

from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from src.api.dependencies import (
    get_acceptance_service,
    get_eligibility_gate,
    get_event_service,
    get_export_service,
    get_registration_service,
    get_requirement_service,
)
from src.api.models import (
    AcceptedRequest,
    BulkAcceptedRequest,
    EligibilityRequest,
    EligibilityResponse,
    ErrorResponse,
    EventFlagsRequest,
    EventResponse,
    RegisterResponse,
    RequirementCreateRequest,
    RequirementRateRequest,
    RequirementResponse,
    RequirementsReplaceRequest,
    RequirementsReplaceResponse,
    SubscriberResponse,
    SubscriberUpdateRequest,
    SuccessResponse,
)
from src.domain.acceptance import AcceptanceService
from src.domain.eligibility import EligibilityGate
from src.domain.events import EventService
from src.domain.exceptions import ErrorKind
from src.domain.export import ExportService
from src.domain.models import DesiredRequirement, RegistrationPayload, SubscriberChanges
from src.domain.models import UploadFile as ImageUpload
from src.domain.registration import RegistrationService
from src.domain.requirements import RequirementService
from src.domain.results import OperationResult

router = APIRouter(tags=["v1"])

_STATUS_BY_ERROR = {
    ErrorKind.FORMAT: 422,
    ErrorKind.CHECKSUM: 422,
    ErrorKind.VALIDATION: 422,
    ErrorKind.DUPLICATE: status.HTTP_409_CONFLICT,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.NOTHING_TO_EXPORT: status.HTTP_404_NOT_FOUND,
    ErrorKind.UPLOAD: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

_ERRORS = {
    404: {"model": ErrorResponse, "description": "Event, subscriber or requirement not found"},
    422: {"model": ErrorResponse, "description": "Validation error"},
}


def error_response(result: OperationResult) -> JSONResponse:
    """Render a failed operation result."""
    error = result.error or ErrorKind.INTERNAL
    return JSONResponse(
        status_code=_STATUS_BY_ERROR[error],
        content={"detail": result.message or "Request failed", "error": error.value},
    )


async def _read_image(upload: UploadFile | None) -> ImageUpload | None:
    if upload is None:
        return None
    content = await upload.read()
    return ImageUpload(
        filename=upload.filename or "",
        content_type=upload.content_type or "",
        content=content,
    )


@router.post(
    "/events/{event_id}/eligibility",
    response_model=EligibilityResponse,
    summary="Check identity number eligibility",
    description="Advisory check: validates the identity number and reports whether "
    "it is already registered for the event.",
)
def check_eligibility(
    event_id: str,
    request_data: EligibilityRequest,
    gate: EligibilityGate = Depends(get_eligibility_gate),
) -> EligibilityResponse:
    result = gate.check(event_id, request_data.identity_number)
    return EligibilityResponse(
        valid=result.valid,
        is_duplicate=result.is_duplicate,
        error=result.error.value if result.error else None,
        message=result.message,
    )


@router.post(
    "/events/{event_id}/registrations",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        **_ERRORS,
        409: {"model": ErrorResponse, "description": "Identity number already registered"},
        502: {"model": ErrorResponse, "description": "Image upload failed"},
    },
    summary="Register for an event",
    description="Submit the application form with the identity document image "
    "and a personal photo as multipart form data.",
)
async def register(
    event_id: str,
    name: str = Form(...),
    mobile: str = Form(...),
    email: str = Form(...),
    identity_number: str = Form(...),
    nationality_id: str = Form(...),
    birth_date: date = Form(...),
    identity_expiry_date: date = Form(...),
    iban: str = Form(...),
    bank_name: str = Form(...),
    account_holder: str = Form(...),
    gender: str = Form(...),
    city: str = Form(...),
    agreed_to_requirements: bool = Form(False),
    job_requirement_id: str | None = Form(None),
    id_image: UploadFile | None = File(None),
    personal_image: UploadFile | None = File(None),
    service: RegistrationService = Depends(get_registration_service),
) -> RegisterResponse | JSONResponse:
    payload = RegistrationPayload(
        event_id=event_id,
        name=name,
        mobile=mobile,
        email=email,
        identity_number=identity_number,
        nationality_id=nationality_id,
        birth_date=birth_date,
        identity_expiry_date=identity_expiry_date,
        iban=iban,
        bank_name=bank_name,
        account_holder=account_holder,
        gender=gender,
        city=city,
        agreed_to_requirements=agreed_to_requirements,
        job_requirement_id=job_requirement_id,
        id_image=await _read_image(id_image),
        personal_image=await _read_image(personal_image),
    )
    result = await run_in_threadpool(service.register, payload)
    if not result.success:
        return error_response(result)
    return RegisterResponse(
        message="Registration received",
        subscriber=SubscriberResponse.model_validate(result.value),
    )


@router.get(
    "/events/{event_id}/subscribers",
    response_model=list[SubscriberResponse],
    responses={404: _ERRORS[404]},
    summary="List an event's subscribers",
)
def list_subscribers(
    event_id: str,
    accepted_only: bool = False,
    service: RegistrationService = Depends(get_registration_service),
) -> list[SubscriberResponse] | JSONResponse:
    result = service.list_subscribers(event_id, accepted_only)
    if not result.success:
        return error_response(result)
    return [SubscriberResponse.model_validate(s) for s in result.value]


@router.get(
    "/subscribers",
    response_model=list[SubscriberResponse],
    summary="List subscribers across all events",
)
def list_all_subscribers(
    service: RegistrationService = Depends(get_registration_service),
) -> list[SubscriberResponse] | JSONResponse:
    result = service.list_all_subscribers()
    if not result.success:
        return error_response(result)
    return [SubscriberResponse.model_validate(s) for s in result.value]


@router.patch(
    "/events/{event_id}/flags",
    response_model=EventResponse,
    responses=_ERRORS,
    summary="Publish, open or complete an event",
    description="Toggles accepting_applications, published and completed. "
    "Omitted flags keep their current value.",
)
def set_event_flags(
    event_id: str,
    request_data: EventFlagsRequest,
    service: EventService = Depends(get_event_service),
) -> EventResponse | JSONResponse:
    result = service.set_event_flags(event_id, **request_data.model_dump())
    if not result.success:
        return error_response(result)
    return EventResponse.model_validate(result.value)


@router.patch(
    "/subscribers/{subscriber_id}",
    response_model=SubscriberResponse,
    responses={**_ERRORS, 409: {"model": ErrorResponse, "description": "Identity number already registered"}},
    summary="Edit a subscriber",
)
def update_subscriber(
    subscriber_id: str,
    request_data: SubscriberUpdateRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> SubscriberResponse | JSONResponse:
    changes = SubscriberChanges(**request_data.model_dump(exclude_unset=True))
    result = service.update_subscriber(subscriber_id, changes)
    if not result.success:
        return error_response(result)
    return SubscriberResponse.model_validate(result.value)


@router.delete(
    "/subscribers/{subscriber_id}",
    response_model=SuccessResponse,
    responses={404: _ERRORS[404]},
    summary="Delete a subscriber and its images",
)
def delete_subscriber(
    subscriber_id: str,
    service: RegistrationService = Depends(get_registration_service),
) -> SuccessResponse | JSONResponse:
    result = service.delete_subscriber(subscriber_id)
    if not result.success:
        return error_response(result)
    return SuccessResponse()


@router.put(
    "/subscribers/accepted",
    response_model=SuccessResponse,
    summary="Accept or reject several subscribers",
    description="Unknown subscriber ids are skipped.",
)
def bulk_set_accepted(
    request_data: BulkAcceptedRequest,
    service: AcceptanceService = Depends(get_acceptance_service),
) -> SuccessResponse | JSONResponse:
    result = service.bulk_set_accepted(request_data.subscriber_ids, request_data.accepted)
    if not result.success:
        return error_response(result)
    return SuccessResponse()


@router.put(
    "/subscribers/{subscriber_id}/accepted",
    response_model=SuccessResponse,
    responses={404: _ERRORS[404]},
    summary="Accept or reject a subscriber",
)
def set_accepted(
    subscriber_id: str,
    request_data: AcceptedRequest,
    service: AcceptanceService = Depends(get_acceptance_service),
) -> SuccessResponse | JSONResponse:
    result = service.set_accepted(subscriber_id, request_data.accepted)
    if not result.success:
        return error_response(result)
    return SuccessResponse()


@router.post(
    "/events/{event_id}/requirements",
    response_model=RequirementResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Add a job requirement to an event",
)
def add_requirement(
    event_id: str,
    request_data: RequirementCreateRequest,
    service: RequirementService = Depends(get_requirement_service),
) -> RequirementResponse | JSONResponse:
    result = service.add_requirement(event_id, request_data.job_id, request_data.daily_rate)
    if not result.success:
        return error_response(result)
    return RequirementResponse.model_validate(result.value)


@router.put(
    "/events/{event_id}/requirements",
    response_model=RequirementsReplaceResponse,
    responses=_ERRORS,
    summary="Replace an event's job requirements",
    description="Reconciles the full desired set: missing jobs are created, "
    "surplus ones removed and the rest re-priced.",
)
def replace_requirements(
    event_id: str,
    request_data: RequirementsReplaceRequest,
    service: RequirementService = Depends(get_requirement_service),
) -> RequirementsReplaceResponse | JSONResponse:
    desired = [
        DesiredRequirement(job_id=item.job_id, daily_rate=item.daily_rate)
        for item in request_data.requirements
    ]
    result = service.replace_requirements_and_roster(event_id, desired, request_data.notes)
    if not result.success:
        return error_response(result)
    plan = result.value
    return RequirementsReplaceResponse(
        created=len(plan.create), updated=len(plan.update), deleted=len(plan.delete)
    )


@router.patch(
    "/requirements/{requirement_id}",
    response_model=RequirementResponse,
    responses=_ERRORS,
    summary="Change a requirement's daily rate",
)
def update_requirement_rate(
    requirement_id: str,
    request_data: RequirementRateRequest,
    service: RequirementService = Depends(get_requirement_service),
) -> RequirementResponse | JSONResponse:
    result = service.update_requirement_rate(requirement_id, request_data.daily_rate)
    if not result.success:
        return error_response(result)
    return RequirementResponse.model_validate(result.value)


@router.delete(
    "/requirements/{requirement_id}",
    response_model=SuccessResponse,
    responses={404: _ERRORS[404]},
    summary="Remove a job requirement",
)
def remove_requirement(
    requirement_id: str,
    service: RequirementService = Depends(get_requirement_service),
) -> SuccessResponse | JSONResponse:
    result = service.remove_requirement(requirement_id)
    if not result.success:
        return error_response(result)
    return SuccessResponse()


@router.get(
    "/events/{event_id}/export",
    response_class=Response,
    responses={
        200: {"content": {"text/csv": {}}, "description": "Subscribers as CSV"},
        404: {"model": ErrorResponse, "description": "Event not found or nothing to export"},
    },
    summary="Export an event's subscribers as CSV",
)
def export_subscribers(
    event_id: str,
    service: ExportService = Depends(get_export_service),
) -> Response:
    result = service.export_to_delimited_text(event_id)
    if not result.success:
        return error_response(result)
    filename = f"subscribers_{event_id}_{datetime.now(timezone.utc).date().isoformat()}.csv"
    return Response(
        content=result.value,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
