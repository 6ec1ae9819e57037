"""
Registration domain service - Applicant registration and record lifecycle.

Registration Workflow
=====================

    1. Event gate: the event exists, accepts applications, is not completed
    2. Payload validation: identity number (format + checksum), personal and
       banking fields, job requirement binding, both images present
    3. Duplicate re-check for (event_id, identity_number)
    4. Derived fields: age from birth date, normalized IBAN
    5. Upload both images (bounded by upload_timeout), before any commit
    6. Commit the subscriber with accepted=False
    7. Announce stale views

Ordering guarantees:
- Nothing is committed unless both uploads succeeded.
- Uploads never happen after the commit.
- A storage ConflictError at commit (concurrent registration that slipped
  past step 3) is reported as DuplicateError, the same error the advisory
  check produces.
- When the commit fails, the freshly uploaded assets are deleted again
  (best effort) and a single terminal error is returned.
"""

import logging
import re
import time
from collections.abc import Callable, Sequence
from concurrent import futures
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone

from . import views
from .derived import asset_id_from_url, compute_age, is_valid_iban, normalize_iban, sanitize_reference
from .eligibility import DUPLICATE_MESSAGE, EligibilityGate
from .exceptions import ConflictError, DuplicateError, NotFoundError, UploadError, ValidationError
from .identity import validate_identity_number
from .models import (
    Event,
    Gender,
    NewSubscriber,
    RegistrationPayload,
    StoredAsset,
    Subscriber,
    SubscriberChanges,
    UploadFile,
)
from .ports import AssetStore, SubscriberRepository, ViewNotifier
from .results import OperationResult, run_operation

logger = logging.getLogger(__name__)

MIN_AGE = 1
MAX_AGE = 150
DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_length(value: str, field_name: str, minimum: int, maximum: int) -> str:
    value = value.strip()
    if not minimum <= len(value) <= maximum:
        raise ValidationError(
            f"{field_name} must be between {minimum} and {maximum} characters", field=field_name
        )
    return value


def _check_email(email: str) -> str:
    email = email.strip()
    if len(email) > 255 or not _EMAIL.match(email):
        raise ValidationError("Invalid email", field="email")
    return email


def _check_gender(gender: str) -> Gender:
    try:
        return Gender(gender.strip().lower())
    except ValueError:
        raise ValidationError("Gender must be male or female", field="gender") from None


def _check_iban(iban: str) -> str:
    normalized = normalize_iban(iban)
    if not is_valid_iban(normalized):
        raise ValidationError("Invalid IBAN format", field="iban")
    return normalized


def _derive_age(birth_date: date, now: datetime) -> int:
    if birth_date > now.date():
        raise ValidationError("Date of birth cannot be in the future", field="birth_date")
    age = compute_age(birth_date, now)
    if age < MIN_AGE:
        raise ValidationError(f"Age must be at least {MIN_AGE}", field="birth_date")
    if age > MAX_AGE:
        raise ValidationError(f"Age must be at most {MAX_AGE}", field="birth_date")
    return age


def _check_expiry(expiry: date, now: datetime) -> date:
    if expiry < now.date():
        raise ValidationError("Identity document has expired", field="identity_expiry_date")
    return expiry


@dataclass
class RegistrationService:
    """
    Domain service for applicant registration.

    Orchestrates validation, duplicate detection, derived fields, image
    uploads and the subscriber commit. Also owns the administrative edit
    and delete paths, which must keep the same invariants.
    """

    repository: SubscriberRepository
    asset_store: AssetStore
    notifier: ViewNotifier
    id_image_folder: str = "subscribers/id-images"
    personal_image_folder: str = "subscribers/personal-images"
    upload_timeout: float = 30.0
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    clock: Callable[[], datetime] = field(default=_utcnow)

    @property
    def gate(self) -> EligibilityGate:
        return EligibilityGate(self.repository)

    def register(self, payload: RegistrationPayload) -> OperationResult[Subscriber]:
        """
        Register an applicant for an event.

        Returns:
            OperationResult carrying the created Subscriber, or the error kind
            (FORMAT, CHECKSUM, DUPLICATE, VALIDATION, NOT_FOUND, UPLOAD)
        """
        return run_operation("register", lambda: self._register(payload))

    def update_subscriber(
        self, subscriber_id: str, changes: SubscriberChanges
    ) -> OperationResult[Subscriber]:
        """Apply an administrative edit, re-deriving age and IBAN as needed."""
        return run_operation("update_subscriber", lambda: self._update(subscriber_id, changes))

    def delete_subscriber(self, subscriber_id: str) -> OperationResult[None]:
        """Delete a subscriber and release both of its assets."""
        return run_operation("delete_subscriber", lambda: self._delete(subscriber_id))

    def list_subscribers(
        self, event_id: str, accepted_only: bool = False
    ) -> OperationResult[list[Subscriber]]:
        """List an event's roster, newest first."""

        def _list() -> list[Subscriber]:
            self._require_event(event_id)
            return self.repository.list_subscribers(event_id, accepted_only)

        return run_operation("list_subscribers", _list)

    def list_all_subscribers(self) -> OperationResult[list[Subscriber]]:
        """List subscribers across every event, newest first."""
        return run_operation("list_all_subscribers", self.repository.list_all_subscribers)

    def _register(self, payload: RegistrationPayload) -> Subscriber:
        event = self._require_event(payload.event_id)
        if not event.accepting_applications or event.completed:
            raise ValidationError("Event is not accepting applications", field="event_id")

        identity = validate_identity_number(payload.identity_number)
        now = self.clock()

        name = _check_length(payload.name, "name", 2, 100)
        mobile = _check_length(payload.mobile, "mobile", 5, 15)
        email = _check_email(payload.email)
        age = _derive_age(payload.birth_date, now)
        expiry = _check_expiry(payload.identity_expiry_date, now)
        iban = _check_iban(payload.iban)
        bank_name = _check_length(payload.bank_name, "bank_name", 1, 100)
        account_holder = _check_length(payload.account_holder, "account_holder", 1, 100)
        gender = _check_gender(payload.gender)
        city = _check_length(payload.city, "city", 2, 100)
        if not payload.agreed_to_requirements:
            raise ValidationError("You must agree to the requirements", field="agreed_to_requirements")
        self._require_nationality(payload.nationality_id)
        requirement_id = self._check_requirement(event, payload.job_requirement_id, required=True)
        id_image = self._check_image(payload.id_image, "id_image")
        personal_image = self._check_image(payload.personal_image, "personal_image")

        self.gate.ensure_not_registered(event.id, identity.number)

        id_asset, personal_asset = self._upload(
            [(id_image, self.id_image_folder), (personal_image, self.personal_image_folder)]
        )

        new_subscriber = NewSubscriber(
            event_id=event.id,
            job_requirement_id=requirement_id,
            nationality_id=payload.nationality_id,
            name=name,
            mobile=mobile,
            email=email,
            identity_number=identity.number,
            identity_expiry_date=expiry,
            birth_date=payload.birth_date,
            age=age,
            gender=gender,
            city=city,
            iban=iban,
            bank_name=bank_name,
            account_holder=account_holder,
            id_image_url=id_asset.url,
            id_image_asset_id=id_asset.asset_id,
            personal_image_url=personal_asset.url,
            personal_image_asset_id=personal_asset.asset_id,
            accepted=False,
        )

        subscriber = self._commit([id_asset, personal_asset], self.repository.create_subscriber, new_subscriber)
        logger.info(
            "Registered subscriber %s for event %s (%s)",
            subscriber.id,
            event.id,
            identity.document_type.value,
        )
        self._announce(views.after_registration(event.id))
        return subscriber

    def _update(self, subscriber_id: str, changes: SubscriberChanges) -> Subscriber:
        current = self.repository.get_subscriber(subscriber_id)
        if current is None:
            raise NotFoundError("Subscriber not found")
        event = self._require_event(current.event_id)
        now = self.clock()
        updates: dict[str, object] = {}

        if changes.identity_number is not None:
            identity = validate_identity_number(changes.identity_number)
            if identity.number != current.identity_number:
                self.gate.ensure_not_registered(event.id, identity.number)
            updates["identity_number"] = identity.number
        if changes.name is not None:
            updates["name"] = _check_length(changes.name, "name", 2, 100)
        if changes.mobile is not None:
            updates["mobile"] = _check_length(changes.mobile, "mobile", 5, 15)
        if changes.email is not None:
            updates["email"] = _check_email(changes.email)
        if changes.birth_date is not None:
            updates["birth_date"] = changes.birth_date
            updates["age"] = _derive_age(changes.birth_date, now)
        if changes.identity_expiry_date is not None:
            updates["identity_expiry_date"] = _check_expiry(changes.identity_expiry_date, now)
        if changes.iban is not None:
            updates["iban"] = _check_iban(changes.iban)
        if changes.bank_name is not None:
            updates["bank_name"] = _check_length(changes.bank_name, "bank_name", 1, 100)
        if changes.account_holder is not None:
            updates["account_holder"] = _check_length(changes.account_holder, "account_holder", 1, 100)
        if changes.gender is not None:
            updates["gender"] = _check_gender(changes.gender)
        if changes.city is not None:
            updates["city"] = _check_length(changes.city, "city", 2, 100)
        if changes.nationality_id is not None:
            self._require_nationality(changes.nationality_id)
            updates["nationality_id"] = changes.nationality_id
        if changes.job_requirement_id is not None:
            updates["job_requirement_id"] = self._check_requirement(
                event, changes.job_requirement_id, required=False
            )

        uploads: list[tuple[UploadFile, str]] = []
        if changes.id_image is not None:
            uploads.append((self._check_image(changes.id_image, "id_image"), self.id_image_folder))
        if changes.personal_image is not None:
            uploads.append(
                (self._check_image(changes.personal_image, "personal_image"), self.personal_image_folder)
            )
        stored = iter(self._upload(uploads)) if uploads else iter(())

        replaced: list[tuple[str | None, str]] = []
        fresh: list[StoredAsset] = []
        if changes.id_image is not None:
            asset = next(stored)
            fresh.append(asset)
            replaced.append((current.id_image_asset_id, current.id_image_url))
            updates["id_image_url"] = asset.url
            updates["id_image_asset_id"] = asset.asset_id
        if changes.personal_image is not None:
            asset = next(stored)
            fresh.append(asset)
            replaced.append((current.personal_image_asset_id, current.personal_image_url))
            updates["personal_image_url"] = asset.url
            updates["personal_image_asset_id"] = asset.asset_id

        updated = self._commit(fresh, self.repository.update_subscriber, replace(current, **updates))
        for asset_id, url in replaced:
            self._release(asset_id, url)

        logger.info("Updated subscriber %s", subscriber_id)
        self._announce(views.after_subscriber_change({event.id}))
        return updated

    def _delete(self, subscriber_id: str) -> None:
        deleted = self.repository.delete_subscriber(subscriber_id)
        if deleted is None:
            raise NotFoundError("Subscriber not found")
        self._release(deleted.id_image_asset_id, deleted.id_image_url)
        self._release(deleted.personal_image_asset_id, deleted.personal_image_url)
        logger.info("Deleted subscriber %s from event %s", subscriber_id, deleted.event_id)
        self._announce(views.after_subscriber_removal(deleted.event_id))

    def _require_event(self, event_id: str) -> Event:
        event = self.repository.get_event(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        return event

    def _require_nationality(self, nationality_id: str) -> None:
        if not nationality_id or self.repository.get_nationality(nationality_id) is None:
            raise ValidationError("Nationality is required", field="nationality_id")

    def _check_requirement(self, event: Event, requirement_id: str | None, required: bool) -> str | None:
        """
        Resolve the optional job requirement reference.

        When required is True and the event has open roles, the applicant
        must pick one of them.
        """
        requirement_id = sanitize_reference(requirement_id)
        if requirement_id is None:
            if required and self.repository.list_requirements(event.id):
                raise ValidationError("Job is required", field="job_requirement_id")
            return None
        requirement = self.repository.get_requirement(requirement_id)
        if requirement is None or requirement.event_id != event.id:
            raise ValidationError(
                "Job requirement does not belong to this event", field="job_requirement_id"
            )
        return requirement.id

    def _check_image(self, image: UploadFile | None, field_name: str) -> UploadFile:
        if image is None or not image.content:
            raise ValidationError("Image is required", field=field_name)
        if not image.content_type.startswith("image/"):
            raise ValidationError("Selected file is not an image", field=field_name)
        if len(image.content) > self.max_image_bytes:
            raise ValidationError("Image size too large", field=field_name)
        return image

    def _upload(self, uploads: Sequence[tuple[UploadFile, str]]) -> list[StoredAsset]:
        """
        Upload all files concurrently within upload_timeout.

        On any failure the uploads that did succeed are released and
        UploadError is raised. Uploads still running at the deadline are
        released as soon as they finish.
        """
        executor = futures.ThreadPoolExecutor(max_workers=len(uploads))
        deadline = time.monotonic() + self.upload_timeout
        pending = [executor.submit(self.asset_store.upload, file, folder) for file, folder in uploads]
        stored: list[StoredAsset] = []
        late: list[futures.Future[StoredAsset]] = []
        failure: UploadError | None = None
        try:
            for future in pending:
                try:
                    stored.append(future.result(timeout=max(0.0, deadline - time.monotonic())))
                except futures.TimeoutError:
                    late.append(future)
                    failure = failure or UploadError("Image upload timed out")
                except Exception as e:
                    logger.error("Image upload failed: %s", e)
                    failure = failure or UploadError("Failed to upload image")
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if failure is not None:
            self._release_all(stored)
            for future in late:
                future.add_done_callback(self._release_late)
            raise failure
        return stored

    def _release_late(self, future: futures.Future[StoredAsset]) -> None:
        if future.cancelled() or future.exception() is not None:
            return
        asset = future.result()
        logger.warning("Releasing asset %s that finished after the upload deadline", asset.asset_id)
        self._release(asset.asset_id, asset.url)

    def _commit(
        self,
        uploaded: Sequence[StoredAsset],
        write: Callable[[NewSubscriber], Subscriber],
        record: NewSubscriber,
    ) -> Subscriber:
        try:
            return write(record)
        except ConflictError:
            self._release_all(uploaded)
            raise DuplicateError(DUPLICATE_MESSAGE) from None
        except Exception:
            self._release_all(uploaded)
            raise

    def _release_all(self, assets: Sequence[StoredAsset]) -> None:
        for asset in assets:
            self._release(asset.asset_id, asset.url)

    def _release(self, asset_id: str | None, url: str | None) -> None:
        """Best-effort asset deletion; failures are logged, never raised."""
        reference = asset_id or (asset_id_from_url(url) if url else None)
        if reference is None:
            logger.warning("Cannot derive asset id from %r, asset not released", url)
            return
        try:
            self.asset_store.delete(reference)
        except Exception:
            logger.exception("Failed to release asset %s", reference)

    def _announce(self, view_keys: list[str]) -> None:
        try:
            self.notifier.notify(view_keys)
        except Exception:
            logger.exception("View invalidation failed for %s", view_keys)
