"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Protocol

from .models import (
    Event,
    ExportRow,
    Job,
    JobRequirement,
    Nationality,
    NewSubscriber,
    RequirementPlan,
    StoredAsset,
    Subscriber,
    UploadFile,
)


class SubscriberRepository(Protocol):
    """
    Port interface for subscriber and requirement persistence.

    The store owns the authoritative uniqueness constraint on
    (event_id, identity_number): create_subscriber and update_subscriber
    raise ConflictError when it fires.
    """

    def get_event(self, event_id: str) -> Event | None: ...

    def get_job(self, job_id: str) -> Job | None: ...

    def get_nationality(self, nationality_id: str) -> Nationality | None: ...

    def set_event_flags(
        self,
        event_id: str,
        *,
        accepting_applications: bool | None = None,
        published: bool | None = None,
        completed: bool | None = None,
    ) -> Event | None:
        """
        Update the given event flags; None leaves a flag unchanged.

        Returns:
            The updated event, or None if it does not exist
        """
        ...

    def find_subscriber(self, event_id: str, identity_number: str) -> Subscriber | None:
        """Look up a subscriber by its (event_id, identity_number) key."""
        ...

    def get_subscriber(self, subscriber_id: str) -> Subscriber | None: ...

    def list_all_subscribers(self) -> list[Subscriber]:
        """List subscribers across every event, newest first."""
        ...

    def list_subscribers(self, event_id: str, accepted_only: bool = False) -> list[Subscriber]:
        """List an event's subscribers, newest first."""
        ...

    def create_subscriber(self, subscriber: NewSubscriber) -> Subscriber:
        """
        Insert a subscriber.

        Raises:
            ConflictError: (event_id, identity_number) already exists
            NotFoundError: A referenced event, nationality or requirement is missing
        """
        ...

    def update_subscriber(self, subscriber: Subscriber) -> Subscriber:
        """
        Replace all mutable fields of an existing subscriber.

        Raises:
            ConflictError: The new identity number collides within the event
            NotFoundError: Subscriber or a referenced record is missing
        """
        ...

    def delete_subscriber(self, subscriber_id: str) -> Subscriber | None:
        """Delete and return the subscriber, or None if it did not exist."""
        ...

    def set_accepted(self, subscriber_ids: Sequence[str], accepted: bool) -> set[str]:
        """
        Set accepted on every existing id in one batched write.

        Unknown ids are skipped.

        Returns:
            Event ids owning the updated subscribers
        """
        ...

    def list_export_rows(self, event_id: str) -> list[ExportRow]:
        """Subscribers joined with nationality and job data, newest first."""
        ...

    def get_requirement(self, requirement_id: str) -> JobRequirement | None: ...

    def list_requirements(self, event_id: str) -> list[JobRequirement]: ...

    def create_requirement(self, event_id: str, job_id: str, daily_rate: Decimal) -> JobRequirement:
        """
        Raises:
            NotFoundError: Event or job does not exist
        """
        ...

    def update_requirement_rate(self, requirement_id: str, daily_rate: Decimal) -> JobRequirement | None:
        """Return the updated requirement, or None if it did not exist."""
        ...

    def delete_requirement(self, requirement_id: str) -> JobRequirement | None:
        """
        Delete a requirement and null out subscriber references to it.

        Returns:
            The deleted requirement, or None if it did not exist
        """
        ...

    def apply_requirement_plan(
        self, event_id: str, plan: RequirementPlan, notes: Sequence[str] | None = None
    ) -> None:
        """
        Apply a reconciliation plan (and optional notes) in one transaction.

        Deleted requirements null out subscriber references like
        delete_requirement.
        """
        ...


class AssetStore(Protocol):
    """Port interface for binary asset storage."""

    def upload(self, file: UploadFile, folder: str) -> StoredAsset:
        """
        Store a file and return its stable URL and identifier.

        Any exception raised is treated as an upload failure.
        """
        ...

    def delete(self, asset: str) -> None:
        """Release an asset given its identifier or delivery URL."""
        ...


class ViewNotifier(Protocol):
    """Port interface for announcing stale logical views."""

    def notify(self, view_keys: Sequence[str]) -> None:
        """
        Announce that the given logical views are stale.

        Args:
            view_keys: Logical view keys (see domain.views)
        """
        ...
