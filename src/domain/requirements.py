"""
Job-requirement binding - Open roles and daily rates per event.

Requirements are managed independently of subscriber records. Deleting a
requirement (directly or through reconciliation) nulls out the reference
on any subscriber that picked it; the subscriber itself is kept.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from . import views
from .exceptions import NotFoundError, ValidationError
from .models import DesiredRequirement, JobRequirement, RequirementPlan
from .ports import SubscriberRepository, ViewNotifier
from .results import OperationResult, run_operation

logger = logging.getLogger(__name__)


def check_rate(daily_rate: Decimal | int | float | str) -> Decimal:
    """
    Coerce a daily rate to Decimal.

    Raises:
        ValidationError: Not a finite number, or negative
    """
    try:
        rate = Decimal(str(daily_rate))
    except (InvalidOperation, ValueError):
        raise ValidationError("Rate per day must be a number", field="daily_rate") from None
    if not rate.is_finite():
        raise ValidationError("Rate per day must be a number", field="daily_rate")
    if rate < 0:
        raise ValidationError("Rate per day must be at least 0", field="daily_rate")
    return rate


def plan_reconciliation(
    existing: Sequence[JobRequirement], desired: Sequence[DesiredRequirement]
) -> RequirementPlan:
    """
    Diff the stored requirements of an event against the desired set.

    Requirements are matched by job id. When the desired set lists a job
    more than once, the last entry wins. When several stored requirements
    share a job, the first is kept and updated and the rest are deleted.
    """
    wanted: dict[str, Decimal] = {}
    for item in desired:
        wanted[item.job_id] = item.daily_rate

    kept: dict[str, JobRequirement] = {}
    delete: list[str] = []
    for requirement in existing:
        if requirement.job_id in wanted and requirement.job_id not in kept:
            kept[requirement.job_id] = requirement
        else:
            delete.append(requirement.id)

    create: list[DesiredRequirement] = []
    update: list[tuple[str, Decimal]] = []
    for job_id, rate in wanted.items():
        requirement = kept.get(job_id)
        if requirement is None:
            create.append(DesiredRequirement(job_id=job_id, daily_rate=rate))
        elif requirement.daily_rate != rate:
            update.append((requirement.id, rate))

    return RequirementPlan(create=tuple(create), update=tuple(update), delete=tuple(delete))


@dataclass
class RequirementService:
    repository: SubscriberRepository
    notifier: ViewNotifier

    def add_requirement(
        self, event_id: str, job_id: str, daily_rate: Decimal | int | float | str
    ) -> OperationResult[JobRequirement]:
        def _add() -> JobRequirement:
            rate = check_rate(daily_rate)
            if self.repository.get_event(event_id) is None:
                raise NotFoundError("Event not found")
            if self.repository.get_job(job_id) is None:
                raise NotFoundError("Job not found")
            requirement = self.repository.create_requirement(event_id, job_id, rate)
            logger.info("Added requirement %s (job %s) to event %s", requirement.id, job_id, event_id)
            self._announce(event_id)
            return requirement

        return run_operation("add_requirement", _add)

    def update_requirement_rate(
        self, requirement_id: str, daily_rate: Decimal | int | float | str
    ) -> OperationResult[JobRequirement]:
        def _update() -> JobRequirement:
            rate = check_rate(daily_rate)
            requirement = self.repository.update_requirement_rate(requirement_id, rate)
            if requirement is None:
                raise NotFoundError("Event job requirement not found")
            self._announce(requirement.event_id)
            return requirement

        return run_operation("update_requirement_rate", _update)

    def remove_requirement(self, requirement_id: str) -> OperationResult[None]:
        def _remove() -> None:
            requirement = self.repository.delete_requirement(requirement_id)
            if requirement is None:
                raise NotFoundError("Event job requirement not found")
            logger.info("Removed requirement %s from event %s", requirement_id, requirement.event_id)
            self._announce(requirement.event_id, roster_affected=True)

        return run_operation("remove_requirement", _remove)

    def replace_requirements_and_roster(
        self,
        event_id: str,
        requirements: Sequence[DesiredRequirement],
        notes: Sequence[str] | None = None,
    ) -> OperationResult[RequirementPlan]:
        """
        Reconcile the event's requirements against a full desired set.

        Missing requirements are created, surplus ones deleted, and the rest
        get their rate updated. notes, when given, replace the event's
        free-text requirement notes.
        """

        def _replace() -> RequirementPlan:
            desired = [
                DesiredRequirement(job_id=item.job_id, daily_rate=check_rate(item.daily_rate))
                for item in requirements
            ]
            cleaned_notes = None
            if notes is not None:
                cleaned_notes = [note.strip() for note in notes if note.strip()]
            if self.repository.get_event(event_id) is None:
                raise NotFoundError("Event not found")
            for item in desired:
                if self.repository.get_job(item.job_id) is None:
                    raise NotFoundError(f"Job {item.job_id} not found")

            plan = plan_reconciliation(self.repository.list_requirements(event_id), desired)
            self.repository.apply_requirement_plan(event_id, plan, cleaned_notes)
            logger.info(
                "Reconciled requirements for event %s: %d created, %d updated, %d deleted",
                event_id,
                len(plan.create),
                len(plan.update),
                len(plan.delete),
            )
            self._announce(event_id, roster_affected=bool(plan.delete))
            return plan

        return run_operation("replace_requirements_and_roster", _replace)

    def _announce(self, event_id: str, roster_affected: bool = False) -> None:
        try:
            self.notifier.notify(views.after_requirement_change(event_id, roster_affected))
        except Exception:
            logger.exception("View invalidation failed for event %s", event_id)
