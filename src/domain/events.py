"""
Event settings - Publication, application window and completion flags.

The registration gate reads accepting_applications and completed; this
service is the only way they change.
"""

import logging
from dataclasses import dataclass

from . import views
from .exceptions import NotFoundError, ValidationError
from .models import Event
from .ports import SubscriberRepository, ViewNotifier
from .results import OperationResult, run_operation

logger = logging.getLogger(__name__)


@dataclass
class EventService:
    repository: SubscriberRepository
    notifier: ViewNotifier

    def set_event_flags(
        self,
        event_id: str,
        accepting_applications: bool | None = None,
        published: bool | None = None,
        completed: bool | None = None,
    ) -> OperationResult[Event]:
        """
        Toggle any of an event's flags; flags passed as None keep their value.

        Returns:
            OperationResult carrying the updated Event, or VALIDATION when no
            flag is given and NOT_FOUND for an unknown event
        """

        def _set() -> Event:
            if accepting_applications is None and published is None and completed is None:
                raise ValidationError("No event setting to change")
            event = self.repository.set_event_flags(
                event_id,
                accepting_applications=accepting_applications,
                published=published,
                completed=completed,
            )
            if event is None:
                raise NotFoundError("Event not found")
            logger.info(
                "Event %s: accepting_applications=%s published=%s completed=%s",
                event.id,
                event.accepting_applications,
                event.published,
                event.completed,
            )
            try:
                self.notifier.notify(views.after_event_change(event.id))
            except Exception:
                logger.exception("View invalidation failed for event %s", event.id)
            return event

        return run_operation("set_event_flags", _set)
