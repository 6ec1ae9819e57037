"""
Acceptance workflow - Pending/accepted transitions for subscribers.

accepted is a plain boolean toggle: any value may be set any number of
times, individually or in bulk. Bulk updates are issued as one batched
write so a failure never leaves a partially applied batch.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from . import views
from .exceptions import NotFoundError
from .ports import SubscriberRepository, ViewNotifier
from .results import OperationResult, run_operation

logger = logging.getLogger(__name__)


@dataclass
class AcceptanceService:
    repository: SubscriberRepository
    notifier: ViewNotifier

    def set_accepted(self, subscriber_id: str, accepted: bool) -> OperationResult[None]:
        """
        Set one subscriber's accepted flag.

        Setting the value it already holds is not an error.
        """

        def _set() -> None:
            event_ids = self.repository.set_accepted([subscriber_id], accepted)
            if not event_ids:
                raise NotFoundError("Subscriber not found")
            logger.info("Subscriber %s accepted=%s", subscriber_id, accepted)
            self._announce(event_ids)

        return run_operation("set_accepted", _set)

    def bulk_set_accepted(self, subscriber_ids: Sequence[str], accepted: bool) -> OperationResult[None]:
        """
        Apply the same accepted value to every id in one batch.

        Unknown ids are skipped silently.
        """

        def _bulk() -> None:
            ids = list(dict.fromkeys(subscriber_ids))
            if not ids:
                return
            event_ids = self.repository.set_accepted(ids, accepted)
            logger.info(
                "Bulk accepted=%s for %d subscriber id(s) across %d event(s)",
                accepted,
                len(ids),
                len(event_ids),
            )
            if event_ids:
                self._announce(event_ids)

        return run_operation("bulk_set_accepted", _bulk)

    def _announce(self, event_ids: set[str]) -> None:
        try:
            self.notifier.notify(views.after_subscriber_change(event_ids))
        except Exception:
            logger.exception("View invalidation failed for events %s", sorted(event_ids))
