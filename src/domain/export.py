"""
Export service - Delimited-text export of an event's subscribers.

Every cell is quoted with embedded quotes doubled, rows end with "\\n",
and the document starts with a UTF-8 byte-order mark so spreadsheet
tools render Arabic names correctly.
"""

import csv
import io
import logging
from dataclasses import dataclass

from .exceptions import NotFoundError, NothingToExport
from .models import ExportRow
from .ports import SubscriberRepository
from .results import OperationResult, run_operation

logger = logging.getLogger(__name__)

BOM = "\ufeff"

HEADERS = (
    "Name",
    "Mobile",
    "Email",
    "ID Number",
    "ID Expiry Date",
    "Nationality",
    "Age",
    "Job",
    "Rate Per Day",
    "IBAN",
    "Bank Name",
    "Account Holder",
    "Gender",
    "ID Image URL",
    "Personal Image URL",
    "Registration Date",
)


def _cells(row: ExportRow) -> list[str]:
    sub = row.subscriber
    return [
        sub.name,
        sub.mobile,
        sub.email,
        sub.identity_number,
        sub.identity_expiry_date.isoformat(),
        row.nationality_name,
        str(sub.age),
        row.job_name,
        "" if row.daily_rate is None else str(row.daily_rate),
        sub.iban,
        sub.bank_name,
        sub.account_holder,
        sub.gender.value,
        sub.id_image_url or "",
        sub.personal_image_url or "",
        sub.created_at.isoformat() if sub.created_at else "",
    ]


def render_delimited_text(rows: list[ExportRow]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(HEADERS)
    for row in rows:
        writer.writerow(_cells(row))
    return BOM + buffer.getvalue()


@dataclass
class ExportService:
    repository: SubscriberRepository

    def export_to_delimited_text(self, event_id: str) -> OperationResult[str]:
        """
        Serialize an event's subscribers, newest first.

        Returns:
            OperationResult with the document text, NOTHING_TO_EXPORT when the
            event has no subscribers, NOT_FOUND when the event is unknown
        """

        def _export() -> str:
            if self.repository.get_event(event_id) is None:
                raise NotFoundError("Event not found")
            rows = self.repository.list_export_rows(event_id)
            if not rows:
                raise NothingToExport("No subscribers to export")
            logger.info("Exporting %d subscriber(s) for event %s", len(rows), event_id)
            return render_delimited_text(rows)

        return run_operation("export_to_delimited_text", _export)
