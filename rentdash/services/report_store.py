"""Report store - holds generated reports, history and scheduled reports."""

import calendar
import logging
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from pydantic import BaseModel, ValidationError

from rentdash.core.config import settings
from rentdash.schemas.report import (
    ReportFilters,
    ReportHistoryEntry,
    ReportType,
    ReportTypeInfo,
    ScheduledReport,
    ScheduledReportCreate,
    ScheduledReportUpdate,
    ScheduleFrequency,
)
from rentdash.services.report_client import ReportClient, ReportClientError

logger = logging.getLogger(__name__)

REPORT_SLOTS = {
    ReportType.FINANCIAL: "financial_report",
    ReportType.OCCUPANCY: "occupancy_report",
    ReportType.MAINTENANCE: "maintenance_report",
}

SCHEDULE_NOT_FOUND = "Scheduled report not found"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _add_months(moment: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping the day to the target month's length."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def next_run_after(moment: datetime, frequency: ScheduleFrequency) -> datetime:
    """Compute when a schedule with the given frequency would next run."""
    if frequency == ScheduleFrequency.DAILY:
        return moment + timedelta(days=1)
    elif frequency == ScheduleFrequency.WEEKLY:
        return moment + timedelta(weeks=1)
    elif frequency == ScheduleFrequency.MONTHLY:
        return _add_months(moment, 1)
    elif frequency == ScheduleFrequency.QUARTERLY:
        return _add_months(moment, 3)
    raise ValueError(f"Unknown frequency: {frequency}")


class ReportStore:
    """
    In-memory state for the reports screens.

    Actions that talk to the reports API never raise: failures are logged and
    turned into a display string in ``error``, and the payload slot for the
    failed report keeps its previous value.

    Each report type carries a request token. A response is committed only
    when its token is still the newest for that type, so a slow, stale
    response cannot overwrite a newer one.
    """

    def __init__(self, client: ReportClient, history_limit: int | None = None):
        self.client = client
        self.history_limit = settings.REPORT_HISTORY_LIMIT if history_limit is None else history_limit

        self.report_types: list[ReportTypeInfo] = []
        self.financial_report = None
        self.occupancy_report = None
        self.maintenance_report = None
        self.last_generated_report: ReportType | None = None
        self.report_history: list[ReportHistoryEntry] = []
        self.scheduled_reports: list[ScheduledReport] = []
        self.error: str | None = None

        self._in_flight = 0
        self._request_tokens: dict[ReportType, int] = {report_type: 0 for report_type in ReportType}

    @property
    def is_loading(self) -> bool:
        """True while any action is waiting on the reports API."""
        return self._in_flight > 0

    def _begin(self) -> None:
        self._in_flight += 1
        self.error = None

    def _end(self) -> None:
        self._in_flight -= 1

    def _record_failure(self, exc: Exception, fallback: str) -> None:
        if isinstance(exc, ReportClientError):
            logger.error("%s: %s", fallback, exc.message)
            self.error = exc.message
        else:
            logger.exception(fallback)
            self.error = fallback

    # ============== Report types ==============

    async def fetch_report_types(self) -> list[ReportTypeInfo]:
        """Load the report-type catalogue."""
        self._begin()
        try:
            self.report_types = await self.client.get_report_types()
        except Exception as exc:
            self._record_failure(exc, "Failed to fetch report types")
        finally:
            self._end()
        return self.report_types

    # ============== Generation ==============

    def get_report(self, report_type: ReportType):
        """Return the cached payload for a report type, if any."""
        return getattr(self, REPORT_SLOTS[ReportType(report_type)])

    def current_report(self) -> tuple[ReportType | None, BaseModel | None]:
        """Return the most recently generated report type and its payload."""
        if self.last_generated_report is None:
            return None, None
        return self.last_generated_report, self.get_report(self.last_generated_report)

    async def generate_report(
        self,
        report_type: ReportType,
        filters: ReportFilters | None = None,
    ) -> BaseModel | None:
        """
        Generate a report and cache it under its type.

        Returns the payload, or None when the request failed or was
        superseded by a newer request for the same type.
        """
        report_type = ReportType(report_type)
        if filters is None:
            filters = ReportFilters()

        self._request_tokens[report_type] += 1
        token = self._request_tokens[report_type]

        self._begin()
        try:
            report = await self.client.generate_report(report_type, filters)
        except Exception as exc:
            if token == self._request_tokens[report_type]:
                self._record_failure(exc, f"Failed to generate {report_type.value} report")
            else:
                logger.debug("Ignoring failure of superseded %s report request", report_type.value)
            return None
        finally:
            self._end()

        if token != self._request_tokens[report_type]:
            logger.debug("Discarding stale %s report response", report_type.value)
            return None

        setattr(self, REPORT_SLOTS[report_type], report)
        self.last_generated_report = report_type
        self.save_report_to_history(report_type, filters, report)
        logger.info("Generated %s report", report_type.value)
        return report

    async def generate_financial_report(self, filters: ReportFilters | None = None):
        """Generate and cache a financial report."""
        return await self.generate_report(ReportType.FINANCIAL, filters)

    async def generate_occupancy_report(self, filters: ReportFilters | None = None):
        """Generate and cache an occupancy report."""
        return await self.generate_report(ReportType.OCCUPANCY, filters)

    async def generate_maintenance_report(self, filters: ReportFilters | None = None):
        """Generate and cache a maintenance report."""
        return await self.generate_report(ReportType.MAINTENANCE, filters)

    async def export_report_as_csv(
        self,
        report_type: ReportType,
        filters: ReportFilters | None = None,
    ) -> bytes | None:
        """Fetch a CSV export. Returns None on failure with ``error`` set."""
        report_type = ReportType(report_type)
        if filters is None:
            filters = ReportFilters()

        self._begin()
        try:
            return await self.client.export_report_as_csv(report_type, filters)
        except Exception as exc:
            self._record_failure(exc, "Failed to export report as CSV")
            return None
        finally:
            self._end()

    def save_report_to_history(self, report_type: ReportType, filters: ReportFilters, data: BaseModel) -> ReportHistoryEntry:
        """Push a report to the front of the history, keeping the newest entries."""
        now = _utcnow()
        entry_id = f"{ReportType(report_type).value}-{int(now.timestamp() * 1000)}"
        existing_ids = {entry.id for entry in self.report_history}
        if entry_id in existing_ids:
            suffix = 2
            while f"{entry_id}-{suffix}" in existing_ids:
                suffix += 1
            entry_id = f"{entry_id}-{suffix}"

        entry = ReportHistoryEntry(
            id=entry_id,
            type=report_type,
            filters=filters.model_copy(),
            generated_at=now,
            data=data,
        )
        self.report_history = [entry, *self.report_history][: self.history_limit]
        return entry

    def clear_reports(self) -> None:
        """Drop cached payloads. History and schedules are kept."""
        for slot in REPORT_SLOTS.values():
            setattr(self, slot, None)
        self.last_generated_report = None

    def clear_error(self) -> None:
        self.error = None

    # ============== Scheduled reports ==============

    async def fetch_scheduled_reports(self) -> list[ScheduledReport]:
        """Return the scheduled report definitions."""
        self.error = None
        return list(self.scheduled_reports)

    def get_scheduled_report(self, schedule_id: str) -> ScheduledReport | None:
        for schedule in self.scheduled_reports:
            if schedule.id == schedule_id:
                return schedule
        return None

    async def create_scheduled_report(
        self,
        schedule_data: ScheduledReportCreate | dict,
    ) -> ScheduledReport | None:
        """Create a scheduled report with a fresh id and timestamps."""
        self.error = None
        try:
            if isinstance(schedule_data, dict):
                schedule_data = ScheduledReportCreate.model_validate(schedule_data)
        except ValidationError as exc:
            logger.warning("Rejected scheduled report: %s", exc)
            self.error = "Please fill in all required fields"
            return None

        now = _utcnow()
        schedule = ScheduledReport(
            id=str(uuid4()),
            created_at=now,
            next_run=next_run_after(now, schedule_data.frequency) if schedule_data.is_active else None,
            **schedule_data.model_dump(),
        )
        self.scheduled_reports = [*self.scheduled_reports, schedule]
        logger.info("Created scheduled report %s (%s)", schedule.id, schedule.name)
        return schedule

    async def update_scheduled_report(
        self,
        schedule_id: str,
        updates: ScheduledReportUpdate | dict,
    ) -> ScheduledReport | None:
        """Apply the given changes to one scheduled report."""
        self.error = None
        try:
            if isinstance(updates, dict):
                updates = ScheduledReportUpdate.model_validate(updates)
        except ValidationError as exc:
            logger.warning("Rejected scheduled report update for %s: %s", schedule_id, exc)
            self.error = "Invalid scheduled report update"
            return None

        current = self.get_scheduled_report(schedule_id)
        if current is None:
            self.error = SCHEDULE_NOT_FOUND
            return None

        changes = updates.model_dump(exclude_unset=True)
        is_active = changes.get("is_active", current.is_active)
        frequency = changes.get("frequency", current.frequency)

        if "next_run" not in changes:
            if not is_active:
                changes["next_run"] = None
            elif (
                not current.is_active
                or frequency != current.frequency
                or current.next_run is None
            ):
                changes["next_run"] = next_run_after(_utcnow(), frequency)

        try:
            updated = ScheduledReport.model_validate({**current.model_dump(), **changes})
        except ValidationError as exc:
            logger.warning("Rejected scheduled report update for %s: %s", schedule_id, exc)
            self.error = "Invalid scheduled report update"
            return None

        self.scheduled_reports = [
            updated if schedule.id == schedule_id else schedule
            for schedule in self.scheduled_reports
        ]
        return updated

    async def delete_scheduled_report(self, schedule_id: str) -> bool:
        """Delete a scheduled report. Returns False if it does not exist."""
        self.error = None
        remaining = [schedule for schedule in self.scheduled_reports if schedule.id != schedule_id]
        if len(remaining) == len(self.scheduled_reports):
            self.error = SCHEDULE_NOT_FOUND
            return False

        self.scheduled_reports = remaining
        logger.info("Deleted scheduled report %s", schedule_id)
        return True
