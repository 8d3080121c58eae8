"""Report generator - drives report selection, filter validation and generation."""

import asyncio
import contextlib
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any

from rentdash.core.config import settings
from rentdash.schemas.report import ExportFormat, ReportFilters, ReportType
from rentdash.schemas.validators import validate_report_filters
from rentdash.services.report_store import ReportStore

logger = logging.getLogger(__name__)

PROGRESS_CAP = 90.0
PROGRESS_STEP = 15.0


class GeneratorState(str, Enum):
    """Generation lifecycle of the report generator."""

    IDLE = "idle"
    VALIDATING = "validating"
    GENERATING = "generating"


@dataclass(frozen=True)
class ReportConfig:
    """Descriptive information shown when picking a report type."""

    type: ReportType
    title: str
    description: str
    estimated_time: str
    features: list[str] = field(default_factory=list)


REPORT_CONFIGS: dict[ReportType, ReportConfig] = {
    ReportType.FINANCIAL: ReportConfig(
        type=ReportType.FINANCIAL,
        title="Financial Report",
        description="Comprehensive income, expense, and profitability analysis",
        estimated_time="2-3 minutes",
        features=[
            "Income breakdown by property",
            "Expense categorization",
            "Profit margin analysis",
            "Payment status tracking",
            "Financial trends over time",
        ],
    ),
    ReportType.OCCUPANCY: ReportConfig(
        type=ReportType.OCCUPANCY,
        title="Occupancy Report",
        description="Room occupancy rates, vacancy tracking, and rental analytics",
        estimated_time="1-2 minutes",
        features=[
            "Occupancy rate by property",
            "Vacancy duration tracking",
            "Room utilization metrics",
            "Contract status overview",
            "Rental rate comparisons",
        ],
    ),
    ReportType.MAINTENANCE: ReportConfig(
        type=ReportType.MAINTENANCE,
        title="Maintenance Report",
        description="Maintenance request analytics and resolution performance",
        estimated_time="1-2 minutes",
        features=[
            "Request volume by category",
            "Resolution time analysis",
            "Priority distribution",
            "Completion rate tracking",
            "Cost analysis by type",
        ],
    ),
}

# (title, description, variant)
Notifier = Callable[[str, str, str], None]


def default_report_filters(today: date | None = None, days: int | None = None) -> ReportFilters:
    """Filters covering the last ``days`` days up to today."""
    if today is None:
        today = date.today()
    if days is None:
        days = settings.DEFAULT_REPORT_RANGE_DAYS

    return ReportFilters(
        start_date=today - timedelta(days=days),
        end_date=today,
        format=ExportFormat.JSON,
    )


class ReportGenerator:
    """
    Controller behind the "generate report" form.

    Flow: idle -> validating -> generating -> idle. Validation failures go
    straight back to idle without touching the store.

    ``progress`` is simulated: it creeps up in random steps while the store
    call is pending, stops at 90, jumps to 100 when the call returns and
    falls back to 0 after ``reset_delay`` seconds. It does not measure the
    request.

    ``is_generating`` does not block overlapping calls; the store discards
    stale responses on its own.
    """

    def __init__(
        self,
        store: ReportStore,
        on_report_generated: Callable[[ReportType, Any], None] | None = None,
        on_preview_requested: Callable[[ReportType, ReportFilters], None] | None = None,
        on_notify: Notifier | None = None,
        tick_interval: float | None = None,
        reset_delay: float | None = None,
        rng: random.Random | None = None,
        today: date | None = None,
    ):
        self.store = store
        self.on_report_generated = on_report_generated
        self.on_preview_requested = on_preview_requested
        self.on_notify = on_notify
        self.tick_interval = settings.PROGRESS_TICK_SECONDS if tick_interval is None else tick_interval
        self.reset_delay = settings.PROGRESS_RESET_SECONDS if reset_delay is None else reset_delay
        self.rng = rng or random.Random()
        self.today = today

        self.state = GeneratorState.IDLE
        self.selected_report_type = ReportType.FINANCIAL
        self.filters = default_report_filters(today)
        self.validation_errors: list[str] = []
        self.progress = 0.0

        self._reset_task: asyncio.Task | None = None

    @property
    def is_generating(self) -> bool:
        return self.state == GeneratorState.GENERATING

    @property
    def primary_error(self) -> str | None:
        """First validation message, shown prominently in the form."""
        return self.validation_errors[0] if self.validation_errors else None

    @property
    def current_config(self) -> ReportConfig:
        return REPORT_CONFIGS[self.selected_report_type]

    def select_report_type(self, report_type: ReportType | str) -> None:
        self.selected_report_type = ReportType(report_type)

    def set_filter(self, key: str, value: Any) -> None:
        """Change one filter field. Empty values clear the field."""
        if key not in ReportFilters.model_fields:
            raise KeyError(f"Unknown report filter: {key}")

        values = self.filters.model_dump()
        values[key] = value if value not in ("", None) else ReportFilters.model_fields[key].default
        self.filters = ReportFilters.model_validate(values)

        # Editing the form clears stale messages
        self.validation_errors = []

    def _notify(self, title: str, description: str, variant: str = "default") -> None:
        if self.on_notify:
            self.on_notify(title, description, variant)

    def _validate(self) -> bool:
        self.state = GeneratorState.VALIDATING
        errors = validate_report_filters(self.filters, today=self.today)
        if errors:
            self.validation_errors = errors
            self.state = GeneratorState.IDLE
            self._notify("Validation Error", errors[0], "destructive")
            return False

        self.validation_errors = []
        return True

    async def _tick_progress(self) -> None:
        self.progress = 0.0
        while self.progress < PROGRESS_CAP:
            await asyncio.sleep(self.tick_interval)
            self.progress = min(PROGRESS_CAP, self.progress + self.rng.uniform(0, PROGRESS_STEP))

    async def _reset_progress_later(self) -> None:
        await asyncio.sleep(self.reset_delay)
        self.progress = 0.0

    def _cancel_pending_reset(self) -> None:
        if self._reset_task is not None and not self._reset_task.done():
            self._reset_task.cancel()
        self._reset_task = None

    def _schedule_progress_reset(self) -> None:
        if self.reset_delay <= 0:
            self.progress = 0.0
            return
        self._reset_task = asyncio.create_task(self._reset_progress_later())

    async def generate(self) -> bool:
        """
        Validate the filters and generate the selected report.

        Returns True when the store produced a report.
        """
        if not self._validate():
            return False

        report_type = self.selected_report_type
        filters = self.filters.model_copy()
        config = REPORT_CONFIGS[report_type]

        self._cancel_pending_reset()
        self.state = GeneratorState.GENERATING
        ticker = asyncio.create_task(self._tick_progress())
        try:
            report = await self.store.generate_report(report_type, filters)
        finally:
            ticker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await ticker
            self.state = GeneratorState.IDLE

        self.progress = 100.0

        if report is not None:
            self._notify("Report Generated Successfully", f"{config.title} has been generated")
            if self.on_report_generated:
                self.on_report_generated(report_type, report)
        elif self.store.error:
            self._notify("Generation Failed", self.store.error, "destructive")
            self.store.clear_error()
        else:
            logger.debug("%s request was superseded by a newer one", config.title)

        self._schedule_progress_reset()
        return report is not None

    def preview(self) -> bool:
        """Validate the filters and hand them to the preview callback."""
        if not self._validate():
            return False

        self.state = GeneratorState.IDLE
        if self.on_preview_requested:
            self.on_preview_requested(self.selected_report_type, self.filters.model_copy())
        return True
