"""Report schemas."""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from rentdash.schemas.validators import EmailAddress


class CamelModel(BaseModel):
    """Base model using camelCase names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportType(str, Enum):
    """Kinds of report the dashboard can generate."""

    FINANCIAL = "financial"
    OCCUPANCY = "occupancy"
    MAINTENANCE = "maintenance"


class ExportFormat(str, Enum):
    """Output formats accepted by the reports API."""

    JSON = "json"
    CSV = "csv"
    PDF = "pdf"


class ShareMethod(str, Enum):
    """Ways a generated report can be shared."""

    LINK = "link"
    EMAIL = "email"


class ScheduleFrequency(str, Enum):
    """How often a scheduled report should run."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


# Percentages and averages arrive either as numbers or preformatted strings
Percentage = float | str


class ReportFilters(CamelModel):
    """Filters applied when generating or exporting a report."""

    property_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    format: ExportFormat = ExportFormat.JSON


class ReportPeriod(CamelModel):
    """Reporting period echoed back by the API."""

    start_date: str | None = None
    end_date: str | None = None


class ReportTypeInfo(CamelModel):
    """Entry of the report-type catalogue."""

    id: str
    name: str
    description: str = ""
    export_formats: list[str] = []


# ============== Financial Report ==============


class FinancialSummary(CamelModel):
    """Headline financial figures."""

    total_income: float = 0
    total_expenses: float = 0
    net_profit: float = 0
    profit_margin: Percentage = "0%"


class PropertyIncome(CamelModel):
    """Income collected for a single property."""

    property_id: str
    property_name: str
    total_income: float = 0
    payment_count: int = 0


class CategoryExpense(CamelModel):
    """Expenses for a single category."""

    category: str
    total_amount: float = 0
    count: int = 0


class FinancialReport(CamelModel):
    """Income, expense and profitability report."""

    report_type: Literal["financial"] = "financial"
    summary: FinancialSummary
    income_breakdown: list[PropertyIncome] = []
    expense_breakdown: list[CategoryExpense] = []
    period: ReportPeriod = ReportPeriod()
    generated_at: datetime


# ============== Occupancy Report ==============


class OccupancySummary(CamelModel):
    """Headline occupancy figures."""

    total_rooms: int = 0
    occupied_rooms: int = 0
    vacant_rooms: int = 0
    occupancy_rate: float = 0


class PropertyOccupancy(CamelModel):
    """Occupancy of a single property."""

    property_id: str
    property_name: str
    total_rooms: int = 0
    occupied_rooms: int = 0
    vacant_rooms: int = 0
    occupancy_rate: Percentage = "0%"


class OccupancyReport(CamelModel):
    """Room occupancy and vacancy report."""

    report_type: Literal["occupancy"] = "occupancy"
    summary: OccupancySummary
    occupancy_by_property: list[PropertyOccupancy] = []
    contract_history: list[dict[str, Any]] = []
    period: ReportPeriod = ReportPeriod()
    generated_at: datetime


# ============== Maintenance Report ==============


class MaintenanceSummary(CamelModel):
    """Headline maintenance figures."""

    total_requests: int = 0
    completed_requests: int = 0
    pending_requests: int = 0
    in_progress_requests: int = 0
    completion_rate: Percentage = "0%"
    avg_resolution_time_days: Percentage = "0"


class CategoryRequests(CamelModel):
    """Maintenance requests for a single category."""

    category: str
    total: int = 0
    completed: int = 0
    pending: int = 0
    in_progress: int = 0


class PriorityRequests(CamelModel):
    """Maintenance requests for a single priority."""

    priority: str
    count: int = 0


class MaintenanceReport(CamelModel):
    """Maintenance request analytics report."""

    report_type: Literal["maintenance"] = "maintenance"
    summary: MaintenanceSummary
    requests_by_category: list[CategoryRequests] = []
    requests_by_priority: list[PriorityRequests] = []
    recent_requests: list[dict[str, Any]] = []
    period: ReportPeriod = ReportPeriod()
    generated_at: datetime


ReportPayload = Annotated[
    Union[FinancialReport, OccupancyReport, MaintenanceReport],
    Field(discriminator="report_type"),
]

REPORT_MODELS: dict[ReportType, type[BaseModel]] = {
    ReportType.FINANCIAL: FinancialReport,
    ReportType.OCCUPANCY: OccupancyReport,
    ReportType.MAINTENANCE: MaintenanceReport,
}


class ReportHistoryEntry(CamelModel):
    """A previously generated report kept in the store's history."""

    id: str
    type: ReportType
    filters: ReportFilters
    generated_at: datetime
    data: ReportPayload


# ============== Scheduled Reports ==============


class ScheduledReportCreate(CamelModel):
    """Schema for creating a scheduled report."""

    name: str = Field(..., min_length=1, max_length=255)
    report_type: ReportType
    frequency: ScheduleFrequency
    email: EmailAddress
    property_id: str | None = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject names made only of whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class ScheduledReportUpdate(CamelModel):
    """Schema for updating a scheduled report."""

    name: str | None = Field(None, min_length=1, max_length=255)
    report_type: ReportType | None = None
    frequency: ScheduleFrequency | None = None
    email: EmailAddress | None = None
    property_id: str | None = None
    is_active: bool | None = None
    last_run: datetime | None = None
    next_run: datetime | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        """Reject names made only of whitespace."""
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @model_validator(mode="after")
    def validate_required_fields(self) -> "ScheduledReportUpdate":
        """Fields a schedule cannot do without may be omitted but not cleared."""
        for field_name in ("name", "report_type", "frequency", "email", "is_active"):
            if field_name in self.model_fields_set and getattr(self, field_name) is None:
                raise ValueError(f"{field_name} cannot be null")
        return self


class ScheduledReport(CamelModel):
    """A scheduled report definition."""

    id: str
    name: str
    report_type: ReportType
    frequency: ScheduleFrequency
    email: str
    property_id: str | None = None
    is_active: bool = True
    created_at: datetime
    last_run: datetime | None = None
    next_run: datetime | None = None


# ============== Report View ==============


class SummaryCard(CamelModel):
    """Headline figure shown at the top of a report."""

    label: str
    value: str
    tone: Literal["positive", "negative", "neutral"] = "neutral"


class BreakdownSection(CamelModel):
    """Tabular breakdown section of a report."""

    title: str
    description: str = ""
    columns: list[str]
    rows: list[list[str]] = []


class ReportView(CamelModel):
    """Presentational form of a report."""

    state: Literal["loading", "empty", "report"]
    report_type: ReportType
    title: str
    generated_on: str | None = None
    period_label: str | None = None
    summary_cards: list[SummaryCard] = []
    sections: list[BreakdownSection] = []


# ============== API payloads ==============


class GenerateReportRequest(CamelModel):
    """Request body for report generation and preview."""

    report_type: ReportType = ReportType.FINANCIAL
    filters: ReportFilters = Field(default_factory=ReportFilters)


class GeneratedReportResponse(CamelModel):
    """Response returned after a successful generation."""

    report_type: ReportType
    data: ReportPayload
    view: ReportView


class CurrentReportResponse(CamelModel):
    """The most recently generated report, if any."""

    report_type: ReportType | None = None
    data: ReportPayload | None = None
    view: ReportView | None = None


class ShareResponse(CamelModel):
    """Shareable URL for a report."""

    method: ShareMethod
    url: str
