"""Pydantic schemas."""

from rentdash.schemas.report import (
    ExportFormat,
    FinancialReport,
    MaintenanceReport,
    OccupancyReport,
    ReportFilters,
    ReportHistoryEntry,
    ReportPayload,
    ReportType,
    ReportView,
    ScheduledReport,
    ScheduledReportCreate,
    ScheduledReportUpdate,
    ScheduleFrequency,
    ShareMethod,
)
from rentdash.schemas.validators import EmailAddress, validate_report_filters

__all__ = [
    # Report
    "ExportFormat",
    "FinancialReport",
    "MaintenanceReport",
    "OccupancyReport",
    "ReportFilters",
    "ReportHistoryEntry",
    "ReportPayload",
    "ReportType",
    "ReportView",
    "ShareMethod",
    # Scheduled reports
    "ScheduledReport",
    "ScheduledReportCreate",
    "ScheduledReportUpdate",
    "ScheduleFrequency",
    # Validators
    "EmailAddress",
    "validate_report_filters",
]
