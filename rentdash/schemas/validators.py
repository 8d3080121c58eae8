"""Custom validators and types."""

from datetime import date
from typing import TYPE_CHECKING, Annotated

from pydantic import AfterValidator, EmailStr

from rentdash.core.config import settings

if TYPE_CHECKING:
    from rentdash.schemas.report import ReportFilters

START_DATE_REQUIRED = "Start date is required"
END_DATE_REQUIRED = "End date is required"
START_AFTER_END = "Start date must be before end date"
RANGE_TOO_LARGE = "Date range cannot exceed 2 years"
START_IN_FUTURE = "Start date cannot be in the future"


def normalize_email(value: str) -> str:
    """
    Lower-case the domain part of an already validated address:
    "Admin@Example.COM" -> "Admin@example.com"
    """
    local, domain = value.rsplit("@", 1)
    return f"{local}@{domain.lower()}"


# Annotated type for email validation
EmailAddress = Annotated[EmailStr, AfterValidator(normalize_email)]


def validate_report_filters(
    filters: "ReportFilters",
    today: date | None = None,
    max_range_days: int | None = None,
) -> list[str]:
    """
    Check report filters before a report is generated or previewed.

    Every rule is evaluated so that all violations are reported at once.
    An empty list means the filters are valid.
    """
    if today is None:
        today = date.today()
    if max_range_days is None:
        max_range_days = settings.MAX_REPORT_RANGE_DAYS

    errors: list[str] = []
    start_date = filters.start_date
    end_date = filters.end_date

    if start_date is None:
        errors.append(START_DATE_REQUIRED)

    if end_date is None:
        errors.append(END_DATE_REQUIRED)

    if start_date is not None and end_date is not None:
        if start_date > end_date:
            errors.append(START_AFTER_END)

        if (end_date - start_date).days > max_range_days:
            errors.append(RANGE_TOO_LARGE)

    if start_date is not None and start_date > today:
        errors.append(START_IN_FUTURE)

    return errors
