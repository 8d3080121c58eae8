"""Report viewer - turns report payloads into presentational views and exports."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from urllib.parse import quote

from jinja2 import Environment

from rentdash.core.config import settings
from rentdash.schemas.report import (
    BreakdownSection,
    ExportFormat,
    FinancialReport,
    MaintenanceReport,
    OccupancyReport,
    ReportFilters,
    ReportType,
    ReportView,
    ShareMethod,
    SummaryCard,
)
from rentdash.services.report_store import ReportStore

logger = logging.getLogger(__name__)

REPORT_TITLES = {
    ReportType.FINANCIAL: "Financial Report",
    ReportType.OCCUPANCY: "Occupancy Report",
    ReportType.MAINTENANCE: "Maintenance Report",
}

PRINT_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>{{ view.title }} - {{ printed_date }}</title>
    <style>
      body { font-family: Arial, sans-serif; margin: 20px; }
      .print-header { text-align: center; margin-bottom: 30px; border-bottom: 2px solid #ccc; padding-bottom: 20px; }
      .cards { display: grid; grid-template-columns: repeat(4, 1fr); gap: 15px; margin-bottom: 20px; }
      .card { border: 1px solid #ddd; padding: 15px; border-radius: 8px; }
      .card-label { color: #666; font-size: 14px; }
      .card-value { font-size: 18px; font-weight: bold; }
      .positive { color: #16a34a; }
      .negative { color: #dc2626; }
      table { width: 100%; border-collapse: collapse; margin-bottom: 20px; }
      th, td { border: 1px solid #ddd; padding: 6px 10px; text-align: left; }
      @media print {
        body { margin: 0; }
        .no-print { display: none; }
      }
    </style>
  </head>
  <body>
    <div class="print-header">
      <h1>{{ view.title }}</h1>
      <p>Generated on {{ printed_date }} at {{ printed_time }}</p>
      {% if view.period_label %}<p>Period: {{ view.period_label }}</p>{% endif %}
    </div>
    <div class="print-content">
      <div class="cards">
        {% for card in view.summary_cards %}
        <div class="card">
          <div class="card-label">{{ card.label }}</div>
          <div class="card-value {{ card.tone }}">{{ card.value }}</div>
        </div>
        {% endfor %}
      </div>
      {% for section in view.sections %}
      <h2>{{ section.title }}</h2>
      {% if section.description %}<p>{{ section.description }}</p>{% endif %}
      <table>
        <thead>
          <tr>{% for column in section.columns %}<th>{{ column }}</th>{% endfor %}</tr>
        </thead>
        <tbody>
          {% for row in section.rows %}
          <tr>{% for cell in row %}<td>{{ cell }}</td>{% endfor %}</tr>
          {% endfor %}
        </tbody>
      </table>
      {% endfor %}
    </div>
  </body>
</html>
"""

_template_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)
_print_template = _template_env.from_string(PRINT_TEMPLATE)


@dataclass
class ExportedFile:
    """A file produced by an export action, ready to be saved or served."""

    filename: str
    media_type: str
    content: bytes


# ============== Formatting helpers ==============


def format_currency(amount: float) -> str:
    """Format as whole US dollars: 1234.5 -> "$1,235"."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.0f}"


def format_percentage(value: float | str) -> str:
    """Numbers get one decimal place; preformatted strings only gain a "%"."""
    if isinstance(value, str):
        return value if "%" in value else f"{value}%"
    return f"{value:.1f}%"


def format_date(value: date | datetime | str | None) -> str | None:
    """Long US date: "January 31, 2024". Unparseable strings are returned as-is."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return f"{value:%B} {value.day}, {value.year}"


def _tone(amount: float) -> str:
    return "positive" if amount >= 0 else "negative"


def _records_section(title: str, records: list[dict]) -> BreakdownSection | None:
    """Section for free-form records (contract history, recent requests)."""
    if not records:
        return None

    columns: list[str] = []
    for record in records:
        for key in record:
            if key not in columns:
                columns.append(key)

    rows = [
        ["" if record.get(column) is None else str(record.get(column)) for column in columns]
        for record in records
    ]
    return BreakdownSection(title=title, columns=columns, rows=rows)


# ============== Renderers ==============


def _render_financial(report: FinancialReport) -> tuple[list[SummaryCard], list[BreakdownSection]]:
    summary = report.summary
    cards = [
        SummaryCard(label="Total Income", value=format_currency(summary.total_income), tone="positive"),
        SummaryCard(label="Total Expenses", value=format_currency(summary.total_expenses), tone="negative"),
        SummaryCard(label="Net Profit", value=format_currency(summary.net_profit), tone=_tone(summary.net_profit)),
        SummaryCard(
            label="Profit Margin",
            value=format_percentage(summary.profit_margin),
            tone=_tone(summary.net_profit),
        ),
    ]
    sections = [
        BreakdownSection(
            title="Income by Property",
            description="Revenue breakdown across properties",
            columns=["Property", "Payments", "Total Income"],
            rows=[
                [item.property_name, str(item.payment_count), format_currency(item.total_income)]
                for item in report.income_breakdown
            ],
        ),
        BreakdownSection(
            title="Expenses by Category",
            description="Expense breakdown by category",
            columns=["Category", "Count", "Total Amount"],
            rows=[
                [item.category, str(item.count), format_currency(item.total_amount)]
                for item in report.expense_breakdown
            ],
        ),
    ]
    return cards, sections


def _render_occupancy(report: OccupancyReport) -> tuple[list[SummaryCard], list[BreakdownSection]]:
    summary = report.summary
    cards = [
        SummaryCard(label="Total Rooms", value=str(summary.total_rooms)),
        SummaryCard(label="Occupied Rooms", value=str(summary.occupied_rooms), tone="positive"),
        SummaryCard(label="Vacant Rooms", value=str(summary.vacant_rooms), tone="negative"),
        SummaryCard(label="Occupancy Rate", value=format_percentage(summary.occupancy_rate)),
    ]
    sections = [
        BreakdownSection(
            title="Occupancy by Property",
            description="Room occupancy across properties",
            columns=["Property", "Total Rooms", "Occupied", "Vacant", "Occupancy Rate"],
            rows=[
                [
                    item.property_name,
                    str(item.total_rooms),
                    str(item.occupied_rooms),
                    str(item.vacant_rooms),
                    format_percentage(item.occupancy_rate),
                ]
                for item in report.occupancy_by_property
            ],
        ),
    ]
    history = _records_section("Contract History", report.contract_history)
    if history:
        sections.append(history)
    return cards, sections


def _render_maintenance(report: MaintenanceReport) -> tuple[list[SummaryCard], list[BreakdownSection]]:
    summary = report.summary
    cards = [
        SummaryCard(label="Total Requests", value=str(summary.total_requests)),
        SummaryCard(label="Completed", value=str(summary.completed_requests), tone="positive"),
        SummaryCard(label="Completion Rate", value=format_percentage(summary.completion_rate)),
        SummaryCard(label="Avg Resolution Time", value=f"{summary.avg_resolution_time_days} days"),
    ]
    sections = [
        BreakdownSection(
            title="Requests by Category",
            description="Maintenance requests grouped by category",
            columns=["Category", "Total", "Completed", "Pending", "In Progress"],
            rows=[
                [item.category, str(item.total), str(item.completed), str(item.pending), str(item.in_progress)]
                for item in report.requests_by_category
            ],
        ),
        BreakdownSection(
            title="Requests by Priority",
            description="Distribution of request priorities",
            columns=["Priority", "Count"],
            rows=[[item.priority, str(item.count)] for item in report.requests_by_priority],
        ),
    ]
    recent = _records_section("Recent Requests", report.recent_requests)
    if recent:
        sections.append(recent)
    return cards, sections


_RENDERERS = {
    ReportType.FINANCIAL: _render_financial,
    ReportType.OCCUPANCY: _render_occupancy,
    ReportType.MAINTENANCE: _render_maintenance,
}


def render_report(
    report_type: ReportType,
    report_data: FinancialReport | OccupancyReport | MaintenanceReport | None,
    is_loading: bool = False,
) -> ReportView:
    """Build the view for a report: loading skeleton, empty placeholder or breakdown."""
    report_type = ReportType(report_type)
    title = REPORT_TITLES[report_type]

    if is_loading:
        return ReportView(state="loading", report_type=report_type, title=title)

    if report_data is None:
        return ReportView(state="empty", report_type=report_type, title=title)

    if ReportType(report_data.report_type) != report_type:
        raise ValueError(
            f"Cannot render a {report_data.report_type} report as {report_type.value}"
        )

    cards, sections = _RENDERERS[report_type](report_data)
    period = report_data.period
    period_label = None
    if period.start_date or period.end_date:
        period_label = f"{format_date(period.start_date) or '...'} - {format_date(period.end_date) or '...'}"

    return ReportView(
        state="report",
        report_type=report_type,
        title=title,
        generated_on=format_date(report_data.generated_at),
        period_label=period_label,
        summary_cards=cards,
        sections=sections,
    )


def format_view_as_text(view: ReportView) -> str:
    """Plain-text rendering of a view, used by the CLI."""
    if view.state == "loading":
        return f"{view.title}: loading..."
    if view.state == "empty":
        return f"{view.title}: no report data. Generate a report to view the results here."

    lines = [view.title, "=" * len(view.title)]
    if view.generated_on:
        lines.append(f"Generated on {view.generated_on}")
    if view.period_label:
        lines.append(f"Period: {view.period_label}")
    lines.append("")

    for card in view.summary_cards:
        lines.append(f"{card.label}: {card.value}")

    for section in view.sections:
        lines.extend(["", section.title, "-" * len(section.title)])
        widths = [len(column) for column in section.columns]
        for row in section.rows:
            for index, cell in enumerate(row):
                widths[index] = max(widths[index], len(cell))
        lines.append("  ".join(column.ljust(widths[i]) for i, column in enumerate(section.columns)).rstrip())
        for row in section.rows:
            lines.append("  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip())
        if not section.rows:
            lines.append("(no data)")

    return "\n".join(lines)


# ============== Actions ==============


def export_filename(report_type: ReportType, today: date | None = None, extension: str = "csv") -> str:
    """Download name for an exported report, e.g. financial-report-2024-01-31.csv."""
    if today is None:
        today = date.today()
    return f"{ReportType(report_type).value}-report-{today.isoformat()}.{extension}"


def build_print_document(view: ReportView, now: datetime | None = None) -> str:
    """Standalone HTML page for printing or saving a report as PDF."""
    if now is None:
        now = datetime.now(timezone.utc)
    return _print_template.render(
        view=view,
        printed_date=f"{now:%m/%d/%Y}",
        printed_time=f"{now:%I:%M:%S %p}",
    )


def print_report(
    view: ReportView,
    on_print: Callable[[], None] | None = None,
    now: datetime | None = None,
) -> str:
    """Build the print document and notify the caller."""
    document = build_print_document(view, now)
    if on_print:
        on_print()
    return document


async def export_report(
    store: ReportStore,
    report_type: ReportType,
    export_format: ExportFormat | str = ExportFormat.CSV,
    filters: ReportFilters | None = None,
    on_export: Callable[[ExportFormat], None] | None = None,
    now: datetime | None = None,
) -> ExportedFile | None:
    """
    Export a report as CSV (fetched through the store) or as a printable
    HTML document ("pdf", built from the cached payload).

    Returns None when the CSV export failed; the reason is in ``store.error``.
    """
    report_type = ReportType(report_type)
    export_format = ExportFormat(export_format)
    if now is None:
        now = datetime.now(timezone.utc)

    if export_format == ExportFormat.CSV:
        content = await store.export_report_as_csv(report_type, filters)
        if content is None:
            return None
        exported = ExportedFile(
            filename=export_filename(report_type, now.date(), "csv"),
            media_type="text/csv",
            content=content,
        )
    elif export_format == ExportFormat.PDF:
        view = render_report(report_type, store.get_report(report_type))
        document = print_report(view, now=now)
        exported = ExportedFile(
            filename=export_filename(report_type, now.date(), "html"),
            media_type="text/html",
            content=document.encode("utf-8"),
        )
    else:
        raise ValueError(f"Unsupported export format: {export_format.value}")

    logger.info("Exported %s report as %s", report_type.value, export_format.value)
    if on_export:
        on_export(export_format)
    return exported


def share_report(
    report_type: ReportType,
    method: ShareMethod | str,
    base_url: str | None = None,
    now: datetime | None = None,
    on_share: Callable[[ShareMethod], None] | None = None,
) -> str:
    """Build a shareable link or a mailto: URL for a report."""
    report_type = ReportType(report_type)
    method = ShareMethod(method)
    if now is None:
        now = datetime.now(timezone.utc)
    if base_url is None:
        base_url = settings.PUBLIC_BASE_URL

    if method == ShareMethod.LINK:
        url = f"{base_url.rstrip('/')}/reports/shared/{report_type.value}/{int(now.timestamp() * 1000)}"
    else:
        title = REPORT_TITLES[report_type]
        subject = f"{title} - {now:%m/%d/%Y}"
        body = (
            f"Please find the {report_type.value} report attached.\n\n"
            f"Generated on: {now:%m/%d/%Y, %I:%M:%S %p}"
        )
        url = f"mailto:?subject={quote(subject, safe='')}&body={quote(body, safe='')}"

    if on_share:
        on_share(method)
    return url
