"""Tests for report rendering, export, print and share."""

from datetime import date, datetime, timezone
from urllib.parse import unquote

import pytest

from rentdash.schemas.report import (
    ExportFormat,
    FinancialReport,
    MaintenanceReport,
    OccupancyReport,
    ReportFilters,
    ReportType,
    ShareMethod,
)
from rentdash.services import report_viewer
from rentdash.services.report_store import ReportStore
from tests.conftest import CSV_BODY, FINANCIAL_PAYLOAD, MAINTENANCE_PAYLOAD, OCCUPANCY_PAYLOAD, FakeReportsAPI

NOW = datetime(2024, 2, 1, 14, 5, 9, tzinfo=timezone.utc)


@pytest.fixture
def financial() -> FinancialReport:
    return FinancialReport.model_validate(FINANCIAL_PAYLOAD)


class TestFormatting:
    """Tests for value formatting."""

    def test_currency(self):
        assert report_viewer.format_currency(125000) == "$125,000"
        assert report_viewer.format_currency(1234.6) == "$1,235"
        assert report_viewer.format_currency(-500) == "-$500"

    def test_percentage(self):
        assert report_viewer.format_percentage(85) == "85.0%"
        assert report_viewer.format_percentage("61.6") == "61.6%"
        assert report_viewer.format_percentage("61.6%") == "61.6%"

    def test_date(self):
        assert report_viewer.format_date("2024-01-31") == "January 31, 2024"
        assert report_viewer.format_date("2024-02-01T09:30:00Z") == "February 1, 2024"
        assert report_viewer.format_date("last month") == "last month"
        assert report_viewer.format_date(None) is None


class TestRenderReport:
    """Tests for the report view."""

    def test_loading(self, financial: FinancialReport):
        """Test loading wins over data."""
        view = report_viewer.render_report(ReportType.FINANCIAL, financial, is_loading=True)
        assert view.state == "loading"
        assert view.sections == []

    def test_empty(self):
        view = report_viewer.render_report(ReportType.OCCUPANCY, None)
        assert view.state == "empty"
        assert view.title == "Occupancy Report"

    def test_financial(self, financial: FinancialReport):
        view = report_viewer.render_report(ReportType.FINANCIAL, financial)

        assert view.state == "report"
        assert view.title == "Financial Report"
        assert view.generated_on == "February 1, 2024"
        assert view.period_label == "January 1, 2024 - January 31, 2024"
        assert [(card.label, card.value) for card in view.summary_cards] == [
            ("Total Income", "$125,000"),
            ("Total Expenses", "$48,000"),
            ("Net Profit", "$77,000"),
            ("Profit Margin", "61.6%"),
        ]
        assert view.summary_cards[2].tone == "positive"
        assert view.sections[0].rows[0] == ["Sunrise Apartments", "16", "$80,000"]
        assert view.sections[1].rows[1] == ["utilities", "6", "$18,000"]

    def test_financial_loss_is_negative(self):
        payload = dict(FINANCIAL_PAYLOAD, summary=dict(FINANCIAL_PAYLOAD["summary"], netProfit=-1500))
        view = report_viewer.render_report(ReportType.FINANCIAL, FinancialReport.model_validate(payload))
        assert view.summary_cards[2].value == "-$1,500"
        assert view.summary_cards[2].tone == "negative"

    def test_occupancy(self):
        view = report_viewer.render_report(ReportType.OCCUPANCY, OccupancyReport.model_validate(OCCUPANCY_PAYLOAD))

        assert view.summary_cards[3].value == "85.0%"
        assert view.sections[0].rows[0] == ["Sunrise Apartments", "24", "21", "3", "87.5%"]
        assert view.sections[1].title == "Contract History"
        assert view.sections[1].columns == ["contractId", "renterName", "status"]

    def test_maintenance(self):
        view = report_viewer.render_report(
            ReportType.MAINTENANCE, MaintenanceReport.model_validate(MAINTENANCE_PAYLOAD)
        )

        assert [card.value for card in view.summary_cards] == ["25", "18", "72.0%", "3.5 days"]
        assert [section.title for section in view.sections] == ["Requests by Category", "Requests by Priority"]
        assert view.sections[1].rows == [["high", "5"], ["medium", "12"], ["low", "8"]]

    def test_mismatched_type(self, financial: FinancialReport):
        """Test a payload is never rendered under the wrong title."""
        with pytest.raises(ValueError):
            report_viewer.render_report(ReportType.MAINTENANCE, financial)

    def test_text_rendering(self, financial: FinancialReport):
        text = report_viewer.format_view_as_text(report_viewer.render_report(ReportType.FINANCIAL, financial))
        assert text.startswith("Financial Report\n================")
        assert "Net Profit: $77,000" in text
        assert "Sunrise Apartments" in text

    def test_text_rendering_empty(self):
        text = report_viewer.format_view_as_text(report_viewer.render_report(ReportType.FINANCIAL, None))
        assert "no report data" in text


class TestActions:
    """Tests for export, print and share."""

    def test_export_filename(self):
        assert report_viewer.export_filename(ReportType.OCCUPANCY, date(2024, 2, 1)) == "occupancy-report-2024-02-01.csv"

    async def test_export_csv(self, store: ReportStore, reports_api: FakeReportsAPI):
        """Test CSV export goes through the store and notifies the caller."""
        exported_formats = []
        filters = ReportFilters(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))

        exported = await report_viewer.export_report(
            store, ReportType.FINANCIAL, "csv", filters, on_export=exported_formats.append, now=NOW
        )

        assert exported.filename == "financial-report-2024-02-01.csv"
        assert exported.media_type == "text/csv"
        assert exported.content == CSV_BODY
        assert exported_formats == [ExportFormat.CSV]
        assert reports_api.requests[-1].url.params["startDate"] == "2024-01-01"

    async def test_export_csv_failure(self, store: ReportStore, reports_api: FakeReportsAPI):
        """Test a failed export returns None and skips the callback."""
        exported_formats = []
        reports_api.fail("financial", 500, "Export failed")

        exported = await report_viewer.export_report(
            store, ReportType.FINANCIAL, ExportFormat.CSV, on_export=exported_formats.append
        )

        assert exported is None
        assert store.error == "Export failed"
        assert exported_formats == []

    async def test_export_pdf_builds_print_document(self, store: ReportStore, reports_api: FakeReportsAPI):
        """Test PDF export prints the cached report without calling the API."""
        await store.generate_financial_report(ReportFilters())
        request_count = len(reports_api.requests)

        exported = await report_viewer.export_report(store, ReportType.FINANCIAL, ExportFormat.PDF, now=NOW)

        assert exported.media_type == "text/html"
        assert exported.filename == "financial-report-2024-02-01.html"
        assert b"Sunrise Apartments" in exported.content
        assert len(reports_api.requests) == request_count

    async def test_export_json_not_supported(self, store: ReportStore):
        with pytest.raises(ValueError):
            await report_viewer.export_report(store, ReportType.FINANCIAL, ExportFormat.JSON)

    def test_print_document(self, financial: FinancialReport):
        printed = []
        view = report_viewer.render_report(ReportType.FINANCIAL, financial)

        document = report_viewer.print_report(view, on_print=lambda: printed.append(True), now=NOW)

        assert printed == [True]
        assert "<title>Financial Report - 02/01/2024</title>" in document
        assert "Generated on 02/01/2024 at 02:05:09 PM" in document
        assert "<th>Property</th>" in document

    def test_print_document_escapes_values(self):
        payload = dict(FINANCIAL_PAYLOAD)
        payload["incomeBreakdown"] = [
            {"propertyId": "p9", "propertyName": "<script>alert(1)</script>", "totalIncome": 1, "paymentCount": 1}
        ]
        view = report_viewer.render_report(ReportType.FINANCIAL, FinancialReport.model_validate(payload))

        document = report_viewer.build_print_document(view, NOW)

        assert "<script>" not in document
        assert "&lt;script&gt;" in document

    def test_share_link(self):
        shared = []
        url = report_viewer.share_report(
            ReportType.MAINTENANCE,
            ShareMethod.LINK,
            base_url="https://dash.example.com/",
            now=NOW,
            on_share=shared.append,
        )

        assert url == f"https://dash.example.com/reports/shared/maintenance/{int(NOW.timestamp() * 1000)}"
        assert shared == [ShareMethod.LINK]

    def test_share_email(self):
        url = report_viewer.share_report(ReportType.OCCUPANCY, "email", now=NOW)

        assert url.startswith("mailto:?subject=")
        subject, body = url[len("mailto:?subject="):].split("&body=")
        assert unquote(subject) == "Occupancy Report - 02/01/2024"
        assert unquote(body).startswith("Please find the occupancy report attached.\n\nGenerated on: 02/01/2024")
