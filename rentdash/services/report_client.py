"""Reports API client - fetches report payloads from the dashboard backend."""

import logging

import httpx
from pydantic import BaseModel, ValidationError

from rentdash.core.config import settings
from rentdash.schemas.report import (
    REPORT_MODELS,
    ExportFormat,
    FinancialReport,
    MaintenanceReport,
    OccupancyReport,
    ReportFilters,
    ReportType,
    ReportTypeInfo,
)

logger = logging.getLogger(__name__)


class ReportClientError(Exception):
    """Raised when the reports API cannot produce a usable response."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def build_query_params(filters: ReportFilters, export_format: ExportFormat | str | None = None) -> dict[str, str]:
    """Translate report filters into query parameters understood by the API."""
    export_format = export_format or filters.format or ExportFormat.JSON
    params = {"format": ExportFormat(export_format).value}
    if filters.property_id:
        params["propertyId"] = filters.property_id
    if filters.start_date:
        params["startDate"] = filters.start_date.isoformat()
    if filters.end_date:
        params["endDate"] = filters.end_date.isoformat()
    return params


class ReportClient:
    """
    Thin async client for the reports endpoints.

    JSON endpoints wrap their payload as {"data": ...}. The CSV export
    returns the raw file body.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(
                base_url=base_url or settings.REPORTS_API_BASE_URL,
                timeout=timeout or settings.REPORTS_API_TIMEOUT,
            )
        self._http = http_client

    async def __aenter__(self) -> "ReportClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def _get(self, path: str, params: dict[str, str] | None = None) -> httpx.Response:
        try:
            response = await self._http.get(path, params=params)
        except httpx.HTTPError as exc:
            raise ReportClientError(f"Could not reach the reports API: {exc}") from exc

        if response.is_error:
            raise ReportClientError(
                _error_message(response),
                status_code=response.status_code,
            )
        return response

    async def _get_data(self, path: str, params: dict[str, str] | None = None):
        response = await self._get(path, params)
        try:
            body = response.json()
        except ValueError as exc:
            raise ReportClientError("Reports API returned an invalid response") from exc

        if not isinstance(body, dict) or "data" not in body:
            raise ReportClientError("Reports API returned an invalid response")
        return body["data"]

    async def get_report_types(self) -> list[ReportTypeInfo]:
        """Get available report types."""
        data = await self._get_data("/reports/types")
        try:
            return [ReportTypeInfo.model_validate(item) for item in data]
        except (TypeError, ValidationError) as exc:
            raise ReportClientError("Reports API returned malformed report types") from exc

    async def generate_report(self, report_type: ReportType, filters: ReportFilters) -> BaseModel:
        """Generate a report of the given type."""
        report_type = ReportType(report_type)
        params = build_query_params(filters, ExportFormat.JSON)
        logger.debug("Requesting %s report with %s", report_type.value, params)

        data = await self._get_data(f"/reports/{report_type.value}", params)
        try:
            return REPORT_MODELS[report_type].model_validate(data)
        except ValidationError as exc:
            raise ReportClientError(
                f"Reports API returned a malformed {report_type.value} report"
            ) from exc

    async def generate_financial_report(self, filters: ReportFilters) -> FinancialReport:
        """Generate financial report."""
        return await self.generate_report(ReportType.FINANCIAL, filters)

    async def generate_occupancy_report(self, filters: ReportFilters) -> OccupancyReport:
        """Generate occupancy report."""
        return await self.generate_report(ReportType.OCCUPANCY, filters)

    async def generate_maintenance_report(self, filters: ReportFilters) -> MaintenanceReport:
        """Generate maintenance report."""
        return await self.generate_report(ReportType.MAINTENANCE, filters)

    async def export_report_as_csv(self, report_type: ReportType, filters: ReportFilters) -> bytes:
        """Export report as CSV and return the raw file body."""
        report_type = ReportType(report_type)
        params = build_query_params(filters, ExportFormat.CSV)
        response = await self._get(f"/reports/{report_type.value}", params)
        return response.content


def _error_message(response: httpx.Response) -> str:
    """Pick the most useful message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]

    return f"Reports API request failed with status {response.status_code}"
