"""Report API routes."""

from datetime import date

from fastapi import APIRouter, HTTPException, Query, Response, status

from rentdash.core.deps import ReportStoreDep
from rentdash.schemas.report import (
    CurrentReportResponse,
    ExportFormat,
    GeneratedReportResponse,
    GenerateReportRequest,
    ReportFilters,
    ReportHistoryEntry,
    ReportType,
    ReportTypeInfo,
    ShareMethod,
    ShareResponse,
)
from rentdash.schemas.validators import validate_report_filters
from rentdash.services import report_viewer as viewer_service
from rentdash.services.report_store import ReportStore

router = APIRouter(prefix="/reports", tags=["Reports"])


# ============== Helper Functions ==============


def check_filters(filters: ReportFilters) -> None:
    """Reject invalid filters, listing every violation."""
    errors = validate_report_filters(filters)
    if errors:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": errors[0], "errors": errors},
        )


def raise_store_error(store: ReportStore, fallback: str) -> None:
    """Turn the store's error into a 502 and clear it."""
    message = store.error or fallback
    store.clear_error()
    raise HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=message,
    )


# ============== Endpoints ==============


@router.get("/types", response_model=list[ReportTypeInfo])
async def list_report_types(store: ReportStoreDep) -> list[ReportTypeInfo]:
    """Get the report types offered by the reports API."""
    report_types = await store.fetch_report_types()
    if store.error:
        raise_store_error(store, "Failed to fetch report types")
    return report_types


@router.post("/generate", response_model=GeneratedReportResponse)
async def generate_report(
    request: GenerateReportRequest,
    store: ReportStoreDep,
) -> GeneratedReportResponse:
    """
    Generate a report.

    Filters are validated first; the report is then requested from the
    reports API, cached, and added to the history.
    """
    check_filters(request.filters)

    report = await store.generate_report(request.report_type, request.filters)
    if report is None:
        if store.error:
            raise_store_error(store, f"Failed to generate {request.report_type.value} report")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Report request was superseded by a newer request",
        )

    return GeneratedReportResponse(
        report_type=request.report_type,
        data=report,
        view=viewer_service.render_report(request.report_type, report),
    )


@router.post("/preview", response_model=GenerateReportRequest)
async def preview_report(request: GenerateReportRequest) -> GenerateReportRequest:
    """Validate filters for a preview without generating anything."""
    check_filters(request.filters)
    return request


@router.get("/current", response_model=CurrentReportResponse)
async def get_current_report(store: ReportStoreDep) -> CurrentReportResponse:
    """Get the most recently generated report."""
    report_type, report = store.current_report()
    if report_type is None:
        return CurrentReportResponse()

    return CurrentReportResponse(
        report_type=report_type,
        data=report,
        view=viewer_service.render_report(report_type, report, is_loading=store.is_loading),
    )


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_reports(store: ReportStoreDep) -> None:
    """Clear cached reports. History and schedules are kept."""
    store.clear_reports()


@router.get("/history", response_model=list[ReportHistoryEntry])
async def get_report_history(store: ReportStoreDep) -> list[ReportHistoryEntry]:
    """Get recently generated reports, newest first."""
    return store.report_history


@router.get("/{report_type}/export")
async def export_report(
    report_type: ReportType,
    store: ReportStoreDep,
    export_format: ExportFormat = Query(ExportFormat.CSV, alias="format"),
    property_id: str | None = Query(None, alias="propertyId"),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
) -> Response:
    """
    Export a report.

    CSV is fetched from the reports API; PDF returns a printable HTML page
    built from the cached report.
    """
    if export_format == ExportFormat.JSON:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Reports can be exported as csv or pdf",
        )

    if export_format == ExportFormat.PDF and store.get_report(report_type) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No {report_type.value} report has been generated",
        )

    filters = ReportFilters(
        property_id=property_id,
        start_date=start_date,
        end_date=end_date,
        format=export_format,
    )
    exported = await viewer_service.export_report(store, report_type, export_format, filters)
    if exported is None:
        raise_store_error(store, "Failed to export report")

    disposition = "attachment" if export_format == ExportFormat.CSV else "inline"
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'{disposition}; filename="{exported.filename}"'},
    )


@router.post("/{report_type}/share", response_model=ShareResponse)
async def share_report(
    report_type: ReportType,
    method: ShareMethod = Query(ShareMethod.LINK),
) -> ShareResponse:
    """Get a shareable link or a mailto: URL for a report."""
    url = viewer_service.share_report(report_type, method)
    return ShareResponse(method=method, url=url)
