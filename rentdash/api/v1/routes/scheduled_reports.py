"""Scheduled report API routes."""

from fastapi import APIRouter, HTTPException, status

from rentdash.core.deps import ReportStoreDep
from rentdash.schemas.report import (
    ScheduledReport,
    ScheduledReportCreate,
    ScheduledReportUpdate,
)

router = APIRouter(prefix="/reports/schedules", tags=["Scheduled Reports"])


def schedule_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Scheduled report not found",
    )


@router.get("", response_model=list[ScheduledReport])
async def list_scheduled_reports(store: ReportStoreDep) -> list[ScheduledReport]:
    """List scheduled report definitions."""
    return await store.fetch_scheduled_reports()


@router.post("", response_model=ScheduledReport, status_code=status.HTTP_201_CREATED)
async def create_scheduled_report(
    schedule_data: ScheduledReportCreate,
    store: ReportStoreDep,
) -> ScheduledReport:
    """
    Create a scheduled report.

    Schedules are bookkeeping only: nothing runs them automatically.
    """
    return await store.create_scheduled_report(schedule_data)


@router.get("/{schedule_id}", response_model=ScheduledReport)
async def get_scheduled_report(schedule_id: str, store: ReportStoreDep) -> ScheduledReport:
    """Get a scheduled report by ID."""
    schedule = store.get_scheduled_report(schedule_id)
    if schedule is None:
        raise schedule_not_found()
    return schedule


@router.patch("/{schedule_id}", response_model=ScheduledReport)
async def update_scheduled_report(
    schedule_id: str,
    schedule_data: ScheduledReportUpdate,
    store: ReportStoreDep,
) -> ScheduledReport:
    """Update a scheduled report, e.g. toggle it on or off."""
    schedule = await store.update_scheduled_report(schedule_id, schedule_data)
    if schedule is None:
        store.clear_error()
        raise schedule_not_found()
    return schedule


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_scheduled_report(schedule_id: str, store: ReportStoreDep) -> None:
    """Delete a scheduled report."""
    if not await store.delete_scheduled_report(schedule_id):
        store.clear_error()
        raise schedule_not_found()
