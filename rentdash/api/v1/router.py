"""API v1 router aggregating all route modules."""

from fastapi import APIRouter

from rentdash.api.v1.routes import reports, scheduled_reports

api_router = APIRouter()

# Schedules first so /reports/schedules is not read as a report type
api_router.include_router(scheduled_reports.router)
api_router.include_router(reports.router)
