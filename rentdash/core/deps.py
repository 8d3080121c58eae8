"""Dependencies for FastAPI routes."""

from typing import Annotated

from fastapi import Depends

from rentdash.services.report_client import ReportClient
from rentdash.services.report_store import ReportStore

_report_store: ReportStore | None = None


def get_report_store() -> ReportStore:
    """Dependency returning the process-wide report store."""
    global _report_store
    if _report_store is None:
        _report_store = ReportStore(ReportClient())
    return _report_store


async def close_report_store() -> None:
    """Close the store's API client on shutdown."""
    global _report_store
    if _report_store is not None:
        await _report_store.client.aclose()
        _report_store = None


# Common dependency aliases
ReportStoreDep = Annotated[ReportStore, Depends(get_report_store)]
