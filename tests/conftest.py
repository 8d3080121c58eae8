"""Test configuration and fixtures."""

from collections.abc import AsyncGenerator
from copy import deepcopy

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from main import app
from rentdash.core.deps import get_report_store
from rentdash.services.report_client import ReportClient
from rentdash.services.report_store import ReportStore

REPORTS_API_URL = "http://reports.test/api"

FINANCIAL_PAYLOAD = {
    "summary": {
        "totalIncome": 125000,
        "totalExpenses": 48000,
        "netProfit": 77000,
        "profitMargin": "61.6",
    },
    "incomeBreakdown": [
        {"propertyId": "p1", "propertyName": "Sunrise Apartments", "totalIncome": 80000, "paymentCount": 16},
        {"propertyId": "p2", "propertyName": "Riverside Homes", "totalIncome": 45000, "paymentCount": 9},
    ],
    "expenseBreakdown": [
        {"category": "maintenance", "totalAmount": 30000, "count": 12},
        {"category": "utilities", "totalAmount": 18000, "count": 6},
    ],
    "period": {"startDate": "2024-01-01", "endDate": "2024-01-31"},
    "generatedAt": "2024-02-01T09:30:00Z",
}

OCCUPANCY_PAYLOAD = {
    "summary": {"totalRooms": 40, "occupiedRooms": 34, "vacantRooms": 6, "occupancyRate": 85},
    "occupancyByProperty": [
        {
            "propertyId": "p1",
            "propertyName": "Sunrise Apartments",
            "totalRooms": 24,
            "occupiedRooms": 21,
            "vacantRooms": 3,
            "occupancyRate": "87.5",
        },
        {
            "propertyId": "p2",
            "propertyName": "Riverside Homes",
            "totalRooms": 16,
            "occupiedRooms": 13,
            "vacantRooms": 3,
            "occupancyRate": "81.3",
        },
    ],
    "contractHistory": [
        {"contractId": "c1", "renterName": "Nguyen Van A", "status": "active"},
    ],
    "period": {"startDate": "2024-01-01", "endDate": "2024-01-31"},
    "generatedAt": "2024-02-01T09:30:00Z",
}

MAINTENANCE_PAYLOAD = {
    "summary": {
        "totalRequests": 25,
        "completedRequests": 18,
        "pendingRequests": 4,
        "inProgressRequests": 3,
        "completionRate": "72.0",
        "avgResolutionTimeDays": "3.5",
    },
    "requestsByCategory": [
        {"category": "plumbing", "total": 10, "completed": 8, "pending": 1, "inProgress": 1},
        {"category": "electrical", "total": 15, "completed": 10, "pending": 3, "inProgress": 2},
    ],
    "requestsByPriority": [
        {"priority": "high", "count": 5},
        {"priority": "medium", "count": 12},
        {"priority": "low", "count": 8},
    ],
    "recentRequests": [],
    "period": {"startDate": "2024-01-01", "endDate": "2024-01-31"},
    "generatedAt": "2024-02-01T09:30:00Z",
}

REPORT_TYPES = [
    {
        "id": "financial",
        "name": "Financial Report",
        "description": "Income, expenses, and profitability analysis",
        "exportFormats": ["json", "csv"],
    },
    {
        "id": "occupancy",
        "name": "Occupancy Report",
        "description": "Room occupancy rates and vacancy tracking",
        "exportFormats": ["json", "csv"],
    },
]

CSV_BODY = b"property,total_income\nSunrise Apartments,80000\nRiverside Homes,45000\n"


class FakeReportsAPI:
    """Stand-in for the upstream reports API, served through httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.payloads = {
            "financial": deepcopy(FINANCIAL_PAYLOAD),
            "occupancy": deepcopy(OCCUPANCY_PAYLOAD),
            "maintenance": deepcopy(MAINTENANCE_PAYLOAD),
        }
        self.failures: dict[str, tuple[int, dict]] = {}

    def fail(self, endpoint: str, status_code: int = 500, message: str = "Reports service unavailable") -> None:
        """Make an endpoint (e.g. "financial", "types") answer with an error."""
        self.failures[endpoint] = (status_code, {"success": False, "message": message})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.rsplit("/", 1)[-1]

        if endpoint in self.failures:
            status_code, body = self.failures[endpoint]
            return httpx.Response(status_code, json=body)

        if endpoint == "types":
            return httpx.Response(200, json={"success": True, "data": REPORT_TYPES})

        if endpoint in self.payloads:
            if request.url.params.get("format") == "csv":
                return httpx.Response(200, content=CSV_BODY, headers={"Content-Type": "text/csv"})
            return httpx.Response(200, json={"success": True, "data": self.payloads[endpoint]})

        return httpx.Response(404, json={"success": False, "message": "Not found"})


@pytest.fixture
def reports_api() -> FakeReportsAPI:
    """Fake upstream reports API."""
    return FakeReportsAPI()


@pytest.fixture
async def report_client(reports_api: FakeReportsAPI) -> AsyncGenerator[ReportClient, None]:
    """Report client talking to the fake reports API."""
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(reports_api.handler),
        base_url=REPORTS_API_URL,
    )
    async with http_client:
        yield ReportClient(http_client=http_client)


@pytest.fixture
def store(report_client: ReportClient) -> ReportStore:
    """Fresh report store for each test."""
    return ReportStore(report_client)


@pytest.fixture
async def client(store: ReportStore) -> AsyncGenerator[AsyncClient, None]:
    """Get async HTTP client for the API, wired to the test store."""
    app.dependency_overrides[get_report_store] = lambda: store
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.pop(get_report_store, None)
