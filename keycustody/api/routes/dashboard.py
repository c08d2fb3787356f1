# =======================================================================================
# keycustody/api/routes/dashboard.py - Dashboard & Logs Endpoints
# =======================================================================================
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, WebSocket
from ...models.enums import ActionFilter, StatusFilter
from ...models.schemas import DashboardFilters, DashboardResponse, LogFilters, LogsResponse
from ...services.change_feed import ChangeFeed
from ...services.dashboard_service import DashboardService
from ...views.dashboard import DashboardView
from ...views.live import serve_live_view
from ...views.logs import LogsView
from ..dependencies import get_change_feed, get_dashboard_service

router = APIRouter()
live_router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    search: str = "",
    company: str = "all",
    status: StatusFilter = "all",
    service: DashboardService = Depends(get_dashboard_service),
):
    filters = DashboardFilters(search=search, company=company, status=status)
    return service.get_dashboard(filters)


@router.get("/logs", response_model=LogsResponse)
def get_logs(
    search: str = "",
    company: str = "all",
    action: ActionFilter = "all",
    dateFrom: Optional[date] = None,
    dateTo: Optional[date] = None,
    limit: Optional[int] = None,
    service: DashboardService = Depends(get_dashboard_service),
):
    filters = LogFilters(search=search, company=company, action=action, dateFrom=dateFrom, dateTo=dateTo)
    return service.get_logs(filters, limit)


# ---------- live projections ----------

@live_router.websocket("/ws/dashboard")
async def dashboard_feed(
    websocket: WebSocket,
    service: DashboardService = Depends(get_dashboard_service),
    feed: ChangeFeed = Depends(get_change_feed),
):
    await serve_live_view(websocket, DashboardView(service), feed)


@live_router.websocket("/ws/logs")
async def logs_feed(
    websocket: WebSocket,
    service: DashboardService = Depends(get_dashboard_service),
    feed: ChangeFeed = Depends(get_change_feed),
):
    await serve_live_view(websocket, LogsView(service), feed)
