"""Dashboard router - headline stats, activity feed and charts."""

from fastapi import APIRouter, Depends

from backoffice.core.security import AuthenticatedUser, require_admin
from backoffice.schemas.dashboard import ChartData, DashboardStats, RecentActivity
from backoffice.services.dashboard import DashboardService
from backoffice.services.data_provider import DataProvider, get_data_provider

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def get_dashboard_service(provider: DataProvider = Depends(get_data_provider)) -> DashboardService:
    return DashboardService(provider)


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    service: DashboardService = Depends(get_dashboard_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.fetch_stats()


@router.get("/activities", response_model=list[RecentActivity])
async def get_recent_activities(
    service: DashboardService = Depends(get_dashboard_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """What currently needs an administrator, newest first."""
    return await service.fetch_recent_activities()


@router.get("/charts", response_model=ChartData)
async def get_chart_data(
    service: DashboardService = Depends(get_dashboard_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.fetch_chart_data()
