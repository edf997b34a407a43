"""Financial router - platform revenue, expenses and owner reports."""

from fastapi import APIRouter, Depends, Query

from backoffice.core.security import AuthenticatedUser, require_admin
from backoffice.schemas.financial import (
    FinancialOverview,
    FinancialTransaction,
    MonthlyFinancialData,
    OwnerFinancialReport,
    RevenueByCategory,
)
from backoffice.services.data_provider import DataProvider, get_data_provider
from backoffice.services.financial import FinancialService

router = APIRouter(prefix="/financial", tags=["financial"])


def get_financial_service(provider: DataProvider = Depends(get_data_provider)) -> FinancialService:
    return FinancialService(provider)


@router.get("/overview", response_model=FinancialOverview)
async def get_overview(
    service: FinancialService = Depends(get_financial_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Totals plus month-over-month growth."""
    return await service.overview()


@router.get("/monthly", response_model=list[MonthlyFinancialData])
async def get_monthly(
    service: FinancialService = Depends(get_financial_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.monthly()


@router.get("/categories", response_model=list[RevenueByCategory])
async def get_categories(
    service: FinancialService = Depends(get_financial_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.categories()


@router.get("/transactions", response_model=list[FinancialTransaction])
async def get_transactions(
    limit: int = Query(default=50, ge=1, le=500),
    service: FinancialService = Depends(get_financial_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.transactions(limit)


@router.get("/owners", response_model=list[OwnerFinancialReport])
async def get_owners_report(
    service: FinancialService = Depends(get_financial_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Per-owner revenue, platform commission and net balance."""
    return await service.owners()
