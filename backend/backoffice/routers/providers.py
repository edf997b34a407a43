"""Providers router - service provider verification."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from backoffice.core.security import AuthenticatedUser, require_admin
from backoffice.schemas.common import BulkResult, ListResult
from backoffice.schemas.service import BulkIdsRequest, ProviderFilters, ProviderStats
from backoffice.services.catalog import CatalogService
from backoffice.services.data_provider import DataProvider, get_data_provider

router = APIRouter(prefix="/providers", tags=["providers"])


def get_catalog_service(provider: DataProvider = Depends(get_data_provider)) -> CatalogService:
    return CatalogService(provider)


@router.get("", response_model=ListResult)
async def list_providers(
    status_filter: Literal["all", "verified", "pending"] = Query(default="all", alias="status"),
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=10, ge=1, le=100),
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    filters = ProviderFilters(status=status_filter, search=search)
    return await service.list_providers(filters, page, per_page)


@router.get("/stats", response_model=ProviderStats)
async def get_provider_stats(
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.provider_stats()


@router.post("/bulk-verify", response_model=BulkResult)
async def bulk_verify_providers(
    data: BulkIdsRequest,
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.bulk_verify(data.ids, current_user.uid)


@router.get("/{provider_id}")
async def get_provider(
    provider_id: str,
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Provider profile with the services it offers."""
    return await service.get_provider(provider_id)


@router.post("/{provider_id}/verify")
async def verify_provider(
    provider_id: str,
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.verify_provider(provider_id)


@router.post("/{provider_id}/reject")
async def reject_provider(
    provider_id: str,
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.reject_provider(provider_id)


@router.post("/{provider_id}/suspend")
async def suspend_provider(
    provider_id: str,
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.suspend_provider(provider_id)
