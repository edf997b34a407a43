"""Services router - the service catalog."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from backoffice.core.security import AuthenticatedUser, require_admin
from backoffice.schemas.common import BulkResult, ListResult, TabCount
from backoffice.schemas.service import (
    BulkServiceRequest,
    ServiceCreate,
    ServiceFilters,
    ServiceStats,
    ServiceUpdate,
)
from backoffice.services.catalog import CatalogService
from backoffice.services.data_provider import DataProvider, get_data_provider
from backoffice.services.export import SERVICE_COLUMNS, csv_response
from backoffice.services.tabs import tab_counts

router = APIRouter(prefix="/services", tags=["services"])


def get_catalog_service(provider: DataProvider = Depends(get_data_provider)) -> CatalogService:
    return CatalogService(provider)


@router.get("", response_model=ListResult)
async def list_services(
    status_filter: Literal["all", "active", "inactive"] = Query(default="all", alias="status"),
    category: Optional[str] = None,
    provider_id: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=10, ge=1, le=100),
    sort_field: str = "created_at",
    sort_order: Literal["ASC", "DESC"] = "DESC",
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    filters = ServiceFilters(
        status=status_filter, category=category, provider_id=provider_id, search=search
    )
    return await service.list_services(filters, page, per_page, sort_field, sort_order)


@router.get("/stats", response_model=ServiceStats)
async def get_service_stats(
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.service_stats()


@router.get("/tabs", response_model=list[TabCount])
async def get_service_tabs(
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return tab_counts("services", await service.all_services())


@router.get("/export")
async def export_services(
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return csv_response("services", await service.all_services(), SERVICE_COLUMNS)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_service(
    data: ServiceCreate,
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Add a service to the catalog."""
    return await service.create_service(data)


@router.post("/bulk", response_model=BulkResult)
async def bulk_services(
    data: BulkServiceRequest,
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.bulk_action(data.action, data.ids, current_user.uid)


@router.get("/{service_id}")
async def get_service(
    service_id: str,
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.get_service(service_id)


@router.get("/{service_id}/providers")
async def get_service_providers(
    service_id: str,
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.providers_for_service(service_id)


@router.patch("/{service_id}")
async def update_service(
    service_id: str,
    data: ServiceUpdate,
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    update_data = data.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )
    return await service.update_service(service_id, update_data)


@router.delete("/{service_id}")
async def delete_service(
    service_id: str,
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.delete_service(service_id)


@router.post("/{service_id}/activate")
async def activate_service(
    service_id: str,
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.activate(service_id)


@router.post("/{service_id}/deactivate")
async def deactivate_service(
    service_id: str,
    service: CatalogService = Depends(get_catalog_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.deactivate(service_id)
