"""Properties router - listing moderation."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from backoffice.core.security import AuthenticatedUser, require_admin
from backoffice.models.enums import BulkPropertyAction
from backoffice.schemas.common import BulkResult, ListResult, TabCount
from backoffice.schemas.property import (
    BulkPropertyRequest,
    ModerationRequest,
    PropertyFilters,
    PropertyStats,
    PropertyUpdate,
)
from backoffice.services.data_provider import DataProvider, get_data_provider
from backoffice.services.export import PROPERTY_COLUMNS, csv_response
from backoffice.services.properties import PROPERTY_SELECT, PropertyService
from backoffice.services.tabs import tab_counts

router = APIRouter(prefix="/properties", tags=["properties"])


def get_property_service(provider: DataProvider = Depends(get_data_provider)) -> PropertyService:
    return PropertyService(provider)


@router.get("", response_model=ListResult)
async def list_properties(
    status_filter: Literal["all", "pending", "approved", "rejected"] = Query(default="all", alias="status"),
    search: Optional[str] = None,
    owner_id: Optional[str] = None,
    city: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=10, ge=1, le=100),
    sort_field: str = "created_at",
    sort_order: Literal["ASC", "DESC"] = "DESC",
    service: PropertyService = Depends(get_property_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """List properties with their owner."""
    filters = PropertyFilters(status=status_filter, search=search, owner_id=owner_id, city=city)
    return await service.list_properties(filters, page, per_page, sort_field, sort_order)


@router.get("/stats", response_model=PropertyStats)
async def get_property_stats(
    service: PropertyService = Depends(get_property_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.stats()


@router.get("/tabs", response_model=list[TabCount])
async def get_property_tabs(
    service: PropertyService = Depends(get_property_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return tab_counts("properties", await service.all_properties())


@router.get("/export")
async def export_properties(
    provider: DataProvider = Depends(get_data_provider),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Download every property (with owner) as CSV."""
    rows = (
        await provider.get_all("properties", select=PROPERTY_SELECT, order_by="created_at")
    ).unwrap()
    return csv_response("properties", rows, PROPERTY_COLUMNS)


@router.post("/bulk", response_model=BulkResult)
async def bulk_properties(
    data: BulkPropertyRequest,
    service: PropertyService = Depends(get_property_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    if data.action == BulkPropertyAction.APPROVE:
        return await service.bulk_approve(data.ids, current_user.uid, data.notes)
    if data.action == BulkPropertyAction.REJECT:
        return await service.bulk_reject(data.ids, current_user.uid, data.notes)
    return await service.bulk_delete(data.ids, current_user.uid)


@router.get("/{property_id}")
async def get_property(
    property_id: str,
    service: PropertyService = Depends(get_property_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Get a property by ID."""
    return await service.get(property_id)


@router.patch("/{property_id}")
async def update_property(
    property_id: str,
    data: PropertyUpdate,
    service: PropertyService = Depends(get_property_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Update a property."""
    update_data = data.model_dump(mode="json", exclude_unset=True)
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )
    return await service.update(property_id, update_data)


@router.delete("/{property_id}")
async def delete_property(
    property_id: str,
    service: PropertyService = Depends(get_property_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.delete(property_id)


@router.post("/{property_id}/approve")
async def approve_property(
    property_id: str,
    data: Optional[ModerationRequest] = None,
    service: PropertyService = Depends(get_property_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.approve(property_id, current_user.uid, data.notes if data else None)


@router.post("/{property_id}/reject")
async def reject_property(
    property_id: str,
    data: Optional[ModerationRequest] = None,
    service: PropertyService = Depends(get_property_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.reject(property_id, current_user.uid, data.notes if data else None)


@router.post("/{property_id}/pending")
async def set_property_pending(
    property_id: str,
    data: Optional[ModerationRequest] = None,
    service: PropertyService = Depends(get_property_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Send a property back to the moderation queue."""
    return await service.set_pending(property_id, current_user.uid, data.notes if data else None)
