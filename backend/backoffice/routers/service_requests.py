"""Service requests router - quote request follow-up."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from backoffice.core.security import AuthenticatedUser, require_admin
from backoffice.models.enums import ServiceRequestStatus
from backoffice.schemas.common import BulkResult, ListResult
from backoffice.schemas.service import (
    BulkIdsRequest,
    CancelRequest,
    ServiceRequestFilters,
    ServiceRequestStats,
)
from backoffice.services.data_provider import DataProvider, get_data_provider
from backoffice.services.service_requests import ServiceRequestService

router = APIRouter(prefix="/service-requests", tags=["service-requests"])


def get_request_service(
    provider: DataProvider = Depends(get_data_provider),
) -> ServiceRequestService:
    return ServiceRequestService(provider)


@router.get("", response_model=ListResult)
async def list_service_requests(
    status_filter: Optional[ServiceRequestStatus] = Query(default=None, alias="status"),
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=10, ge=1, le=100),
    service: ServiceRequestService = Depends(get_request_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    filters = ServiceRequestFilters(status=status_filter, search=search)
    return await service.list_requests(filters, page, per_page)


@router.get("/stats", response_model=ServiceRequestStats)
async def get_request_stats(
    service: ServiceRequestService = Depends(get_request_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.stats()


@router.post("/bulk-accept", response_model=BulkResult)
async def bulk_accept_requests(
    data: BulkIdsRequest,
    service: ServiceRequestService = Depends(get_request_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.bulk_accept(data.ids, current_user.uid)


@router.get("/{request_id}")
async def get_service_request(
    request_id: str,
    service: ServiceRequestService = Depends(get_request_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.get(request_id)


@router.post("/{request_id}/accept")
async def accept_request(
    request_id: str,
    service: ServiceRequestService = Depends(get_request_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.accept(request_id)


@router.post("/{request_id}/reject")
async def reject_request(
    request_id: str,
    service: ServiceRequestService = Depends(get_request_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.reject(request_id)


@router.post("/{request_id}/complete")
async def complete_request(
    request_id: str,
    service: ServiceRequestService = Depends(get_request_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.complete(request_id)


@router.post("/{request_id}/cancel")
async def cancel_request(
    request_id: str,
    data: Optional[CancelRequest] = None,
    service: ServiceRequestService = Depends(get_request_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.cancel(request_id, data.reason if data else None)
