"""Service (quote) request moderation."""

import logging
from collections import Counter
from typing import Any, Optional

from backoffice.models.enums import Resource, ServiceRequestStatus
from backoffice.schemas.common import BulkResult, ListParams, ListResult
from backoffice.schemas.service import ServiceRequestFilters, ServiceRequestStats
from backoffice.services.audit import AuditService
from backoffice.services.bulk import run_bulk
from backoffice.services.data_provider import DataProvider

logger = logging.getLogger(__name__)

SERVICE_REQUESTS = Resource.SERVICE_REQUESTS.value

REQUEST_SELECT = """
    *,
    requester:profiles!requester_id(id, full_name, email),
    service:services(id, name, category, base_price),
    property:properties(id, title, city)
"""

REQUEST_SEARCH_FIELDS = ["cancellation_reason", "special_instructions"]


def request_stats(requests: list[dict[str, Any]]) -> ServiceRequestStats:
    counts = Counter(r.get("status") or ServiceRequestStatus.PENDING.value for r in requests)
    return ServiceRequestStats(
        total=len(requests),
        by_status={s.value: counts.get(s.value, 0) for s in ServiceRequestStatus},
        completed_amount=round(
            sum(
                float(r.get("total_amount") or 0)
                for r in requests
                if r.get("status") == ServiceRequestStatus.COMPLETED.value
            ),
            2,
        ),
    )


class ServiceRequestService:
    def __init__(self, provider: DataProvider, audit: Optional[AuditService] = None):
        self.provider = provider
        self.audit = audit or AuditService(provider)

    async def list_requests(
        self,
        filters: Optional[ServiceRequestFilters] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> ListResult:
        filters = filters or ServiceRequestFilters()
        params = ListParams(
            page=page,
            per_page=per_page,
            sort_field="created_at",
            filters={"status": filters.status},
            select=REQUEST_SELECT,
            search=filters.search,
            search_fields=REQUEST_SEARCH_FIELDS,
        )
        return (await self.provider.get_list(SERVICE_REQUESTS, params)).unwrap()

    async def stats(self) -> ServiceRequestStats:
        rows = (
            await self.provider.get_all(SERVICE_REQUESTS, select="id, status, total_amount")
        ).unwrap()
        return request_stats(rows)

    async def get(self, request_id: str) -> dict[str, Any]:
        return (await self.provider.get_one(SERVICE_REQUESTS, request_id, REQUEST_SELECT)).unwrap()

    async def _set_status(
        self,
        request_id: str,
        status: ServiceRequestStatus,
        extra: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        row = (
            await self.provider.update(
                SERVICE_REQUESTS, request_id, {"status": status.value, **(extra or {})}
            )
        ).unwrap()
        logger.info(f"[REQUESTS] {request_id} -> {status.value}")
        return row

    async def accept(self, request_id: str) -> dict[str, Any]:
        return await self._set_status(request_id, ServiceRequestStatus.ACCEPTED)

    async def reject(self, request_id: str) -> dict[str, Any]:
        return await self._set_status(request_id, ServiceRequestStatus.REJECTED)

    async def complete(self, request_id: str) -> dict[str, Any]:
        return await self._set_status(request_id, ServiceRequestStatus.COMPLETED)

    async def cancel(self, request_id: str, reason: Optional[str] = None) -> dict[str, Any]:
        extra = {"cancellation_reason": reason} if reason else None
        return await self._set_status(request_id, ServiceRequestStatus.CANCELLED, extra)

    async def bulk_accept(self, ids: list[str], admin_id: Optional[str] = None) -> BulkResult:
        result = await run_bulk(ids, self.accept)
        await self.audit.log_bulk_action("accept_service_requests", ids, len(result.failed), admin_id)
        return result
