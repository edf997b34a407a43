"""Property approval workflow."""

import logging
from typing import Any, Optional

from backoffice.core.dates import isoformat, utcnow
from backoffice.models.enums import AuditAction, Resource, ValidationStatus
from backoffice.schemas.common import BulkResult, ListParams, ListResult
from backoffice.schemas.property import PropertyFilters, PropertyStats
from backoffice.services.audit import AuditService
from backoffice.services.bulk import run_bulk
from backoffice.services.data_provider import DataProvider

logger = logging.getLogger(__name__)

PROPERTIES = Resource.PROPERTIES.value

PROPERTY_SEARCH_FIELDS = ["title", "city"]

PROPERTY_SELECT = "*, owner:profiles!owner_id(id, full_name, email)"


def moderation_payload(
    status: ValidationStatus,
    admin_id: Optional[str],
    notes: Optional[str] = None,
) -> dict[str, Any]:
    """Columns written when a listing is approved, rejected or sent back to pending."""
    if status == ValidationStatus.PENDING:
        payload: dict[str, Any] = {
            "validation_status": status.value,
            "validated_at": None,
            "validated_by": None,
        }
    else:
        payload = {
            "validation_status": status.value,
            "validated_at": isoformat(utcnow()),
            "validated_by": admin_id,
        }
    if notes:
        payload["moderation_notes"] = notes
    return payload


def property_stats(rows: list[dict[str, Any]]) -> PropertyStats:
    by_status = [r.get("validation_status") or ValidationStatus.PENDING.value for r in rows]
    return PropertyStats(
        total=len(rows),
        pending=by_status.count(ValidationStatus.PENDING.value),
        approved=by_status.count(ValidationStatus.APPROVED.value),
        rejected=by_status.count(ValidationStatus.REJECTED.value),
    )


class PropertyService:
    """Moderation and CRUD on properties."""

    _AUDIT_ACTIONS = {
        ValidationStatus.APPROVED: AuditAction.PROPERTY_APPROVED,
        ValidationStatus.REJECTED: AuditAction.PROPERTY_REJECTED,
        ValidationStatus.PENDING: AuditAction.PROPERTY_PENDING,
    }

    def __init__(self, provider: DataProvider, audit: Optional[AuditService] = None):
        self.provider = provider
        self.audit = audit or AuditService(provider)

    async def list_properties(
        self,
        filters: Optional[PropertyFilters] = None,
        page: int = 1,
        per_page: int = 10,
        sort_field: str = "created_at",
        sort_order: str = "DESC",
    ) -> ListResult:
        filters = filters or PropertyFilters()
        db_filters: dict[str, Any] = {"owner_id": filters.owner_id, "city": filters.city}
        if filters.status and filters.status != "all":
            db_filters["validation_status"] = filters.status
        params = ListParams(
            page=page,
            per_page=per_page,
            sort_field=sort_field,
            sort_order=sort_order,
            filters=db_filters,
            select=PROPERTY_SELECT,
            search=filters.search,
            search_fields=PROPERTY_SEARCH_FIELDS,
        )
        return (await self.provider.get_list(PROPERTIES, params)).unwrap()

    async def all_properties(self) -> list[dict[str, Any]]:
        return (await self.provider.get_all(PROPERTIES, order_by="created_at")).unwrap()

    async def stats(self) -> PropertyStats:
        return property_stats(await self.all_properties())

    async def get(self, property_id: str) -> dict[str, Any]:
        return (await self.provider.get_one(PROPERTIES, property_id, PROPERTY_SELECT)).unwrap()

    async def update(self, property_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return (await self.provider.update(PROPERTIES, property_id, data)).unwrap()

    async def delete(self, property_id: str) -> dict[str, Any]:
        return (await self.provider.delete(PROPERTIES, property_id)).unwrap()

    async def _moderate(
        self,
        property_id: str,
        status: ValidationStatus,
        admin_id: Optional[str],
        notes: Optional[str],
    ) -> dict[str, Any]:
        row = await self.update(property_id, moderation_payload(status, admin_id, notes))
        await self.audit.log_property_moderated(
            property_id,
            self._AUDIT_ACTIONS[status],
            owner_id=row.get("owner_id"),
            notes=notes,
            admin_id=admin_id,
        )
        logger.info(f"[PROPERTIES] {property_id} -> {status.value}")
        return row

    async def approve(self, property_id: str, admin_id: Optional[str], notes: Optional[str] = None) -> dict[str, Any]:
        return await self._moderate(property_id, ValidationStatus.APPROVED, admin_id, notes)

    async def reject(self, property_id: str, admin_id: Optional[str], notes: Optional[str] = None) -> dict[str, Any]:
        return await self._moderate(property_id, ValidationStatus.REJECTED, admin_id, notes)

    async def set_pending(self, property_id: str, admin_id: Optional[str] = None, notes: Optional[str] = None) -> dict[str, Any]:
        return await self._moderate(property_id, ValidationStatus.PENDING, admin_id, notes)

    async def bulk_approve(self, ids: list[str], admin_id: Optional[str], notes: Optional[str] = None) -> BulkResult:
        result = await run_bulk(ids, lambda pid: self.approve(pid, admin_id, notes))
        await self.audit.log_bulk_action("approve_properties", ids, len(result.failed), admin_id)
        return result

    async def bulk_reject(self, ids: list[str], admin_id: Optional[str], notes: Optional[str] = None) -> BulkResult:
        result = await run_bulk(ids, lambda pid: self.reject(pid, admin_id, notes))
        await self.audit.log_bulk_action("reject_properties", ids, len(result.failed), admin_id)
        return result

    async def bulk_delete(self, ids: list[str], admin_id: Optional[str] = None) -> BulkResult:
        result = await run_bulk(ids, self.delete)
        await self.audit.log_bulk_action("delete_properties", ids, len(result.failed), admin_id)
        return result
