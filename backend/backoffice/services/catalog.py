"""Service catalog and provider moderation."""

import logging
from collections import Counter
from typing import Any, Optional

from backoffice.models.enums import BulkServiceAction, Resource, UserRole
from backoffice.schemas.common import BulkResult, ListParams, ListResult
from backoffice.schemas.service import (
    ProviderFilters,
    ProviderStats,
    ServiceCreate,
    ServiceFilters,
    ServiceStats,
)
from backoffice.services.audit import AuditService
from backoffice.services.bulk import run_bulk
from backoffice.services.data_provider import DataProvider

logger = logging.getLogger(__name__)

SERVICES = Resource.SERVICES.value
PROFILES = Resource.PROFILES.value

SERVICE_SEARCH_FIELDS = ["name", "category"]
PROVIDER_SEARCH_FIELDS = ["full_name", "email", "phone"]


def service_stats(services: list[dict[str, Any]]) -> ServiceStats:
    if not services:
        return ServiceStats()
    active = sum(1 for s in services if s.get("is_active"))
    prices = [float(s.get("base_price") or 0) for s in services]
    return ServiceStats(
        total=len(services),
        active=active,
        inactive=len(services) - active,
        vip_only=sum(1 for s in services if s.get("is_vip_only")),
        by_category=dict(Counter(s.get("category") or "uncategorized" for s in services)),
        average_price=round(sum(prices) / len(prices), 2),
    )


def provider_stats(providers: list[dict[str, Any]], services: list[dict[str, Any]]) -> ProviderStats:
    per_provider = Counter(s["provider_id"] for s in services if s.get("provider_id"))
    verified = sum(1 for p in providers if p.get("profile_validated"))
    return ProviderStats(
        total=len(providers),
        verified=verified,
        pending=len(providers) - verified,
        locked=sum(1 for p in providers if p.get("account_locked")),
        services_per_provider={p["id"]: per_provider.get(p["id"], 0) for p in providers},
    )


class CatalogService:
    """Services (offers) and the providers delivering them."""

    def __init__(self, provider: DataProvider, audit: Optional[AuditService] = None):
        self.provider = provider
        self.audit = audit or AuditService(provider)

    # ------------------------------------------------------------------ services

    async def list_services(
        self,
        filters: Optional[ServiceFilters] = None,
        page: int = 1,
        per_page: int = 10,
        sort_field: str = "created_at",
        sort_order: str = "DESC",
    ) -> ListResult:
        filters = filters or ServiceFilters()
        db_filters: dict[str, Any] = {"category": filters.category, "provider_id": filters.provider_id}
        if filters.status == "active":
            db_filters["is_active"] = True
        elif filters.status == "inactive":
            db_filters["is_active"] = False
        params = ListParams(
            page=page,
            per_page=per_page,
            sort_field=sort_field,
            sort_order=sort_order,
            filters=db_filters,
            search=filters.search,
            search_fields=SERVICE_SEARCH_FIELDS,
        )
        return (await self.provider.get_list(SERVICES, params)).unwrap()

    async def all_services(self) -> list[dict[str, Any]]:
        return (await self.provider.get_all(SERVICES, order_by="created_at")).unwrap()

    async def service_stats(self) -> ServiceStats:
        return service_stats(await self.all_services())

    async def get_service(self, service_id: str) -> dict[str, Any]:
        return (await self.provider.get_one(SERVICES, service_id)).unwrap()

    async def create_service(self, data: ServiceCreate) -> dict[str, Any]:
        row = (await self.provider.create(SERVICES, data.model_dump())).unwrap()
        logger.info(f"[CATALOG] Service created: {data.name}")
        return row

    async def update_service(self, service_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return (await self.provider.update(SERVICES, service_id, data)).unwrap()

    async def delete_service(self, service_id: str) -> dict[str, Any]:
        return (await self.provider.delete(SERVICES, service_id)).unwrap()

    async def activate(self, service_id: str) -> dict[str, Any]:
        return await self.update_service(service_id, {"is_active": True})

    async def deactivate(self, service_id: str) -> dict[str, Any]:
        return await self.update_service(service_id, {"is_active": False})

    async def bulk_action(
        self,
        action: BulkServiceAction,
        ids: list[str],
        admin_id: Optional[str] = None,
    ) -> BulkResult:
        operations = {
            BulkServiceAction.ACTIVATE: self.activate,
            BulkServiceAction.DEACTIVATE: self.deactivate,
            BulkServiceAction.DELETE: self.delete_service,
        }
        result = await run_bulk(ids, operations[action])
        await self.audit.log_bulk_action(f"{action.value}_services", ids, len(result.failed), admin_id)
        return result

    async def providers_for_service(self, service_id: str) -> list[dict[str, Any]]:
        """Provider profile(s) offering a service."""
        service = await self.get_service(service_id)
        if not service.get("provider_id"):
            return []
        result = await self.provider.get_one(PROFILES, service["provider_id"])
        return [result.data] if result.success else []

    # ----------------------------------------------------------------- providers

    async def list_providers(
        self,
        filters: Optional[ProviderFilters] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> ListResult:
        filters = filters or ProviderFilters()
        db_filters: dict[str, Any] = {"role": UserRole.SERVICE_PROVIDER.value}
        if filters.status == "verified":
            db_filters["profile_validated"] = True
        elif filters.status == "pending":
            db_filters["profile_validated"] = False
        params = ListParams(
            page=page,
            per_page=per_page,
            sort_field="created_at",
            filters=db_filters,
            search=filters.search,
            search_fields=PROVIDER_SEARCH_FIELDS,
        )
        return (await self.provider.get_list(PROFILES, params)).unwrap()

    async def get_provider(self, provider_id: str) -> dict[str, Any]:
        profile = (await self.provider.get_one(PROFILES, provider_id)).unwrap()
        services = (
            await self.provider.get_all(SERVICES, filters={"provider_id": provider_id})
        ).unwrap()
        return {**profile, "services": services}

    async def provider_stats(self) -> ProviderStats:
        providers = (
            await self.provider.get_all(PROFILES, filters={"role": UserRole.SERVICE_PROVIDER.value})
        ).unwrap()
        services = (await self.provider.get_all(SERVICES, select="id, provider_id")).unwrap()
        return provider_stats(providers, services)

    async def verify_provider(self, provider_id: str) -> dict[str, Any]:
        return (
            await self.provider.update(PROFILES, provider_id, {"profile_validated": True})
        ).unwrap()

    async def reject_provider(self, provider_id: str) -> dict[str, Any]:
        return (
            await self.provider.update(PROFILES, provider_id, {"profile_validated": False})
        ).unwrap()

    async def suspend_provider(self, provider_id: str) -> dict[str, Any]:
        return await self.reject_provider(provider_id)

    async def bulk_verify(self, ids: list[str], admin_id: Optional[str] = None) -> BulkResult:
        result = await run_bulk(ids, self.verify_provider)
        await self.audit.log_bulk_action("verify_providers", ids, len(result.failed), admin_id)
        return result
