"""
Generic data provider over Supabase PostgREST tables.

Every call returns a ProviderResult envelope and never raises for a remote
failure; callers check `success` or `unwrap()` it. Reads are cached in the
QueryCache, writes drop the resource's cached entries.
"""

import copy
import logging
from enum import Enum
from typing import Any, Optional

from supabase import AsyncClient

from backoffice.core.dates import isoformat, utcnow
from backoffice.core.supabase import get_supabase_client, runtime_error_from_exception
from backoffice.schemas.common import (
    IS_NULL,
    NOT_NULL,
    ListMeta,
    ListParams,
    ListResult,
    ProviderResult,
    SelectOption,
)
from backoffice.services.query_cache import QueryCache, freeze, get_query_cache

logger = logging.getLogger(__name__)

NOT_FOUND = "not_found"

EXACT_FIELDS = {
    "role", "status", "validation_status", "payment_type", "payment_status", "id", "action",
}

RANGE_OPERATORS = ("gte", "lte", "gt", "lt", "neq")

# relation field -> related table, per resource
RELATIONSHIPS: dict[str, dict[str, str]] = {
    "properties": {"owner_id": "profiles", "validated_by": "profiles"},
    "bookings": {"traveler_id": "profiles", "property_id": "properties"},
    "service_requests": {
        "requester_id": "profiles",
        "property_id": "properties",
        "service_id": "services",
    },
    "services": {"provider_id": "profiles"},
    "payments": {"payer_id": "profiles", "payee_id": "profiles"},
    "interventions": {"provider_id": "profiles", "service_request_id": "service_requests"},
    "reviews": {"reviewer_id": "profiles", "reviewee_id": "profiles"},
    "notifications": {"user_id": "profiles"},
    "subscriptions": {"user_id": "profiles"},
}

OPTIONS_LIMIT = 100


def is_exact_field(field: str) -> bool:
    return field in EXACT_FIELDS or field.endswith("_id")


def option_label(row: dict[str, Any]) -> str:
    for key in ("email", "full_name", "title", "name"):
        if row.get(key):
            return str(row[key])
    return f"ID: {row.get('id')}"


def apply_filters(query: Any, filters: Optional[dict[str, Any]]) -> Any:
    """Translate a filter dict into PostgREST builder calls.

    `field__gte` style keys map to range operators; everything else follows
    the value type (see EXACT_FIELDS for strings compared with eq).
    """
    for key, value in (filters or {}).items():
        if value is None or value == "":
            continue
        if isinstance(value, Enum):
            value = value.value

        field, _, op = key.partition("__")
        if op:
            if op not in RANGE_OPERATORS:
                raise ValueError(f"Unsupported filter operator: {op}")
            query = getattr(query, op)(field, value)
        elif value == IS_NULL:
            query = query.is_(field, "null")
        elif value == NOT_NULL:
            query = query.not_.is_(field, "null")
        elif isinstance(value, (list, tuple, set)):
            query = query.in_(field, [v.value if isinstance(v, Enum) else v for v in value])
        elif isinstance(value, str) and not is_exact_field(field):
            query = query.ilike(field, f"%{value}%")
        else:
            query = query.eq(field, value)
    return query


def search_clause(search: str, fields: list[str]) -> str:
    """PostgREST `or` expression matching `search` in any of `fields`."""
    term = search.replace(",", " ").strip()
    return ",".join(f"{field}.ilike.%{term}%" for field in fields)


class DataProvider:
    """Uniform CRUD over table names."""

    def __init__(self, client: AsyncClient, cache: Optional[QueryCache] = None):
        self.client = client
        self.cache = cache if cache is not None else get_query_cache()

    # ------------------------------------------------------------------ helpers

    def _failure(self, operation: str, resource: str, exc: Exception) -> ProviderResult:
        message = str(runtime_error_from_exception(exc))
        logger.warning(f"[DATA] {operation} {resource} failed: {message}")
        return ProviderResult.fail(message, getattr(exc, "code", None))

    def _cached(self, key: tuple) -> Optional[ProviderResult]:
        hit = self.cache.get(key)
        if hit is None:
            return None
        data, count = hit
        return ProviderResult.ok(copy.deepcopy(data), count)

    def _store(self, key: tuple, data: Any, count: Optional[int] = None) -> None:
        self.cache.set(key, (copy.deepcopy(data), count))

    def invalidate(self, resource: str) -> None:
        self.cache.invalidate((resource,))

    # -------------------------------------------------------------------- reads

    async def get_list(self, resource: str, params: Optional[ListParams] = None) -> ProviderResult:
        """Paginated, filtered, sorted list with an exact total count."""
        params = params or ListParams()
        key = (resource, "list", freeze(params))
        cached = self._cached(key)
        if cached is not None:
            return cached

        start = (params.page - 1) * params.per_page
        try:
            query = self.client.table(resource).select(params.select, count="exact")
            query = apply_filters(query, params.filters)
            if params.search and params.search_fields:
                query = query.or_(search_clause(params.search, params.search_fields))
            if params.sort_field:
                query = query.order(params.sort_field, desc=params.sort_order == "DESC")
            response = await query.range(start, start + params.per_page - 1).execute()
        except Exception as e:
            return self._failure("get_list", resource, e)

        items = response.data or []
        total = response.count if response.count is not None else len(items)
        result = ListResult(
            items=items,
            meta=ListMeta.build(params.page, params.per_page, total),
        )
        self._store(key, result, total)
        return ProviderResult.ok(result, total)

    async def get_all(
        self,
        resource: str,
        filters: Optional[dict[str, Any]] = None,
        select: str = "*",
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> ProviderResult:
        """Unpaginated fetch, used for aggregation and exports."""
        key = (resource, "all", freeze(filters or {}), select, order_by, descending, limit)
        cached = self._cached(key)
        if cached is not None:
            return cached

        try:
            query = apply_filters(self.client.table(resource).select(select), filters)
            if order_by:
                query = query.order(order_by, desc=descending)
            if limit:
                query = query.limit(limit)
            response = await query.execute()
        except Exception as e:
            return self._failure("get_all", resource, e)

        rows = response.data or []
        self._store(key, rows, len(rows))
        return ProviderResult.ok(rows, len(rows))

    async def count(self, resource: str, filters: Optional[dict[str, Any]] = None) -> ProviderResult:
        """Exact row count for the filters."""
        key = (resource, "count", freeze(filters or {}))
        cached = self._cached(key)
        if cached is not None:
            return cached

        try:
            query = self.client.table(resource).select("id", count="exact")
            response = await apply_filters(query, filters).execute()
        except Exception as e:
            return self._failure("count", resource, e)

        total = response.count if response.count is not None else len(response.data or [])
        self._store(key, total, total)
        return ProviderResult.ok(total, total)

    async def get_one(self, resource: str, id: str, select: str = "*") -> ProviderResult:
        key = (resource, "one", str(id), select)
        cached = self._cached(key)
        if cached is not None:
            return cached

        try:
            response = await (
                self.client.table(resource).select(select).eq("id", str(id)).limit(1).execute()
            )
        except Exception as e:
            return self._failure("get_one", resource, e)

        if not response.data:
            return ProviderResult.fail(f"{resource} {id} not found", NOT_FOUND)
        row = response.data[0]
        self._store(key, row)
        return ProviderResult.ok(row)

    async def get_form_options(self, resource: str) -> ProviderResult:
        """Select options for each relation field of `resource`."""
        key = (resource, "options")
        cached = self._cached(key)
        if cached is not None:
            return cached

        options: dict[str, list[SelectOption]] = {}
        for field, table in RELATIONSHIPS.get(resource, {}).items():
            try:
                response = await self.client.table(table).select("*").limit(OPTIONS_LIMIT).execute()
            except Exception as e:
                logger.warning(
                    f"[DATA] Failed to load related data for {table}: "
                    f"{runtime_error_from_exception(e)}"
                )
                continue
            options[field] = [
                SelectOption(label=option_label(row), value=row.get("id"))
                for row in response.data or []
            ]

        self._store(key, options)
        return ProviderResult.ok(options)

    async def rpc(self, name: str, params: Optional[dict[str, Any]] = None) -> ProviderResult:
        try:
            response = await self.client.rpc(name, params or {}).execute()
        except Exception as e:
            return self._failure("rpc", name, e)
        return ProviderResult.ok(response.data)

    # ------------------------------------------------------------------- writes

    async def create(self, resource: str, data: dict[str, Any]) -> ProviderResult:
        try:
            response = await self.client.table(resource).insert(data).execute()
        except Exception as e:
            return self._failure("create", resource, e)
        finally:
            self.invalidate(resource)

        rows = response.data or []
        return ProviderResult.ok(rows[0] if rows else None)

    async def update(self, resource: str, id: str, data: dict[str, Any]) -> ProviderResult:
        """Update one row by id, stamping updated_at unless the caller set it.

        The cached row is patched first and restored if the write fails.
        """
        payload = dict(data)
        payload.setdefault("updated_at", isoformat(utcnow()))
        try:
            # readers see the patched row while the write is in flight
            with self.cache.optimistic(
                (resource, "one", str(id), "*"),
                lambda hit: ({**hit[0], **payload}, hit[1]),
            ):
                response = await (
                    self.client.table(resource).update(payload).eq("id", str(id)).execute()
                )
        except Exception as e:
            return self._failure("update", resource, e)
        self.invalidate(resource)

        if not response.data:
            return ProviderResult.fail(f"{resource} {id} not found", NOT_FOUND)
        return ProviderResult.ok(response.data[0])

    async def update_where(
        self, resource: str, match: dict[str, Any], data: dict[str, Any]
    ) -> ProviderResult:
        """Update every row matching `match` (eq on each key)."""
        try:
            query = self.client.table(resource).update(data)
            for field, value in match.items():
                query = query.eq(field, value)
            response = await query.execute()
        except Exception as e:
            return self._failure("update_where", resource, e)
        finally:
            self.invalidate(resource)

        rows = response.data or []
        return ProviderResult.ok(rows, len(rows))

    async def delete(self, resource: str, id: str) -> ProviderResult:
        try:
            response = await self.client.table(resource).delete().eq("id", str(id)).execute()
        except Exception as e:
            return self._failure("delete", resource, e)
        finally:
            self.invalidate(resource)

        if not response.data:
            return ProviderResult.fail(f"{resource} {id} not found", NOT_FOUND)
        return ProviderResult.ok(response.data[0])

    async def delete_many(self, resource: str, ids: list[str]) -> ProviderResult:
        if not ids:
            return ProviderResult.ok([], 0)
        try:
            response = await (
                self.client.table(resource).delete().in_("id", [str(i) for i in ids]).execute()
            )
        except Exception as e:
            return self._failure("delete_many", resource, e)
        finally:
            self.invalidate(resource)

        rows = response.data or []
        return ProviderResult.ok(rows, len(rows))

    async def delete_where(self, resource: str, match: dict[str, Any]) -> ProviderResult:
        try:
            query = self.client.table(resource).delete()
            for field, value in match.items():
                query = query.eq(field, value)
            response = await query.execute()
        except Exception as e:
            return self._failure("delete_where", resource, e)
        finally:
            self.invalidate(resource)

        rows = response.data or []
        return ProviderResult.ok(rows, len(rows))


async def get_data_provider() -> DataProvider:
    """FastAPI dependency: provider bound to the shared client and cache."""
    client = await get_supabase_client()
    return DataProvider(client, get_query_cache())
