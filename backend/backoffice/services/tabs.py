"""Tab definitions and per-tab counts for the admin list pages."""

from typing import Any, Callable

from backoffice.models.enums import ServiceRequestStatus, UserRole
from backoffice.schemas.common import TabConfig, TabCount

TAB_CONFIGS: dict[str, list[TabConfig]] = {
    "users": [
        TabConfig(key="all", label="All users", description="Every active account except administrators"),
        TabConfig(key=UserRole.TRAVELER.value, label="Travelers", description="Guests booking stays"),
        TabConfig(key=UserRole.PROPERTY_OWNER.value, label="Owners", description="Property owners"),
        TabConfig(key=UserRole.SERVICE_PROVIDER.value, label="Providers", description="Service providers"),
        TabConfig(key=UserRole.ADMIN.value, label="Administrators", description="Back-office staff"),
        TabConfig(key="deleted", label="Deleted", color="error", description="Deleted or anonymized accounts"),
    ],
    "properties": [
        TabConfig(key="all", label="All properties", description="Every listing"),
        TabConfig(key="pending", label="Pending", color="warning", description="Waiting for moderation"),
        TabConfig(key="approved", label="Approved", color="success", description="Published listings"),
        TabConfig(key="rejected", label="Rejected", color="error", description="Refused listings"),
    ],
    "payments": [
        TabConfig(key="all", label="All payments", description="Every payment"),
        TabConfig(key="pending", label="Pending", color="warning", description="Payments awaiting confirmation"),
        TabConfig(key="paid", label="Paid", color="success", description="Completed payments"),
        TabConfig(key="succeeded", label="Succeeded", color="success", description="Payments confirmed by the processor"),
        TabConfig(key="refunded", label="Refunded", color="info", description="Refunded payments"),
        TabConfig(key="failed", label="Failed", color="error", description="Failed payments"),
    ],
    "services": [
        TabConfig(key="all", label="All services", description="The whole catalog"),
        TabConfig(key="active", label="Active", color="success", description="Services open for booking"),
        TabConfig(key="inactive", label="Inactive", color="default", description="Services hidden from clients"),
    ],
    "providers": [
        TabConfig(key="all", label="All providers", description="Every service provider"),
        TabConfig(key="verified", label="Verified", color="success", description="Validated providers"),
        TabConfig(key="pending", label="Pending", color="warning", description="Providers awaiting verification"),
    ],
    "service_requests": [
        TabConfig(key="all", label="All requests", description="Every service request"),
    ] + [
        TabConfig(key=s.value, label=s.value.replace("_", " ").capitalize())
        for s in ServiceRequestStatus
    ],
}


def _user_matches(key: str, row: dict[str, Any]) -> bool:
    deleted = bool(row.get("deleted_at"))
    if key == "deleted":
        return deleted
    if key == "all":
        return not deleted and row.get("role") != UserRole.ADMIN.value
    return not deleted and row.get("role") == key


MATCHERS: dict[str, Callable[[str, dict[str, Any]], bool]] = {
    "users": _user_matches,
    "properties": lambda key, row: row.get("validation_status") == key,
    "payments": lambda key, row: row.get("status") == key,
    "services": lambda key, row: bool(row.get("is_active")) == (key == "active"),
    "providers": lambda key, row: bool(row.get("profile_validated")) == (key == "verified"),
    "service_requests": lambda key, row: row.get("status") == key,
}


def tab_configs(area: str) -> list[TabConfig]:
    if area not in TAB_CONFIGS:
        raise ValueError(f"Unknown tab area: {area}")
    return TAB_CONFIGS[area]


def count_for_tab(area: str, key: str, rows: list[dict[str, Any]]) -> int:
    if area not in MATCHERS:
        raise ValueError(f"Unknown tab area: {area}")
    if key == "all" and area != "users":
        return len(rows)
    matches = MATCHERS[area]
    return sum(1 for row in rows if matches(key, row))


def tab_counts(area: str, rows: list[dict[str, Any]]) -> list[TabCount]:
    return [
        TabCount(**tab.model_dump(), count=count_for_tab(area, tab.key, rows))
        for tab in tab_configs(area)
    ]
