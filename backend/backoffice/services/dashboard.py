"""
Dashboard statistics, activity feed and charts.

The activity feed lists what currently needs an administrator: items waiting
for moderation, payment problems, reports and locked accounts.
"""

import asyncio
import calendar
import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from backoffice.core.dates import isoformat, month_start, parse_timestamp, shift_months, utcnow
from backoffice.models.enums import PaymentStatus, Resource, ServiceRequestStatus, UserRole
from backoffice.schemas.common import IS_NULL, NOT_NULL
from backoffice.schemas.dashboard import ChartData, ChartPoint, DashboardStats, RecentActivity
from backoffice.services.data_provider import DataProvider
from backoffice.services.financial import calculate_revenue
from backoffice.services.payments import PAID_STATUSES

logger = logging.getLogger(__name__)

ACTIVITY_LIMIT = 10
CHART_MONTHS = 6

ROLE_LABELS = {
    UserRole.PROPERTY_OWNER.value: "property owner",
    UserRole.TRAVELER.value: "traveler",
    UserRole.ADMIN.value: "administrator",
}


def _name(profile: dict[str, Any]) -> str:
    return profile.get("full_name") or profile.get("email") or "Unknown user"


def _property_activity(row: dict[str, Any], now: datetime) -> RecentActivity:
    return RecentActivity(
        id=str(row["id"]),
        type="property",
        status="pending",
        title="New property to validate",
        description=f"{row.get('title') or 'Untitled'} in {row.get('city') or 'unknown city'}",
        action_label="Review property",
        timestamp=row.get("created_at"),
    )


def _provider_activity(row: dict[str, Any], now: datetime) -> RecentActivity:
    return RecentActivity(
        id=str(row["id"]),
        type="provider",
        status="pending",
        title="Provider awaiting validation",
        description=f"{_name(row)} applied as a service provider",
        action_label="Review provider",
        timestamp=row.get("created_at"),
    )


def _service_activity(row: dict[str, Any], now: datetime) -> RecentActivity:
    cancelled = row.get("status") == ServiceRequestStatus.CANCELLED.value
    return RecentActivity(
        id=str(row["id"]),
        type="service",
        status="cancelled" if cancelled else "pending",
        title="Service request cancelled" if cancelled else "Service request disputed",
        description=row.get("cancellation_reason") or "A service request needs attention",
        action_label="View request" if cancelled else "Resolve dispute",
        timestamp=row.get("updated_at") or row.get("created_at"),
    )


def _payment_activity(row: dict[str, Any], now: datetime) -> RecentActivity:
    return RecentActivity(
        id=str(row["id"]),
        type="payment",
        status="pending",
        title="Payment pending",
        description=f"Payment of {row.get('amount')} € awaiting confirmation",
        action_label="Check payment",
        timestamp=row.get("created_at"),
    )


def _chat_report_activity(row: dict[str, Any], now: datetime) -> RecentActivity:
    return RecentActivity(
        id=str(row["id"]),
        type="chat_report",
        status="review_required",
        title="Chat message reported",
        description=f"Reason: {row.get('reason') or 'not specified'}",
        action_label="Review report",
        timestamp=row.get("created_at"),
    )


def _failed_payment_activity(row: dict[str, Any], now: datetime) -> RecentActivity:
    return RecentActivity(
        id=str(row["id"]),
        type="failed_payment",
        status="failed",
        title="Payment failed",
        description=row.get("failure_reason") or "Payment failed without a reason",
        action_label="Investigate",
        timestamp=row.get("created_at"),
    )


def _overdue_payment_activity(row: dict[str, Any], now: datetime) -> RecentActivity:
    created = parse_timestamp(row.get("created_at"))
    days = (now - created).days if created else 0
    return RecentActivity(
        id=str(row["id"]),
        type="overdue_payment",
        status="review_required",
        title="Payment overdue",
        description=f"Payment of {row.get('amount')} € pending for {days} day(s)",
        action_label="Follow up",
        timestamp=row.get("created_at"),
    )


def _refund_activity(row: dict[str, Any], now: datetime) -> RecentActivity:
    return RecentActivity(
        id=str(row["id"]),
        type="pending_refund",
        status="pending",
        title="Refund pending",
        description=f"Refund of {row.get('refund_amount')} € to process",
        action_label="Process refund",
        timestamp=row.get("created_at"),
    )


def _pending_user_activity(row: dict[str, Any], now: datetime) -> RecentActivity:
    role = ROLE_LABELS.get(row.get("role"), "user")
    return RecentActivity(
        id=str(row["id"]),
        type="pending_user",
        status="pending",
        title=f"New {role} registration",
        description=f"{_name(row)} registered as {role}",
        action_label="Validate account",
        timestamp=row.get("created_at"),
    )


def _locked_account_activity(row: dict[str, Any], now: datetime) -> RecentActivity:
    return RecentActivity(
        id=str(row["id"]),
        type="locked_account",
        status="review_required",
        title="Account locked",
        description=f"{_name(row)}: {row.get('lock_reason')}",
        action_label="Review account",
        timestamp=row.get("updated_at") or row.get("created_at"),
    )


class ActivitySource:
    """One query feeding the activity feed."""

    def __init__(
        self,
        name: str,
        resource: Resource,
        filters: dict[str, Any],
        build: Callable[[dict[str, Any], datetime], RecentActivity],
        limit: int,
        order_by: str = "created_at",
    ):
        self.name = name
        self.resource = resource
        self.filters = filters
        self.build = build
        self.limit = limit
        self.order_by = order_by


def activity_sources(now: datetime) -> list[ActivitySource]:
    overdue_before = isoformat(now - timedelta(hours=24))
    return [
        ActivitySource(
            "pending properties", Resource.PROPERTIES,
            {"validated_at": IS_NULL}, _property_activity, 5,
        ),
        ActivitySource(
            "pending providers", Resource.PROFILES,
            {
                "role": UserRole.SERVICE_PROVIDER.value,
                "profile_validated": False,
                "deleted_at": IS_NULL,
            },
            _provider_activity, 5,
        ),
        ActivitySource(
            "disputed services", Resource.SERVICE_REQUESTS,
            {"status": [ServiceRequestStatus.CANCELLED.value, ServiceRequestStatus.DISPUTED.value]},
            _service_activity, 3, order_by="updated_at",
        ),
        ActivitySource(
            "pending payments", Resource.PAYMENTS,
            {"status": [PaymentStatus.PENDING.value, PaymentStatus.PROCESSING.value]},
            _payment_activity, 3,
        ),
        ActivitySource(
            "chat reports", Resource.CHAT_REPORTS,
            {"status": "pending"}, _chat_report_activity, 3,
        ),
        ActivitySource(
            "failed payments", Resource.PAYMENTS,
            {"status": PaymentStatus.FAILED.value, "failure_reason": NOT_NULL},
            _failed_payment_activity, 2,
        ),
        ActivitySource(
            "overdue payments", Resource.PAYMENTS,
            {
                "status": PaymentStatus.PENDING.value,
                "processed_at": IS_NULL,
                "created_at__lt": overdue_before,
            },
            _overdue_payment_activity, 3,
        ),
        ActivitySource(
            "pending refunds", Resource.PAYMENTS,
            {"refund_status": ["pending", "processing"], "refund_amount": NOT_NULL},
            _refund_activity, 3,
        ),
        ActivitySource(
            "pending users", Resource.PROFILES,
            {
                "profile_validated": False,
                "role__neq": UserRole.SERVICE_PROVIDER.value,
                "deleted_at": IS_NULL,
            },
            _pending_user_activity, 5,
        ),
        ActivitySource(
            "locked accounts", Resource.PROFILES,
            {"account_locked": True, "lock_reason": NOT_NULL, "deleted_at": IS_NULL},
            _locked_account_activity, 3, order_by="updated_at",
        ),
    ]


def _sort_key(activity: RecentActivity) -> float:
    ts = parse_timestamp(activity.timestamp)
    return ts.timestamp() if ts else 0.0


def _month_points(starts: list[datetime], values: dict[str, float]) -> list[ChartPoint]:
    return [
        ChartPoint(
            month=start.strftime("%Y-%m"),
            label=calendar.month_abbr[start.month],
            value=round(values.get(start.strftime("%Y-%m"), 0.0), 2),
        )
        for start in starts
    ]


class DashboardService:
    def __init__(self, provider: DataProvider):
        self.provider = provider

    async def fetch_stats(self, now: Optional[datetime] = None) -> DashboardStats:
        now = now or utcnow()
        pending, moderation, active, payments = await asyncio.gather(
            self.provider.count(Resource.PROPERTIES.value, {"validated_at": IS_NULL}),
            self.provider.count(
                Resource.PROFILES.value,
                {
                    "role": UserRole.SERVICE_PROVIDER.value,
                    "profile_validated": False,
                    "deleted_at": IS_NULL,
                },
            ),
            self.provider.count(
                Resource.PROFILES.value,
                {
                    "profile_validated": True,
                    "account_locked": False,
                    "deleted_at": IS_NULL,
                    "role__neq": UserRole.ADMIN.value,
                },
            ),
            self.provider.get_all(
                Resource.PAYMENTS.value,
                filters={
                    "status": sorted(PAID_STATUSES),
                    "created_at__gte": isoformat(month_start(now)),
                },
                select="amount, payment_type, status",
            ),
        )
        revenue = sum(
            calculate_revenue(float(p.get("amount") or 0), p.get("payment_type") or "other")
            for p in payments.unwrap()
        )
        return DashboardStats(
            pending_validations=pending.unwrap() or 0,
            moderation_cases=moderation.unwrap() or 0,
            active_users=active.unwrap() or 0,
            monthly_revenue=round(revenue, 2),
        )

    async def _activities_from(self, source: ActivitySource, now: datetime) -> list[RecentActivity]:
        result = await self.provider.get_all(
            source.resource.value,
            filters=source.filters,
            order_by=source.order_by,
            limit=source.limit,
        )
        if not result.success:
            logger.warning(f"[DASHBOARD] Skipping {source.name}: {result.error}")
            return []
        return [source.build(row, now) for row in result.data]

    async def fetch_recent_activities(self, now: Optional[datetime] = None) -> list[RecentActivity]:
        now = now or utcnow()
        batches = await asyncio.gather(
            *(self._activities_from(source, now) for source in activity_sources(now))
        )
        activities = [activity for batch in batches for activity in batch]
        activities.sort(key=_sort_key, reverse=True)
        return activities[:ACTIVITY_LIMIT]

    async def fetch_chart_data(self, now: Optional[datetime] = None) -> ChartData:
        now = now or utcnow()
        starts = [shift_months(now, offset) for offset in range(-(CHART_MONTHS - 1), 1)]
        window = {"created_at__gte": isoformat(starts[0]), "created_at__lte": isoformat(now)}

        payments, users = await asyncio.gather(
            self.provider.get_all(
                Resource.PAYMENTS.value,
                filters={"status": sorted(PAID_STATUSES), **window},
                select="amount, payment_type, created_at, status",
            ),
            self.provider.get_all(
                Resource.PROFILES.value,
                filters={"profile_validated": True, **window},
                select="created_at",
            ),
        )

        revenue: dict[str, float] = defaultdict(float)
        for payment in payments.unwrap():
            created = parse_timestamp(payment.get("created_at"))
            if created:
                revenue[created.strftime("%Y-%m")] += calculate_revenue(
                    float(payment.get("amount") or 0), payment.get("payment_type") or "other"
                )

        signups: dict[str, float] = defaultdict(float)
        for user in users.unwrap():
            created = parse_timestamp(user.get("created_at"))
            if created:
                signups[created.strftime("%Y-%m")] += 1

        return ChartData(
            revenue=_month_points(starts, revenue),
            user_growth=_month_points(starts, signups),
        )
