"""
Financial overview calculations.

Revenue rules:
- bookings earn the platform commission (commission_rate of the amount)
- subscriptions and services are kept whole
- providers are paid provider_payout_rate of completed service requests

The calculation functions are pure and take already-loaded rows;
FinancialService loads those rows through the data provider.
"""

import asyncio
import calendar
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from backoffice.core.config import get_settings
from backoffice.core.dates import parse_timestamp, shift_months, utcnow
from backoffice.models.enums import PaymentType, Resource, UserRole
from backoffice.schemas.financial import (
    FinancialOverview,
    FinancialTransaction,
    MonthlyFinancialData,
    OwnerFinancialReport,
    RevenueByCategory,
)
from backoffice.services.data_provider import DataProvider
from backoffice.services.payments import PAID_STATUSES

logger = logging.getLogger(__name__)

TRANSACTION_TYPES = {
    PaymentType.BOOKING.value: "revenue",
    PaymentType.PROVIDER_PAYMENT.value: "expense",
    PaymentType.SUBSCRIPTION.value: "subscription",
    PaymentType.COMMISSION.value: "commission",
}

TRANSACTION_STATUSES = {
    "succeeded": "completed",
    "paid": "completed",
    "pending": "pending",
    "processing": "pending",
    "failed": "failed",
    "cancelled": "cancelled",
    "refunded": "cancelled",
}

MONTHS = 6


def _amount(row: dict[str, Any], key: str = "amount") -> float:
    return float(row.get(key) or 0)


def _created_between(row: dict[str, Any], start: datetime, end: Optional[datetime] = None) -> bool:
    created = parse_timestamp(row.get("created_at"))
    if created is None or created < start:
        return False
    return end is None or created < end


def calculate_revenue(amount: float, payment_type: Optional[str]) -> float:
    """Platform revenue for one payment."""
    rate = get_settings().commission_rate
    if payment_type in (PaymentType.SUBSCRIPTION.value, PaymentType.SERVICE.value):
        return amount
    return amount * rate


def growth_rate(current: float, previous: float) -> float:
    if previous == 0:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def _paid_bookings(bookings: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    return [b for b in bookings if b.get("payment_status") == "paid"]


def _active_subscriptions(subscriptions: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    return [s for s in subscriptions if s.get("status") == "active"]


def _completed_requests(service_requests: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    return [r for r in service_requests if r.get("status") == "completed"]


def _settled_payments(payments: Iterable[dict[str, Any]], *types: str) -> list[dict[str, Any]]:
    return [
        p for p in payments
        if p.get("status") in PAID_STATUSES and p.get("payment_type") in types
    ]


def _totals(
    payments: list[dict[str, Any]],
    bookings: list[dict[str, Any]],
    subscriptions: list[dict[str, Any]],
    service_requests: list[dict[str, Any]],
) -> tuple[float, float]:
    """(revenue, expenses) for the given rows."""
    payout_rate = get_settings().provider_payout_rate
    booking_revenue = sum(_amount(b, "commission_amount") for b in _paid_bookings(bookings))
    subscription_revenue = sum(_amount(s) for s in _active_subscriptions(subscriptions))
    service_revenue = sum(_amount(r, "total_amount") for r in _completed_requests(service_requests))

    expenses = service_revenue * payout_rate + sum(
        _amount(p)
        for p in _settled_payments(
            payments, PaymentType.REFUND.value, PaymentType.PROVIDER_PAYMENT.value
        )
    )
    return booking_revenue + subscription_revenue + service_revenue, expenses


def calculate_financial_overview(
    payments: list[dict[str, Any]],
    bookings: list[dict[str, Any]],
    subscriptions: list[dict[str, Any]],
    service_requests: list[dict[str, Any]],
    now: Optional[datetime] = None,
) -> FinancialOverview:
    now = now or utcnow()
    revenue, expenses = _totals(payments, bookings, subscriptions, service_requests)

    current_start = shift_months(now, 0)
    previous_start = shift_months(now, -1)

    def window(start: datetime, end: Optional[datetime]):
        rows = [
            [r for r in group if _created_between(r, start, end)]
            for group in (payments, bookings, subscriptions, service_requests)
        ]
        month_revenue, month_expenses = _totals(*rows)
        return month_revenue, month_expenses, len(_active_subscriptions(rows[2]))

    cur_revenue, cur_expenses, cur_subs = window(current_start, None)
    prev_revenue, prev_expenses, prev_subs = window(previous_start, current_start)

    return FinancialOverview(
        total_revenue=round(revenue, 2),
        total_expenses=round(expenses, 2),
        net_profit=round(revenue - expenses, 2),
        active_subscriptions=len(_active_subscriptions(subscriptions)),
        revenue_growth=growth_rate(cur_revenue, prev_revenue),
        expenses_growth=growth_rate(cur_expenses, prev_expenses),
        profit_growth=growth_rate(cur_revenue - cur_expenses, prev_revenue - prev_expenses),
        subscriptions_growth=growth_rate(cur_subs, prev_subs),
    )


def calculate_monthly_data(
    bookings: list[dict[str, Any]],
    service_requests: list[dict[str, Any]],
    subscriptions: list[dict[str, Any]],
    payments: list[dict[str, Any]],
    now: Optional[datetime] = None,
) -> list[MonthlyFinancialData]:
    """Revenue, expenses and profit for each of the last six months, oldest first."""
    now = now or utcnow()
    payout_rate = get_settings().provider_payout_rate
    starts = [shift_months(now, offset) for offset in range(-(MONTHS - 1), 1)]
    months = {
        start.strftime("%Y-%m"): MonthlyFinancialData(
            month=start.strftime("%Y-%m"),
            label=f"{calendar.month_abbr[start.month]} {start.year}",
        )
        for start in starts
    }

    def add(row: dict[str, Any], revenue: float = 0.0, expenses: float = 0.0) -> None:
        created = parse_timestamp(row.get("created_at"))
        month = months.get(created.strftime("%Y-%m")) if created else None
        if month is None:
            return
        month.revenue += revenue
        month.expenses += expenses

    for booking in _paid_bookings(bookings):
        add(booking, revenue=_amount(booking, "commission_amount"))
    for request in _completed_requests(service_requests):
        amount = _amount(request, "total_amount")
        add(request, revenue=amount, expenses=amount * payout_rate)
    for subscription in _active_subscriptions(subscriptions):
        add(subscription, revenue=_amount(subscription))
    for payment in _settled_payments(
        payments, PaymentType.REFUND.value, PaymentType.PROVIDER_PAYMENT.value
    ):
        add(payment, expenses=_amount(payment))

    result = []
    for month in months.values():
        month.revenue = round(month.revenue, 2)
        month.expenses = round(month.expenses, 2)
        month.profit = round(month.revenue - month.expenses, 2)
        result.append(month)
    return result


def calculate_revenue_by_category(
    bookings: list[dict[str, Any]],
    subscriptions: list[dict[str, Any]],
    service_requests: list[dict[str, Any]],
) -> list[RevenueByCategory]:
    completed = _completed_requests(service_requests)

    def is_vip(request: dict[str, Any]) -> bool:
        return bool((request.get("service") or {}).get("is_vip_only"))

    amounts = {
        "Locations": sum(_amount(b, "commission_amount") for b in _paid_bookings(bookings)),
        "Subscriptions": sum(_amount(s) for s in _active_subscriptions(subscriptions)),
        "VIP services": sum(_amount(r, "total_amount") for r in completed if is_vip(r)),
        "Services": sum(_amount(r, "total_amount") for r in completed if not is_vip(r)),
    }
    total = sum(amounts.values())
    return [
        RevenueByCategory(
            category=category,
            amount=round(amount, 2),
            percentage=round(amount / total * 100) if total > 0 else 0,
        )
        for category, amount in amounts.items()
    ]


def _short(value: Optional[str]) -> str:
    return str(value)[:8]


def describe_payment(payment: dict[str, Any]) -> str:
    payment_type = payment.get("payment_type")
    booking_id = payment.get("booking_id")
    if payment_type == PaymentType.BOOKING.value:
        return f"Booking payment {_short(booking_id)}" if booking_id else "Booking payment"
    if payment_type == PaymentType.PROVIDER_PAYMENT.value:
        return "Provider payment"
    if payment_type == PaymentType.SUBSCRIPTION.value:
        return "Annual subscription"
    if payment_type == PaymentType.COMMISSION.value:
        return "Platform commission"
    if payment_type == PaymentType.REFUND.value:
        return f"Refund {_short(booking_id)}" if booking_id else "Refund"
    request_id = payment.get("service_request_id")
    return f"Service transaction {_short(request_id)}" if request_id else "Transaction"


def recent_transactions(payments: list[dict[str, Any]], limit: int = 50) -> list[FinancialTransaction]:
    def created(payment: dict[str, Any]) -> datetime:
        return parse_timestamp(payment.get("created_at")) or datetime.min.replace(tzinfo=timezone.utc)

    ordered = sorted(payments, key=created, reverse=True)[:limit]
    transactions = []
    for payment in ordered:
        payer = payment.get("payer") or {}
        transactions.append(
            FinancialTransaction(
                id=str(payment.get("id")),
                type=TRANSACTION_TYPES.get(payment.get("payment_type"), "revenue"),
                user_id=payment.get("payer_id"),
                user_name=payer.get("full_name") or payer.get("email") or "Unknown user",
                amount=_amount(payment),
                status=TRANSACTION_STATUSES.get(payment.get("status"), "pending"),
                payment_method="card" if payment.get("stripe_payment_intent_id") else "bank_transfer",
                created_at=payment.get("created_at"),
                description=describe_payment(payment),
            )
        )
    return transactions


def calculate_owners_report(
    profiles: list[dict[str, Any]],
    properties: list[dict[str, Any]],
    bookings: list[dict[str, Any]],
) -> list[OwnerFinancialReport]:
    subscription_fee = get_settings().subscription_fee
    owners = [
        p for p in profiles
        if p.get("role") == UserRole.PROPERTY_OWNER.value and not p.get("anonymized_at")
    ]
    paid = _paid_bookings(bookings)

    reports = []
    for owner in owners:
        property_ids = {p["id"] for p in properties if p.get("owner_id") == owner["id"]}
        if not property_ids:
            continue
        owner_bookings = [b for b in paid if b.get("property_id") in property_ids]
        revenue = sum(_amount(b, "total_amount") for b in owner_bookings)
        commission = sum(_amount(b, "commission_amount") for b in owner_bookings)
        reports.append(
            OwnerFinancialReport(
                owner_id=owner["id"],
                owner_name=owner.get("full_name") or owner.get("email"),
                properties_count=len(property_ids),
                total_revenue=round(revenue, 2),
                net_balance=round(revenue - commission, 2),
                commission_earned=round(commission, 2),
                subscription_fee=subscription_fee,
            )
        )
    reports.sort(key=lambda r: r.total_revenue, reverse=True)
    return reports


class FinancialService:
    """Loads the rows behind the financial overview page."""

    def __init__(self, provider: DataProvider):
        self.provider = provider

    async def _rows(self, resource: Resource, select: str = "*") -> list[dict[str, Any]]:
        return (await self.provider.get_all(resource.value, select=select)).unwrap()

    async def _load(self) -> tuple[list, list, list, list]:
        return await asyncio.gather(
            self._rows(Resource.PAYMENTS, "*, payer:profiles!payments_payer_id_fkey(id, full_name, email)"),
            self._rows(Resource.BOOKINGS),
            self._rows(Resource.SUBSCRIPTIONS),
            self._rows(Resource.SERVICE_REQUESTS, "*, service:services(id, name, is_vip_only)"),
        )

    async def overview(self, now: Optional[datetime] = None) -> FinancialOverview:
        payments, bookings, subscriptions, requests = await self._load()
        return calculate_financial_overview(payments, bookings, subscriptions, requests, now)

    async def monthly(self, now: Optional[datetime] = None) -> list[MonthlyFinancialData]:
        payments, bookings, subscriptions, requests = await self._load()
        return calculate_monthly_data(bookings, requests, subscriptions, payments, now)

    async def categories(self) -> list[RevenueByCategory]:
        _, bookings, subscriptions, requests = await self._load()
        return calculate_revenue_by_category(bookings, subscriptions, requests)

    async def transactions(self, limit: int = 50) -> list[FinancialTransaction]:
        return recent_transactions(
            await self._rows(Resource.PAYMENTS, "*, payer:profiles!payments_payer_id_fkey(id, full_name, email)"),
            limit,
        )

    async def owners(self) -> list[OwnerFinancialReport]:
        profiles, properties, bookings = await asyncio.gather(
            self._rows(Resource.PROFILES),
            self._rows(Resource.PROPERTIES, "id, owner_id"),
            self._rows(Resource.BOOKINGS),
        )
        if not any(p.get("role") == UserRole.PROPERTY_OWNER.value for p in profiles):
            logger.warning("[FINANCE] No property owners found")
        return calculate_owners_report(profiles, properties, bookings)
