"""Payments listing, statistics and status changes."""

import logging
from datetime import datetime, time, timedelta, timezone
from typing import Any, Optional

from backoffice.core.dates import isoformat, parse_timestamp, utcnow
from backoffice.models.enums import PaymentStatus, Resource
from backoffice.schemas.common import DataProviderError, ListMeta, ListParams, ListResult
from backoffice.schemas.payment import PaymentFilters, PaymentStats
from backoffice.services.data_provider import DataProvider

logger = logging.getLogger(__name__)

PAYMENTS = Resource.PAYMENTS.value

PAID_STATUSES = {PaymentStatus.PAID.value, PaymentStatus.SUCCEEDED.value}

PAYMENT_SELECT = """
    *,
    payer:profiles!payments_payer_id_fkey(id, first_name, last_name, full_name, email, deleted_at, account_locked),
    payee:profiles!payments_payee_id_fkey(id, first_name, last_name, full_name, email, deleted_at, account_locked),
    booking:bookings(id, check_in, check_out, total_amount, status, property:properties(id, title, address, city)),
    service_request:service_requests(id, status, total_amount, service:services(id, name, category, base_price))
"""


def _nested(payment: dict[str, Any], *path: str) -> Any:
    value: Any = payment
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def filter_payments(payments: list[dict[str, Any]], filters: PaymentFilters) -> list[dict[str, Any]]:
    """Filter already-loaded payments (with relations) the way the payments table does."""
    term = (filters.search or "").strip().lower()
    date_from = (
        datetime.combine(filters.date_from, time.min, tzinfo=timezone.utc) if filters.date_from else None
    )
    date_to = (
        datetime.combine(filters.date_to, time.max, tzinfo=timezone.utc) if filters.date_to else None
    )

    def matches(payment: dict[str, Any]) -> bool:
        if term:
            haystack = [
                payment.get("id"),
                _nested(payment, "payer", "email"),
                _nested(payment, "payee", "email"),
                _nested(payment, "booking", "property", "title"),
            ]
            if not any(term in str(v).lower() for v in haystack if v):
                return False
        if filters.status and payment.get("status") != filters.status.value:
            return False
        if filters.payment_type and payment.get("payment_type") != filters.payment_type.value:
            return False
        amount = float(payment.get("amount") or 0)
        if filters.min_amount is not None and amount < filters.min_amount:
            return False
        if filters.max_amount is not None and amount > filters.max_amount:
            return False
        if date_from or date_to:
            created = parse_timestamp(payment.get("created_at"))
            if created is None:
                return False
            if date_from and created < date_from:
                return False
            if date_to and created > date_to:
                return False
        return True

    return [p for p in payments if matches(p)]


def payment_stats(payments: list[dict[str, Any]], now: Optional[datetime] = None) -> PaymentStats:
    now = now or utcnow()
    if not payments:
        return PaymentStats()

    def amount(p: dict[str, Any]) -> float:
        return float(p.get("amount") or 0)

    statuses = [p.get("status") for p in payments]
    paid = sum(1 for s in statuses if s in PAID_STATUSES)
    total_amount = sum(amount(p) for p in payments)

    thirty_days_ago = now - timedelta(days=30)
    sixty_days_ago = now - timedelta(days=60)
    recent = previous = 0.0
    for p in payments:
        if p.get("status") not in PAID_STATUSES:
            continue
        created = parse_timestamp(p.get("created_at"))
        if created is None:
            continue
        if created >= thirty_days_ago:
            recent += amount(p)
        elif created >= sixty_days_ago:
            previous += amount(p)

    return PaymentStats(
        total=len(payments),
        paid=paid,
        pending=statuses.count(PaymentStatus.PENDING.value),
        refunded=statuses.count(PaymentStatus.REFUNDED.value),
        failed=statuses.count(PaymentStatus.FAILED.value),
        total_amount=round(total_amount, 2),
        monthly_revenue=round(recent, 2),
        average_amount=round(total_amount / len(payments), 2),
        success_rate=round(paid / len(payments) * 100, 2),
        monthly_growth=round((recent - previous) / previous * 100, 2) if previous > 0 else 0.0,
    )


class PaymentService:
    """Read and moderate payments."""

    def __init__(self, provider: DataProvider):
        self.provider = provider

    async def list_payments(
        self,
        status: Optional[str] = None,
        payment_type: Optional[str] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> ListResult:
        params = ListParams(
            page=page,
            per_page=per_page,
            sort_field="created_at",
            filters={"status": status, "payment_type": payment_type},
            select=PAYMENT_SELECT,
        )
        return (await self.provider.get_list(PAYMENTS, params)).unwrap()

    async def all_payments(self, filters: Optional[PaymentFilters] = None) -> list[dict[str, Any]]:
        rows = (
            await self.provider.get_all(PAYMENTS, select=PAYMENT_SELECT, order_by="created_at")
        ).unwrap()
        return filter_payments(rows, filters) if filters else rows

    async def search_payments(
        self,
        filters: PaymentFilters,
        page: int = 1,
        per_page: int = 10,
    ) -> ListResult:
        """Toolbar search over every payment, paginated after filtering."""
        rows = await self.all_payments(filters)
        start = (page - 1) * per_page
        return ListResult(
            items=rows[start:start + per_page],
            meta=ListMeta.build(page, per_page, len(rows)),
        )

    async def stats(self) -> PaymentStats:
        rows = (await self.provider.get_all(PAYMENTS, order_by="created_at")).unwrap()
        return payment_stats(rows)

    async def get(self, payment_id: str) -> dict[str, Any]:
        return (await self.provider.get_one(PAYMENTS, payment_id, PAYMENT_SELECT)).unwrap()

    async def update_payment_status(
        self,
        payment_id: str,
        status: PaymentStatus,
        failure_reason: Optional[str] = None,
    ) -> dict[str, Any]:
        data: dict[str, Any] = {"status": status.value}
        if status.value in PAID_STATUSES:
            data["processed_at"] = isoformat(utcnow())
        if failure_reason:
            data["failure_reason"] = failure_reason
        row = (await self.provider.update(PAYMENTS, payment_id, data)).unwrap()
        logger.info(f"[PAYMENTS] {payment_id} -> {status.value}")
        return row

    async def refund(self, payment_id: str, amount: Optional[float] = None) -> dict[str, Any]:
        """Request a refund (the processor picks up refund_status=pending)."""
        payment = (await self.provider.get_one(PAYMENTS, payment_id)).unwrap()
        if payment.get("status") not in PAID_STATUSES:
            raise DataProviderError("Only paid payments can be refunded", "invalid_state")
        paid_amount = float(payment.get("amount") or 0)
        refund_amount = paid_amount if amount is None else amount
        if refund_amount > paid_amount:
            raise DataProviderError("Refund amount exceeds the payment amount", "invalid_amount")

        row = (
            await self.provider.update(
                PAYMENTS,
                payment_id,
                {"refund_status": "pending", "refund_amount": refund_amount},
            )
        ).unwrap()
        logger.info(f"[PAYMENTS] Refund of {refund_amount} requested for {payment_id}")
        return row
