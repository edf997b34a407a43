"""Payments router - listing, status changes, refunds and invoices."""

import io
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from backoffice.core.security import AuthenticatedUser, require_admin
from backoffice.models.enums import PaymentStatus, PaymentType
from backoffice.schemas.common import ListResult, TabCount
from backoffice.schemas.payment import (
    PaymentFilters,
    PaymentStats,
    PaymentStatusUpdate,
    RefundRequest,
)
from backoffice.services.data_provider import DataProvider, get_data_provider
from backoffice.services.export import PAYMENT_COLUMNS, csv_response
from backoffice.services.invoices import get_invoice_generator, invoice_filename
from backoffice.services.payments import PaymentService
from backoffice.services.tabs import tab_counts

router = APIRouter(prefix="/payments", tags=["payments"])


def get_payment_service(provider: DataProvider = Depends(get_data_provider)) -> PaymentService:
    return PaymentService(provider)


def payment_filters(
    search: Optional[str] = None,
    payment_status: Optional[PaymentStatus] = Query(default=None, alias="status"),
    payment_type: Optional[PaymentType] = None,
    min_amount: Optional[float] = Query(default=None, ge=0),
    max_amount: Optional[float] = Query(default=None, ge=0),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> PaymentFilters:
    try:
        return PaymentFilters(
            search=search,
            status=payment_status,
            payment_type=payment_type,
            min_amount=min_amount,
            max_amount=max_amount,
            date_from=date_from,
            date_to=date_to,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="; ".join(err["msg"] for err in e.errors()),
        )


@router.get("", response_model=ListResult)
async def list_payments(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=10, ge=1, le=100),
    filters: PaymentFilters = Depends(payment_filters),
    service: PaymentService = Depends(get_payment_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """List payments with payer, payee and what they paid for.

    Status and type filter remotely; the other toolbar filters run over the
    loaded rows.
    """
    toolbar = filters.model_dump(exclude={"status", "payment_type"}, exclude_none=True)
    if toolbar:
        return await service.search_payments(filters, page, per_page)
    return await service.list_payments(
        status=filters.status.value if filters.status else None,
        payment_type=filters.payment_type.value if filters.payment_type else None,
        page=page,
        per_page=per_page,
    )


@router.get("/stats", response_model=PaymentStats)
async def get_payment_stats(
    service: PaymentService = Depends(get_payment_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.stats()


@router.get("/tabs", response_model=list[TabCount])
async def get_payment_tabs(
    service: PaymentService = Depends(get_payment_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return tab_counts("payments", await service.all_payments())


@router.get("/export")
async def export_payments(
    filters: PaymentFilters = Depends(payment_filters),
    service: PaymentService = Depends(get_payment_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Download the (filtered) payments as CSV."""
    return csv_response("payments", await service.all_payments(filters), PAYMENT_COLUMNS)


@router.get("/{payment_id}")
async def get_payment(
    payment_id: str,
    service: PaymentService = Depends(get_payment_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.get(payment_id)


@router.patch("/{payment_id}/status")
async def update_payment_status(
    payment_id: str,
    data: PaymentStatusUpdate,
    service: PaymentService = Depends(get_payment_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.update_payment_status(payment_id, data.status, data.failure_reason)


@router.post("/{payment_id}/refund")
async def refund_payment(
    payment_id: str,
    data: RefundRequest,
    service: PaymentService = Depends(get_payment_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Request a full or partial refund of a paid payment."""
    return await service.refund(payment_id, data.amount)


@router.get("/{payment_id}/invoice")
async def download_invoice(
    payment_id: str,
    service: PaymentService = Depends(get_payment_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Generate the invoice PDF of a payment."""
    payment = await service.get(payment_id)
    pdf_bytes = get_invoice_generator().generate_payment_invoice(payment)
    headers = {
        "Content-Disposition": f'attachment; filename="{invoice_filename(payment)}"',
        "Content-Length": str(len(pdf_bytes)),
    }
    return StreamingResponse(io.BytesIO(pdf_bytes), media_type="application/pdf", headers=headers)
