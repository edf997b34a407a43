"""Payment schemas."""

from datetime import date
from typing import Optional

from pydantic import Field, model_validator

from backoffice.models.enums import PaymentStatus, PaymentType
from backoffice.schemas.base import BaseSchema


class PaymentFilters(BaseSchema):
    """In-memory filters for the payments table."""

    search: Optional[str] = None
    status: Optional[PaymentStatus] = None
    payment_type: Optional[PaymentType] = None
    min_amount: Optional[float] = Field(None, ge=0)
    max_amount: Optional[float] = Field(None, ge=0)
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @model_validator(mode="after")
    def validate_ranges(self):
        if self.min_amount is not None and self.max_amount is not None and self.min_amount > self.max_amount:
            raise ValueError("min_amount must not exceed max_amount")
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self


class PaymentStats(BaseSchema):
    total: int = 0
    paid: int = 0
    pending: int = 0
    refunded: int = 0
    failed: int = 0
    total_amount: float = 0.0
    monthly_revenue: float = 0.0
    average_amount: float = 0.0
    success_rate: float = 0.0
    monthly_growth: float = 0.0


class PaymentStatusUpdate(BaseSchema):
    status: PaymentStatus
    failure_reason: Optional[str] = Field(None, max_length=500)


class RefundRequest(BaseSchema):
    """Refund request; amount defaults to the full payment amount."""

    amount: Optional[float] = Field(None, gt=0)
    reason: Optional[str] = Field(None, max_length=500)
