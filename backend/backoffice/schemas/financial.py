"""Financial overview schemas."""

from typing import Literal, Optional

from backoffice.schemas.base import BaseSchema


class FinancialOverview(BaseSchema):
    total_revenue: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0
    active_subscriptions: int = 0
    revenue_growth: float = 0.0
    expenses_growth: float = 0.0
    profit_growth: float = 0.0
    subscriptions_growth: float = 0.0


class MonthlyFinancialData(BaseSchema):
    month: str  # YYYY-MM
    label: str
    revenue: float = 0.0
    expenses: float = 0.0
    profit: float = 0.0


class RevenueByCategory(BaseSchema):
    category: str
    amount: float = 0.0
    percentage: int = 0


class FinancialTransaction(BaseSchema):
    id: str
    type: Literal["revenue", "expense", "subscription", "commission"]
    user_id: Optional[str] = None
    user_name: str
    amount: float = 0.0
    status: Literal["completed", "pending", "failed", "cancelled"]
    payment_method: Literal["card", "bank_transfer"]
    created_at: Optional[str] = None
    description: str


class OwnerFinancialReport(BaseSchema):
    owner_id: str
    owner_name: Optional[str] = None
    properties_count: int = 0
    total_revenue: float = 0.0
    total_expenses: float = 0.0
    net_balance: float = 0.0
    commission_earned: float = 0.0
    subscription_fee: float = 0.0
