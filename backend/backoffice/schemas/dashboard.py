"""Dashboard schemas."""

from typing import Literal, Optional

from pydantic import Field

from backoffice.schemas.base import BaseSchema

ActivityType = Literal[
    "property",
    "provider",
    "service",
    "payment",
    "chat_report",
    "failed_payment",
    "overdue_payment",
    "pending_refund",
    "pending_user",
    "locked_account",
]


class DashboardStats(BaseSchema):
    pending_validations: int = 0
    moderation_cases: int = 0
    active_users: int = 0
    monthly_revenue: float = 0.0


class RecentActivity(BaseSchema):
    id: str
    type: ActivityType
    status: Literal["pending", "cancelled", "failed", "review_required"]
    title: str
    description: str
    action_label: str
    timestamp: Optional[str] = None


class ChartPoint(BaseSchema):
    month: str  # YYYY-MM
    label: str
    value: float = 0.0


class ChartData(BaseSchema):
    revenue: list[ChartPoint] = Field(default_factory=list)
    user_growth: list[ChartPoint] = Field(default_factory=list)
