"""User management schemas."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import EmailStr, Field, model_validator

from backoffice.models.enums import (
    AnonymizationLevel,
    BulkUserAction,
    DeletionReason,
    UserRole,
)
from backoffice.schemas.base import BaseSchema


class UserFilters(BaseSchema):
    """Filters as chosen in the users table toolbar."""

    role: Optional[UserRole] = None
    status: Optional[Literal["validated", "pending", "locked"]] = None
    subscription: Optional[Literal["vip", "standard"]] = None
    search: Optional[str] = None


class UserCreate(BaseSchema):
    """Invite a new user (auth account + profile)."""

    email: EmailStr
    role: UserRole
    full_name: str = Field(..., min_length=2, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    profile_validated: bool = False
    vip_subscription: bool = False


class UserUpdate(BaseSchema):
    full_name: Optional[str] = Field(None, min_length=2, max_length=255)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=32)
    role: Optional[UserRole] = None
    profile_validated: Optional[bool] = None
    vip_subscription: Optional[bool] = None


class LockRequest(BaseSchema):
    """Lock an account for `duration_minutes` (default from settings) or permanently."""

    duration_minutes: Optional[int] = Field(None, gt=0, le=60 * 24 * 365)
    permanent: bool = False
    reason: Optional[str] = Field(None, max_length=500)


class UnlockRequest(BaseSchema):
    reason: Optional[str] = Field(None, max_length=500)


class LockResult(BaseSchema):
    success: bool = True
    user_id: str
    locked_until: Optional[datetime] = None
    lock_reason: str
    session_invalidated: bool = False


class UnlockResult(BaseSchema):
    success: bool = True
    user_id: str
    message: Optional[str] = None


class PasswordResetResult(BaseSchema):
    success: bool = True
    email: str


class UserStats(BaseSchema):
    total: int = 0
    active: int = 0
    pending_validations: int = 0
    vip: int = 0


class BulkUserRequest(BaseSchema):
    action: BulkUserAction
    ids: list[str] = Field(..., min_length=1)
    role: Optional[UserRole] = None

    @model_validator(mode="after")
    def validate_role_change(self):
        """change_role needs a target role."""
        if self.action == BulkUserAction.CHANGE_ROLE and self.role is None:
            raise ValueError("role is required for change_role")
        return self


class AnonymizeRequest(BaseSchema):
    reason: DeletionReason = DeletionReason.ADMIN_DECISION
    level: AnonymizationLevel = AnonymizationLevel.PARTIAL


class AnonymizationResult(BaseSchema):
    success: bool
    user_id: str
    level: Optional[AnonymizationLevel] = None
    anonymous_id: Optional[str] = None
    tables_processed: list[str] = Field(default_factory=list)
    scheduled_purge_at: Optional[str] = None
    preserved_data_until: Optional[str] = None
    error: Optional[str] = None


class UserDetails(BaseSchema):
    """Profile plus the role-dependent related rows."""

    profile: dict[str, Any]
    lock_time_remaining: Optional[str] = None
    bookings: list[dict[str, Any]] = Field(default_factory=list)
    properties: list[dict[str, Any]] = Field(default_factory=list)
    services: list[dict[str, Any]] = Field(default_factory=list)
    service_requests: list[dict[str, Any]] = Field(default_factory=list)
    subscriptions: list[dict[str, Any]] = Field(default_factory=list)
