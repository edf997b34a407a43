"""Users router - profiles, locks, password resets and GDPR actions."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from backoffice.core.security import AuthenticatedUser, require_admin
from backoffice.models.enums import DeletionReason, UserRole
from backoffice.schemas.common import BulkResult, ListResult, TabCount
from backoffice.schemas.user import (
    AnonymizationResult,
    AnonymizeRequest,
    BulkUserRequest,
    LockRequest,
    LockResult,
    PasswordResetResult,
    UnlockRequest,
    UnlockResult,
    UserCreate,
    UserDetails,
    UserFilters,
    UserStats,
    UserUpdate,
)
from backoffice.services.anonymization import AnonymizationService
from backoffice.services.audit import AuditService
from backoffice.services.data_provider import DataProvider, get_data_provider
from backoffice.services.export import USER_COLUMNS, csv_response
from backoffice.services.tabs import tab_counts
from backoffice.services.users import USER_TABS, UserService, process_expired_locks

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(provider: DataProvider = Depends(get_data_provider)) -> UserService:
    return UserService(provider)


def get_anonymization_service(
    provider: DataProvider = Depends(get_data_provider),
) -> AnonymizationService:
    return AnonymizationService(provider)


def user_filters(
    role: Optional[UserRole] = None,
    status: Optional[Literal["validated", "pending", "locked"]] = None,
    subscription: Optional[Literal["vip", "standard"]] = None,
    search: Optional[str] = None,
) -> UserFilters:
    return UserFilters(role=role, status=status, subscription=subscription, search=search)


@router.get("", response_model=ListResult)
async def list_users(
    tab: str = Query(default="all"),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=10, ge=1, le=100),
    sort_field: str = "created_at",
    sort_order: Literal["ASC", "DESC"] = "DESC",
    filters: UserFilters = Depends(user_filters),
    service: UserService = Depends(get_user_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """List profiles for a tab, with toolbar filters and pagination."""
    if tab not in USER_TABS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown tab: {tab}",
        )
    return await service.list_users(filters, tab, page, per_page, sort_field, sort_order)


@router.get("/stats", response_model=UserStats)
async def get_user_stats(
    service: UserService = Depends(get_user_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.stats()


@router.get("/tabs", response_model=list[TabCount])
async def get_user_tabs(
    service: UserService = Depends(get_user_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Tab definitions with their current counts."""
    return tab_counts("users", await service.all_users())


@router.get("/export")
async def export_users(
    service: UserService = Depends(get_user_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Download every profile as CSV."""
    users = process_expired_locks(await service.all_users())
    return csv_response("users", users, USER_COLUMNS)


@router.post("/unlock-expired")
async def unlock_expired_accounts(
    service: UserService = Depends(get_user_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Clear every lock that has run out."""
    return {"unlocked": await service.unlock_expired_accounts()}


@router.post("/bulk", response_model=BulkResult)
async def bulk_users(
    data: BulkUserRequest,
    service: UserService = Depends(get_user_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Apply one action to many users; failures are reported per id."""
    return await service.bulk_action(data.action, data.ids, data.role, current_user.uid)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    service: UserService = Depends(get_user_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Invite a new user through the create-user function."""
    return await service.create_user(data, current_user.access_token, current_user.uid)


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return process_expired_locks([await service.get_user(user_id)])[0]


@router.get("/{user_id}/details", response_model=UserDetails)
async def get_user_details(
    user_id: str,
    service: UserService = Depends(get_user_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Profile plus the related rows its role can have."""
    return await service.get_user_details(user_id)


@router.get("/{user_id}/audit")
async def get_user_audit_log(
    user_id: str,
    limit: int = Query(default=50, ge=1, le=500),
    provider: DataProvider = Depends(get_data_provider),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await AuditService(provider).list_for_user(user_id, limit)


@router.patch("/{user_id}")
async def update_user(
    user_id: str,
    data: UserUpdate,
    service: UserService = Depends(get_user_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    update_data = data.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )
    return await service.update_user(user_id, update_data)


@router.delete("/{user_id}")
async def soft_delete_user(
    user_id: str,
    reason: DeletionReason = DeletionReason.ADMIN_DECISION,
    service: AnonymizationService = Depends(get_anonymization_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Mark an account deleted without touching its personal data."""
    if user_id == current_user.uid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )
    return await service.soft_delete_user(user_id, reason)


@router.post("/{user_id}/lock", response_model=LockResult)
async def lock_user(
    user_id: str,
    data: LockRequest,
    service: UserService = Depends(get_user_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Lock an account for a duration (or permanently) and revoke its sessions."""
    if user_id == current_user.uid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot lock your own account",
        )
    return await service.lock_account(
        user_id,
        duration_minutes=data.duration_minutes,
        reason=data.reason,
        access_token=current_user.access_token,
        admin_id=current_user.uid,
        permanent=data.permanent,
    )


@router.post("/{user_id}/unlock", response_model=UnlockResult)
async def unlock_user(
    user_id: str,
    data: Optional[UnlockRequest] = None,
    service: UserService = Depends(get_user_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.unlock_account(
        user_id,
        reason=data.reason if data else None,
        access_token=current_user.access_token,
        admin_id=current_user.uid,
    )


@router.post("/{user_id}/password-reset", response_model=PasswordResetResult)
async def reset_user_password(
    user_id: str,
    service: UserService = Depends(get_user_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Email the user a password reset link."""
    return await service.reset_password(user_id, current_user.uid)


@router.post("/{user_id}/anonymize", response_model=AnonymizationResult)
async def anonymize_user(
    user_id: str,
    data: AnonymizeRequest,
    service: AnonymizationService = Depends(get_anonymization_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Replace personal data and mark the account deleted."""
    if user_id == current_user.uid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot anonymize your own account",
        )
    return await service.anonymize_user(user_id, data.reason, data.level, current_user.uid)


@router.post("/{user_id}/restore")
async def restore_user(
    user_id: str,
    service: AnonymizationService = Depends(get_anonymization_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Clear the deletion markers of a soft-deleted account."""
    return await service.restore_user(user_id)
