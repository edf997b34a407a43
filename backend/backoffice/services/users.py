"""
User management service.

Profiles live in the `profiles` table; auth-side work (invitations, lock,
unlock, session revocation) is delegated to edge functions.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from backoffice.core.config import get_settings
from backoffice.core.dates import isoformat, parse_timestamp, utcnow
from backoffice.models.enums import ActorType, BulkUserAction, Resource, UserRole
from backoffice.schemas.common import (
    IS_NULL,
    NOT_NULL,
    BulkResult,
    DataProviderError,
    ListParams,
    ListResult,
)
from backoffice.schemas.user import (
    LockResult,
    PasswordResetResult,
    UnlockResult,
    UserCreate,
    UserDetails,
    UserFilters,
    UserStats,
)
from backoffice.services.audit import AuditService
from backoffice.services.bulk import run_bulk
from backoffice.services.data_provider import DataProvider
from backoffice.services.functions import (
    EdgeFunctionError,
    EdgeFunctionsClient,
    get_functions_client,
)

logger = logging.getLogger(__name__)

PROFILES = Resource.PROFILES.value

LOCK_CLEARED = {"account_locked": False, "locked_until": None, "lock_reason": None}
DEFAULT_LOCK_REASON = "Locked by an administrator"

VIP_ELIGIBLE_ROLES = {"property_owner", "tenant", "traveler"}
BOOKING_ROLES = {"property_owner", "tenant", "traveler"}

USER_SEARCH_FIELDS = ["full_name", "email", "phone"]

USER_TABS = ("all", "traveler", "property_owner", "service_provider", "admin", "deleted")


# ---------------------------------------------------------------- pure helpers

def to_db_filters(filters: Optional[UserFilters]) -> dict[str, Any]:
    """Translate toolbar filters into profiles column filters."""
    db_filters: dict[str, Any] = {}
    if filters is None:
        return db_filters
    if filters.role:
        db_filters["role"] = filters.role.value
    if filters.status == "validated":
        db_filters["profile_validated"] = True
    elif filters.status == "pending":
        db_filters["profile_validated"] = False
    elif filters.status == "locked":
        db_filters["account_locked"] = True
    if filters.subscription == "vip":
        db_filters["vip_subscription"] = True
    elif filters.subscription == "standard":
        db_filters["vip_subscription"] = False
    return db_filters


def tab_filters(tab: str) -> dict[str, Any]:
    """Column filters for a users tab."""
    if tab == "deleted":
        return {"deleted_at": NOT_NULL}
    if tab == "all":
        return {"role__neq": UserRole.ADMIN.value, "deleted_at": IS_NULL}
    if tab not in USER_TABS:
        raise ValueError(f"Unknown users tab: {tab}")
    return {"role": tab, "deleted_at": IS_NULL}


def is_account_lock_expired(profile: dict[str, Any], now: Optional[datetime] = None) -> bool:
    """A lock is expired when it has an end date that is already past."""
    if not profile.get("account_locked"):
        return False
    locked_until = parse_timestamp(profile.get("locked_until"))
    if locked_until is None:
        return False
    return (now or utcnow()) > locked_until


def process_expired_locks(users: list[dict[str, Any]], now: Optional[datetime] = None) -> list[dict[str, Any]]:
    """Show rows whose lock has run out as unlocked."""
    now = now or utcnow()
    return [
        {**user, **LOCK_CLEARED} if is_account_lock_expired(user, now) else user
        for user in users
    ]


def user_stats(users: list[dict[str, Any]]) -> UserStats:
    live = [u for u in users if not u.get("deleted_at")]
    return UserStats(
        total=len(live),
        active=sum(
            1 for u in live
            if u.get("profile_validated")
            and not u.get("account_locked")
            and u.get("role") != UserRole.ADMIN.value
        ),
        pending_validations=sum(1 for u in live if not u.get("profile_validated")),
        vip=sum(1 for u in live if u.get("vip_subscription")),
    )


def can_be_vip(role: Optional[str]) -> bool:
    return (role or "").lower() in VIP_ELIGIBLE_ROLES


def can_have_bookings(role: Optional[str]) -> bool:
    return (role or "").lower() in BOOKING_ROLES


def calculate_lock_time_remaining(locked_until: Any, now: Optional[datetime] = None) -> str:
    """'permanent', 'expired', 'Xh Ym' or 'Ym'."""
    until = parse_timestamp(locked_until)
    if until is None:
        return "permanent"
    remaining = until - (now or utcnow())
    if remaining.total_seconds() <= 0:
        return "expired"
    total_minutes = int(remaining.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


# --------------------------------------------------------------------- service

class UserService:
    """User management operations."""

    def __init__(
        self,
        provider: DataProvider,
        functions: Optional[EdgeFunctionsClient] = None,
        audit: Optional[AuditService] = None,
    ):
        self.provider = provider
        self.functions = functions or get_functions_client()
        self.audit = audit or AuditService(provider)
        self.settings = get_settings()

    async def list_users(
        self,
        filters: Optional[UserFilters] = None,
        tab: str = "all",
        page: int = 1,
        per_page: int = 10,
        sort_field: str = "created_at",
        sort_order: str = "DESC",
    ) -> ListResult:
        params = ListParams(
            page=page,
            per_page=per_page,
            sort_field=sort_field,
            sort_order=sort_order,
            filters={**tab_filters(tab), **to_db_filters(filters)},
            search=filters.search if filters else None,
            search_fields=USER_SEARCH_FIELDS,
        )
        result: ListResult = (await self.provider.get_list(PROFILES, params)).unwrap()
        result.items = process_expired_locks(result.items)
        return result

    async def all_users(self) -> list[dict[str, Any]]:
        return (await self.provider.get_all(PROFILES, order_by="created_at")).unwrap()

    async def stats(self) -> UserStats:
        return user_stats(await self.all_users())

    async def get_user(self, user_id: str) -> dict[str, Any]:
        return (await self.provider.get_one(PROFILES, user_id)).unwrap()

    async def get_user_details(self, user_id: str) -> UserDetails:
        """Profile plus related rows, depending on the user's role."""
        profile = await self.get_user(user_id)
        role = profile.get("role")

        async def related(resource: Resource, field: str) -> list[dict[str, Any]]:
            result = await self.provider.get_all(
                resource.value, filters={field: user_id}, order_by="created_at"
            )
            if not result.success:
                logger.warning(f"[USERS] {resource.value} for {user_id} unavailable: {result.error}")
                return []
            return result.data

        async def nothing() -> list[dict[str, Any]]:
            return []

        bookings, properties, services, requests, subscriptions = await asyncio.gather(
            related(Resource.BOOKINGS, "traveler_id") if can_have_bookings(role) else nothing(),
            related(Resource.PROPERTIES, "owner_id") if role == UserRole.PROPERTY_OWNER.value else nothing(),
            related(Resource.SERVICES, "provider_id") if role == UserRole.SERVICE_PROVIDER.value else nothing(),
            related(Resource.SERVICE_REQUESTS, "requester_id"),
            related(Resource.SUBSCRIPTIONS, "user_id"),
        )

        return UserDetails(
            profile=profile,
            lock_time_remaining=(
                calculate_lock_time_remaining(profile.get("locked_until"))
                if profile.get("account_locked") else None
            ),
            bookings=bookings,
            properties=properties,
            services=services,
            service_requests=requests,
            subscriptions=subscriptions,
        )

    async def update_user(self, user_id: str, data: dict[str, Any]) -> dict[str, Any]:
        if "role" in data and hasattr(data["role"], "value"):
            data = {**data, "role": data["role"].value}
        return (await self.provider.update(PROFILES, user_id, data)).unwrap()

    async def create_user(
        self,
        data: UserCreate,
        access_token: Optional[str] = None,
        admin_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """Invite through the create-user function, then audit."""
        payload = data.model_dump(mode="json")
        created = await self.functions.create_user(payload, access_token)
        self.provider.invalidate(PROFILES)

        user = created.get("user") or {}
        user_id = user.get("id") or (created.get("profile") or {}).get("id")
        await self.audit.log_user_created(user_id, data.email, data.role.value, admin_id)
        logger.info(f"[USERS] Created {data.email} ({data.role.value})")
        return created

    async def reset_password(self, user_id: str, admin_id: Optional[str] = None) -> PasswordResetResult:
        profile = await self.get_user(user_id)
        email = profile.get("email")
        if not email:
            raise DataProviderError(f"User {user_id} has no email address", "missing_email")

        try:
            await self.provider.client.auth.reset_password_for_email(
                email, {"redirect_to": self.settings.password_reset_redirect}
            )
        except Exception as e:
            logger.warning(f"[USERS] Password reset for {user_id} failed: {e}")
            raise DataProviderError(f"Password reset failed: {e}", "auth_error") from e

        await self.audit.log_password_reset(user_id, email, admin_id)
        return PasswordResetResult(email=email)

    async def lock_account(
        self,
        user_id: str,
        duration_minutes: Optional[int] = None,
        reason: Optional[str] = None,
        access_token: Optional[str] = None,
        admin_id: Optional[str] = None,
        permanent: bool = False,
    ) -> LockResult:
        """Lock the profile, revoke sessions, audit."""
        lock_reason = reason or DEFAULT_LOCK_REASON
        locked_until = None
        if not permanent:
            minutes = duration_minutes or self.settings.default_lock_minutes
            locked_until = utcnow() + timedelta(minutes=minutes)

        await self.update_user(
            user_id,
            {
                "account_locked": True,
                "locked_until": isoformat(locked_until) if locked_until else None,
                "lock_reason": lock_reason,
            },
        )

        session_invalidated = True
        try:
            await self.functions.invalidate_user_session(user_id, access_token)
        except EdgeFunctionError as e:
            session_invalidated = False
            logger.warning(f"[USERS] Session invalidation for {user_id} failed: {e.message}")

        await self.audit.log_account_locked(
            user_id,
            isoformat(locked_until) if locked_until else None,
            lock_reason,
            admin_id,
            session_invalidated,
        )
        return LockResult(
            user_id=user_id,
            locked_until=locked_until,
            lock_reason=lock_reason,
            session_invalidated=session_invalidated,
        )

    async def unlock_account(
        self,
        user_id: str,
        reason: Optional[str] = None,
        access_token: Optional[str] = None,
        admin_id: Optional[str] = None,
    ) -> UnlockResult:
        response = await self.functions.unlock_user(user_id, access_token)
        if not response.get("success", False):
            message = response.get("error") or response.get("message") or "Unlock failed"
            raise EdgeFunctionError("unlock-user", None, message)

        self.provider.invalidate(PROFILES)
        await self.audit.log_account_unlocked(user_id, reason, admin_id)
        return UnlockResult(user_id=user_id, message=response.get("message"))

    async def unlock_expired_accounts(self, now: Optional[datetime] = None) -> int:
        """Clear every lock whose locked_until has passed."""
        now = now or utcnow()
        locked = (
            await self.provider.get_all(
                PROFILES,
                filters={"account_locked": True, "locked_until": NOT_NULL, "locked_until__lt": isoformat(now)},
            )
        ).unwrap()

        unlocked = 0
        for profile in locked:
            if not is_account_lock_expired(profile, now):
                continue
            result = await self.provider.update(PROFILES, profile["id"], dict(LOCK_CLEARED))
            if result.success:
                unlocked += 1
                await self.audit.log_account_unlocked(
                    profile["id"], "Lock expired", actor_type=ActorType.SYSTEM
                )
            else:
                logger.warning(f"[USERS] Could not clear expired lock for {profile['id']}: {result.error}")
        if unlocked:
            logger.info(f"[USERS] Cleared {unlocked} expired lock(s)")
        return unlocked

    async def bulk_action(
        self,
        action: BulkUserAction,
        ids: list[str],
        role: Optional[UserRole] = None,
        admin_id: Optional[str] = None,
    ) -> BulkResult:
        """Run a bulk action sequentially; one failure never aborts the rest."""
        payloads: dict[BulkUserAction, dict[str, Any]] = {
            BulkUserAction.VALIDATE: {"profile_validated": True},
            BulkUserAction.SET_PENDING: {"profile_validated": False},
            BulkUserAction.SUSPEND: {"account_locked": True},
            BulkUserAction.UNSUSPEND: dict(LOCK_CLEARED),
            BulkUserAction.SET_VIP: {"vip_subscription": True},
            BulkUserAction.REMOVE_VIP: {"vip_subscription": False},
        }

        if action == BulkUserAction.DELETE:
            async def operation(user_id: str) -> Any:
                return (await self.provider.delete(PROFILES, user_id)).unwrap()
        elif action == BulkUserAction.CHANGE_ROLE:
            if role is None:
                raise ValueError("role is required for change_role")

            async def operation(user_id: str) -> Any:
                return await self.update_user(user_id, {"role": role.value})
        else:
            payload = payloads[action]

            async def operation(user_id: str) -> Any:
                return await self.update_user(user_id, payload)

        result = await run_bulk(ids, operation)
        self.provider.invalidate(PROFILES)
        await self.audit.log_bulk_action(action.value, ids, len(result.failed), admin_id)
        return result
