"""Audit logging service."""

import logging
from typing import Any, Optional

from backoffice.models.enums import ActorType, AuditAction, Resource
from backoffice.services.data_provider import DataProvider

logger = logging.getLogger(__name__)


class AuditService:
    """Service for creating and reading audit_logs entries.

    Writing an entry never fails the calling action: errors are logged and
    None is returned.
    """

    def __init__(self, provider: DataProvider):
        self.provider = provider

    async def log(
        self,
        action: AuditAction,
        user_id: Optional[str],
        description: str,
        admin_id: Optional[str] = None,
        admin_email: Optional[str] = None,
        actor_type: ActorType = ActorType.ADMIN,
        details: Optional[dict[str, Any]] = None,
    ) -> Optional[dict[str, Any]]:
        """Create an audit log entry."""
        entry = {
            "action": action.value,
            "user_id": user_id,
            "performed_by": admin_id,
            "performed_by_email": admin_email,
            "details": description,
            "metadata": {"actor_type": actor_type.value, **(details or {})},
        }
        result = await self.provider.create(Resource.AUDIT_LOGS.value, entry)
        if not result.success:
            logger.warning(f"[AUDIT] Could not record {action.value} for {user_id}: {result.error}")
            return None
        return result.data

    async def log_password_reset(self, user_id: str, email: str, admin_id: Optional[str] = None) -> Optional[dict]:
        """Log password reset email sent."""
        return await self.log(
            action=AuditAction.PASSWORD_RESET,
            user_id=user_id,
            description=f"Password reset email sent to {email}",
            admin_id=admin_id,
            details={"email": email},
        )

    async def log_account_locked(
        self,
        user_id: str,
        locked_until: Optional[str],
        reason: str,
        admin_id: Optional[str] = None,
        session_invalidated: bool = False,
    ) -> Optional[dict]:
        """Log account locked."""
        return await self.log(
            action=AuditAction.ACCOUNT_LOCKED,
            user_id=user_id,
            description=f"Account locked: {reason}",
            admin_id=admin_id,
            details={
                "locked_until": locked_until,
                "reason": reason,
                "session_invalidated": session_invalidated,
            },
        )

    async def log_account_unlocked(
        self,
        user_id: str,
        reason: Optional[str] = None,
        admin_id: Optional[str] = None,
        actor_type: ActorType = ActorType.ADMIN,
    ) -> Optional[dict]:
        """Log account unlocked (manually or on lock expiry)."""
        return await self.log(
            action=AuditAction.ACCOUNT_UNLOCKED,
            user_id=user_id,
            description=f"Account unlocked{': ' + reason if reason else ''}",
            admin_id=admin_id,
            actor_type=actor_type,
            details={"reason": reason},
        )

    async def log_user_created(self, user_id: str, email: str, role: str, admin_id: Optional[str] = None) -> Optional[dict]:
        return await self.log(
            action=AuditAction.USER_CREATED,
            user_id=user_id,
            description=f"User {email} created with role {role}",
            admin_id=admin_id,
            details={"email": email, "role": role},
        )

    async def log_bulk_action(
        self,
        action_name: str,
        user_ids: list[str],
        failed: int = 0,
        admin_id: Optional[str] = None,
    ) -> Optional[dict]:
        """Log one entry summarising a bulk action."""
        return await self.log(
            action=AuditAction.BULK_ACTION,
            user_id=None,
            description=f"Bulk {action_name} on {len(user_ids)} record(s), {failed} failed",
            admin_id=admin_id,
            details={"bulk_action": action_name, "ids": user_ids, "failed": failed},
        )

    async def log_property_moderated(
        self,
        property_id: str,
        action: AuditAction,
        owner_id: Optional[str] = None,
        notes: Optional[str] = None,
        admin_id: Optional[str] = None,
    ) -> Optional[dict]:
        return await self.log(
            action=action,
            user_id=owner_id,
            description=f"Property {property_id}: {action.value.replace('property_', '')}",
            admin_id=admin_id,
            details={"property_id": property_id, "notes": notes},
        )

    async def log_user_anonymized(
        self,
        user_id: str,
        level: str,
        reason: str,
        admin_id: Optional[str] = None,
    ) -> Optional[dict]:
        return await self.log(
            action=AuditAction.USER_ANONYMIZED,
            user_id=user_id,
            description=f"User anonymized ({level}): {reason}",
            admin_id=admin_id,
            details={"level": level, "reason": reason},
        )

    async def list_for_user(self, user_id: str, limit: int = 50) -> list[dict[str, Any]]:
        """Newest entries concerning `user_id`."""
        result = await self.provider.get_all(
            Resource.AUDIT_LOGS.value,
            filters={"user_id": user_id},
            order_by="created_at",
            limit=limit,
        )
        return result.unwrap()

    async def list(
        self,
        action_type: Optional[str] = None,
        user_id: Optional[str] = None,
        actor_type: Optional[str] = None,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        result = await self.provider.get_all(
            Resource.AUDIT_LOGS.value,
            filters={"action": action_type, "user_id": user_id},
            order_by="created_at",
            limit=limit,
        )
        rows = result.unwrap()
        if actor_type:
            rows = [r for r in rows if (r.get("metadata") or {}).get("actor_type") == actor_type]
        return rows
