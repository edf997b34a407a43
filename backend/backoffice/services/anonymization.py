"""
GDPR anonymization service.

Graduated strategy:
- PARTIAL: personal fields replaced, business rows kept and stamped with
  the anonymous id until `preserved_data_until`.
- FULL: business rows deleted first (payments and subscriptions are kept
  for accounting), then stamped as for PARTIAL.

Every anonymization schedules a final purge in `scheduled_purges`. The purge
date depends on the deletion reason; the purge itself runs in the database
(`execute_gdpr_purges`).
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

from backoffice.core.dates import isoformat, utcnow
from backoffice.models.enums import (
    DELETION_REASON_LABELS,
    AnonymizationLevel,
    DeletionReason,
    Resource,
)
from backoffice.schemas.common import DataProviderError
from backoffice.schemas.user import AnonymizationResult
from backoffice.services.audit import AuditService
from backoffice.services.data_provider import DataProvider

logger = logging.getLogger(__name__)

PROFILES = Resource.PROFILES.value

BUSINESS_TABLES = [
    "bookings",
    "service_requests",
    "reviews",
    "payments",
    "subscriptions",
    "properties",
    "notifications",
]

# payments / subscriptions are never deleted (legal retention)
PURGEABLE_TABLES = ["bookings", "service_requests", "reviews", "properties", "notifications"]

BUSINESS_PRESERVE_DAYS = 2555  # 7 years
AUDIT_RETENTION_DAYS = 1095  # 3 years
WITHDRAWAL_PERIOD_DAYS = 30

PURGE_TASK_TABLES = ["data_purge_tasks", "scheduled_purges"]

PURGE_DELAY_DAYS = {
    DeletionReason.GDPR_COMPLIANCE: 0,
    DeletionReason.USER_REQUEST: WITHDRAWAL_PERIOD_DAYS,
    DeletionReason.TERMS_VIOLATION: AUDIT_RETENTION_DAYS,
}

ANONYMIZATION_CLEARED = {
    "deleted_at": None,
    "deletion_reason": None,
    "anonymization_level": None,
    "anonymized_at": None,
    "preserved_data_until": None,
    "scheduled_purge_at": None,
    "anonymous_id": None,
}


def generate_anonymous_id() -> str:
    return f"anon_{int(utcnow().timestamp() * 1000)}_{secrets.token_hex(5)[:9]}"


def anonymized_personal_fields(anonymous_id: str) -> dict[str, Any]:
    """Replacement values for the profile's personal fields."""
    suffix = anonymous_id[-6:]
    return {
        "email": f"{anonymous_id}@anonymized.local",
        "first_name": "User",
        "last_name": f"Anonymized {suffix}",
        "full_name": f"Anonymized User {suffix}",
        "phone": None,
        "avatar_url": None,
    }


def calculate_purge_date(reason: DeletionReason, now: Optional[datetime] = None) -> datetime:
    """When the anonymized account is purged for good.

    GDPR requests are purged right away, user requests keep a withdrawal
    period, terms violations are kept for audit. Anything else keeps the
    business preservation period.
    """
    now = now or utcnow()
    return now + timedelta(days=PURGE_DELAY_DAYS.get(reason, BUSINESS_PRESERVE_DAYS))


class AnonymizationService:
    """Anonymize, restore and purge user accounts."""

    def __init__(self, provider: DataProvider, audit: Optional[AuditService] = None):
        self.provider = provider
        self.audit = audit or AuditService(provider)

    async def anonymize_user(
        self,
        user_id: str,
        reason: DeletionReason,
        level: AnonymizationLevel = AnonymizationLevel.PARTIAL,
        admin_id: Optional[str] = None,
    ) -> AnonymizationResult:
        anonymous_id = generate_anonymous_id()
        started = utcnow()
        now = isoformat(started)
        purge_at = isoformat(calculate_purge_date(reason, started))
        preserved_until = (
            isoformat(started + timedelta(days=BUSINESS_PRESERVE_DAYS))
            if level == AnonymizationLevel.PARTIAL
            else None
        )

        # 1. deletion markers, cleared again if step 2 fails
        try:
            (
                await self.provider.update(
                    PROFILES,
                    user_id,
                    {
                        "deleted_at": now,
                        "deletion_reason": DELETION_REASON_LABELS[reason],
                        "anonymization_level": level.value,
                        "preserved_data_until": preserved_until,
                        "scheduled_purge_at": purge_at,
                    },
                )
            ).unwrap()
        except DataProviderError as e:
            logger.error(f"[GDPR] Anonymization of {user_id} failed: {e.message}")
            return AnonymizationResult(success=False, user_id=user_id, level=level, error=e.message)

        # 2. personal data
        try:
            (
                await self.provider.update(
                    PROFILES,
                    user_id,
                    {
                        **anonymized_personal_fields(anonymous_id),
                        "anonymous_id": anonymous_id,
                        "anonymized_at": now,
                    },
                )
            ).unwrap()
        except DataProviderError as e:
            logger.error(f"[GDPR] Anonymization of {user_id} failed, undoing deletion: {e.message}")
            undo = await self.provider.update(PROFILES, user_id, dict(ANONYMIZATION_CLEARED))
            if not undo.success:
                logger.error(f"[GDPR] Could not undo deletion of {user_id}: {undo.error}")
            return AnonymizationResult(success=False, user_id=user_id, level=level, error=e.message)

        # 3. business data
        if level == AnonymizationLevel.FULL:
            await self._purge_business_data(user_id)
        processed = await self._stamp_business_data(user_id, anonymous_id, now)

        # 4. final purge
        await self._schedule_purge(user_id, purge_at)

        await self.audit.log_user_anonymized(user_id, level.value, reason.value, admin_id)
        logger.info(f"[GDPR] {user_id} anonymized ({level.value}), purge at {purge_at}")
        return AnonymizationResult(
            success=True,
            user_id=user_id,
            level=level,
            anonymous_id=anonymous_id,
            tables_processed=processed,
            scheduled_purge_at=purge_at,
            preserved_data_until=preserved_until,
        )

    async def _schedule_purge(self, user_id: str, purge_at: str) -> None:
        result = await self.provider.create(
            "scheduled_purges",
            {
                "user_id": user_id,
                "table_name": "all",
                "scheduled_for": purge_at,
                "policy_applied": "GDPR_ANONYMIZATION",
                "status": "pending",
            },
        )
        if not result.success:
            logger.warning(f"[GDPR] Could not schedule purge for {user_id}: {result.error}")

    async def _stamp_business_data(self, user_id: str, anonymous_id: str, now: str) -> list[str]:
        processed = []
        for table in BUSINESS_TABLES:
            result = await self.provider.update_where(
                table,
                {"user_id": user_id},
                {"anonymous_user_id": anonymous_id, "user_anonymized_at": now},
            )
            if result.success:
                processed.append(table)
            else:
                logger.warning(f"[GDPR] Could not anonymize {table} for {user_id}: {result.error}")
        return processed

    async def _purge_business_data(self, user_id: str) -> None:
        for table in PURGEABLE_TABLES:
            result = await self.provider.delete_where(table, {"user_id": user_id})
            if not result.success:
                logger.warning(f"[GDPR] Could not purge {table} for {user_id}: {result.error}")

    async def restore_user(self, user_id: str) -> dict[str, Any]:
        """Clear deletion / anonymization markers and cancel pending purges.

        Personal data is not recovered.
        """
        profile = (await self.provider.update(PROFILES, user_id, dict(ANONYMIZATION_CLEARED))).unwrap()
        for table in PURGE_TASK_TABLES:
            result = await self.provider.update_where(
                table, {"user_id": user_id, "status": "pending"}, {"status": "cancelled"}
            )
            if not result.success:
                logger.warning(f"[GDPR] Could not cancel {table} for {user_id}: {result.error}")
        return profile

    async def soft_delete_user(self, user_id: str, reason: DeletionReason) -> dict[str, Any]:
        return (
            await self.provider.update(
                PROFILES,
                user_id,
                {"deleted_at": isoformat(utcnow()), "deletion_reason": DELETION_REASON_LABELS[reason]},
            )
        ).unwrap()

    async def preview_pending_purges(self) -> list[dict[str, Any]]:
        return (await self.provider.rpc("preview_pending_purges")).unwrap() or []

    async def execute_purges(self) -> Any:
        result = (await self.provider.rpc("execute_gdpr_purges")).unwrap()
        self.provider.invalidate(PROFILES)
        logger.info(f"[GDPR] Purge executed: {result}")
        return result

    async def gdpr_statistics(self) -> dict[str, Any]:
        rows = (await self.provider.get_all("gdpr_statistics_simple", limit=1)).unwrap()
        return rows[0] if rows else {}
