"""GDPR router - purge queue, statistics and audit trail."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from backoffice.core.config import get_settings
from backoffice.core.security import AuthenticatedUser, require_admin
from backoffice.models.enums import ActorType, AuditAction
from backoffice.services.anonymization import AnonymizationService
from backoffice.services.audit import AuditService
from backoffice.services.data_provider import DataProvider, get_data_provider
from backoffice.services.functions import get_functions_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["gdpr"])


def get_anonymization_service(
    provider: DataProvider = Depends(get_data_provider),
) -> AnonymizationService:
    return AnonymizationService(provider)


@router.get("/gdpr/preview")
async def preview_purges(
    service: AnonymizationService = Depends(get_anonymization_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Accounts whose retention period has run out."""
    return await service.preview_pending_purges()


@router.get("/gdpr/statistics")
async def get_gdpr_statistics(
    service: AnonymizationService = Depends(get_anonymization_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    return await service.gdpr_statistics()


@router.post("/gdpr/purge")
async def execute_purges(
    service: AnonymizationService = Depends(get_anonymization_service),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Run the purge of every account in the preview."""
    logger.info(f"[GDPR] Purge requested by {current_user.uid}")
    return {"result": await service.execute_purges()}


@router.post("/gdpr/scheduled-cleanup")
async def trigger_scheduled_cleanup(
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Run the scheduled-cleanup function now instead of waiting for its cron."""
    token = get_settings().cleanup_api_token
    if not token:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Scheduled cleanup is not configured (CLEANUP_API_TOKEN)",
        )
    return await get_functions_client().scheduled_cleanup(token)


@router.get("/audit-logs")
async def list_audit_logs(
    action: Optional[AuditAction] = None,
    user_id: Optional[str] = None,
    actor_type: Optional[ActorType] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    provider: DataProvider = Depends(get_data_provider),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Newest audit entries, optionally narrowed down."""
    return await AuditService(provider).list(
        action_type=action.value if action else None,
        user_id=user_id,
        actor_type=actor_type.value if actor_type else None,
        limit=limit,
    )
