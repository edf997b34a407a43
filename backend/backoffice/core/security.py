"""Supabase JWT verification and admin guards."""

import logging
from typing import Any, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backoffice.core.dates import utcnow
from backoffice.core.supabase import get_supabase_client
from backoffice.services.data_provider import DataProvider, get_data_provider
from backoffice.services.users import LOCK_CLEARED, is_account_lock_expired

logger = logging.getLogger(__name__)

security = HTTPBearer()


class AuthenticatedUser:
    """Represents an authenticated user from a Supabase access token."""

    def __init__(
        self,
        uid: str,
        email: Optional[str] = None,
        access_token: Optional[str] = None,
        profile: Optional[dict[str, Any]] = None,
    ):
        self.uid = uid
        self.email = email
        self.access_token = access_token
        self.profile = profile

    @property
    def role(self) -> Optional[str]:
        return (self.profile or {}).get("role")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


async def verify_supabase_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthenticatedUser:
    """Resolve the bearer token with Supabase Auth.

    Tokens are only verified here, never issued.
    """
    token = credentials.credentials
    client = await get_supabase_client()

    try:
        response = await client.auth.get_user(token)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token verification failed: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = getattr(response, "user", None)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthenticatedUser(uid=str(user.id), email=user.email, access_token=token)


async def get_current_user(
    auth_user: AuthenticatedUser = Depends(verify_supabase_token),
    provider: DataProvider = Depends(get_data_provider),
) -> AuthenticatedUser:
    """Attach the caller's profiles row."""
    result = await provider.get_one("profiles", auth_user.uid)
    if result.success:
        auth_user.profile = result.data
    else:
        logger.warning(f"[AUTH] No profile for {auth_user.uid}: {result.error}")
    return auth_user


async def require_admin(
    current_user: AuthenticatedUser = Depends(get_current_user),
    provider: DataProvider = Depends(get_data_provider),
) -> AuthenticatedUser:
    """Require a validated, unlocked admin.

    An expired lock is cleared on the way through.
    """
    profile = current_user.profile
    if not profile or not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    if not profile.get("profile_validated"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin profile not validated",
        )

    if profile.get("account_locked"):
        if not is_account_lock_expired(profile, utcnow()):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is locked",
            )
        result = await provider.update("profiles", current_user.uid, dict(LOCK_CLEARED))
        if result.success:
            current_user.profile = result.data
        else:
            current_user.profile = {**profile, **LOCK_CLEARED}
        logger.info(f"[AUTH] Expired lock cleared for {current_user.uid}")

    return current_user
