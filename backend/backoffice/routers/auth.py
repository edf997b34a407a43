"""Auth router - administrator sign-in and session info."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from backoffice.core.config import get_settings
from backoffice.core.security import AuthenticatedUser, require_admin
from backoffice.core.supabase import create_auth_client, get_supabase_client
from backoffice.schemas.auth import (
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    PasswordResetRequest,
)
from backoffice.services.data_provider import DataProvider, get_data_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _user_response(uid: str, email: str | None, profile: dict | None) -> CurrentUserResponse:
    profile = profile or {}
    return CurrentUserResponse(
        uid=uid,
        email=email,
        role=profile.get("role"),
        full_name=profile.get("full_name"),
        profile_validated=bool(profile.get("profile_validated")),
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    provider: DataProvider = Depends(get_data_provider),
):
    """Password sign-in. Only validated administrators get a session."""
    client = await create_auth_client()
    granted = False
    try:
        try:
            response = await client.auth.sign_in_with_password(
                {"email": data.email, "password": data.password}
            )
        except Exception as e:
            logger.info(f"[AUTH] Sign-in refused for {data.email}: {e}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )

        user = getattr(response, "user", None)
        session = getattr(response, "session", None)
        if user is None or session is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )

        result = await provider.get_one("profiles", str(user.id))
        profile = result.data if result.success else None
        if not profile or profile.get("role") != "admin":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin privileges required",
            )
        if not profile.get("profile_validated"):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin profile not validated",
            )

        granted = True
        return LoginResponse(
            access_token=session.access_token,
            refresh_token=getattr(session, "refresh_token", None),
            expires_in=getattr(session, "expires_in", None),
            user=_user_response(str(user.id), user.email, profile),
        )
    finally:
        await _release_auth_client(client, revoke=not granted)


async def _release_auth_client(client, revoke: bool) -> None:
    """Close the sign-in client. Sessions that were refused are revoked first."""
    try:
        if revoke:
            await client.auth.sign_out()
    except Exception as e:
        logger.warning(f"[AUTH] Sign-out of refused session failed: {e}")
    finally:
        await client.auth.close()


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Get current authenticated admin."""
    return _user_response(current_user.uid, current_user.email, current_user.profile)


@router.post("/password-reset", status_code=status.HTTP_202_ACCEPTED)
async def send_password_reset(
    data: PasswordResetRequest,
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Send a password reset email to any address."""
    client = await get_supabase_client()
    try:
        await client.auth.reset_password_for_email(
            data.email, {"redirect_to": get_settings().password_reset_redirect}
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Password reset failed: {e}",
        )
    return {"message": "Password reset email sent", "email": data.email}
