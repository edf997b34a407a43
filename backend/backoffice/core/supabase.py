"""Process-wide Supabase client (service role)."""

import logging
from typing import Optional

from supabase import AsyncClient, acreate_client

from backoffice.core.config import get_settings

logger = logging.getLogger(__name__)

_client: Optional[AsyncClient] = None


def _can_connect() -> bool:
    settings = get_settings()
    return bool(settings.supabase_url and settings.supabase_service_role_key)


def runtime_error_from_exception(exc: Exception) -> RuntimeError:
    """Build a readable error from a PostgREST / GoTrue exception."""
    message = getattr(exc, "message", None) or str(exc) or "Supabase request failed."
    details = getattr(exc, "details", None)
    hint = getattr(exc, "hint", None)
    parts = [str(message).strip()]
    if details:
        parts.append(f"Details: {details}")
    if hint:
        parts.append(f"Hint: {hint}")
    return RuntimeError(" ".join(part for part in parts if part))


async def get_supabase_client() -> AsyncClient:
    """Get singleton async Supabase client."""
    global _client
    if _client is None:
        if not _can_connect():
            raise RuntimeError("Supabase integration not configured.")
        settings = get_settings()
        _client = await acreate_client(
            settings.supabase_url, settings.supabase_service_role_key
        )
        logger.info(f"[SUPABASE] Client created for {settings.supabase_url}")
    return _client


def set_supabase_client(client: Optional[AsyncClient]) -> None:
    """Override (or reset with None) the shared client."""
    global _client
    _client = client


async def create_auth_client() -> AsyncClient:
    """Fresh anon-key client for password sign-in.

    Signing in stores the user's session on the client, so it must never be
    the shared service-role client.
    """
    if not _can_connect():
        raise RuntimeError("Supabase integration not configured.")
    settings = get_settings()
    return await acreate_client(settings.supabase_url, settings.supabase_anon_key)
