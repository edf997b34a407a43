"""
Supabase Edge Functions client.

Provides:
- create-user (invitation + profile)
- lock-user / unlock-user
- invalidate-user-session
- scheduled-cleanup (GDPR purge)
"""

import logging
from typing import Any, Optional

import httpx

from backoffice.core.config import get_settings

logger = logging.getLogger(__name__)


class EdgeFunctionError(Exception):
    """Non-2xx answer or transport failure from an edge function."""

    def __init__(self, name: str, status_code: Optional[int], message: str):
        super().__init__(f"{name}: {message}")
        self.name = name
        self.status_code = status_code
        self.message = message

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        if body.get("error"):
            return str(body["error"])
        if body.get("message"):
            return str(body["message"])
    return response.text or f"HTTP {response.status_code}"


class EdgeFunctionsClient:
    """Client for the project's hosted edge functions."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        settings = get_settings()
        self.base_url = settings.functions_url
        self.api_key = settings.supabase_anon_key
        self.timeout = settings.functions_timeout_seconds
        self._transport = transport

    async def invoke(
        self,
        name: str,
        payload: Optional[dict[str, Any]] = None,
        access_token: Optional[str] = None,
    ) -> dict[str, Any]:
        """POST `payload` to a function and return its JSON body."""
        headers = {"apikey": self.api_key, "Content-Type": "application/json"}
        headers["Authorization"] = f"Bearer {access_token or self.api_key}"

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/{name}",
                    json=payload or {},
                    headers=headers,
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            logger.warning(f"[FUNCTIONS] {name} transport error: {e}")
            raise EdgeFunctionError(name, None, str(e) or e.__class__.__name__) from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(f"[FUNCTIONS] {name} failed: {response.status_code} {message}")
            raise EdgeFunctionError(name, response.status_code, message)

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise EdgeFunctionError(name, response.status_code, "Invalid JSON response") from e
        return data if isinstance(data, dict) else {"data": data}

    async def create_user(self, payload: dict[str, Any], access_token: Optional[str] = None) -> dict[str, Any]:
        """Invite a user and create the matching profile. Returns {user, profile}."""
        return await self.invoke("create-user", payload, access_token)

    async def unlock_user(self, user_id: str, access_token: Optional[str] = None) -> dict[str, Any]:
        return await self.invoke("unlock-user", {"userId": user_id}, access_token)

    async def invalidate_user_session(self, user_id: str, access_token: Optional[str] = None) -> dict[str, Any]:
        return await self.invoke("invalidate-user-session", {"userId": user_id}, access_token)

    async def scheduled_cleanup(self, token: str) -> dict[str, Any]:
        """Trigger the GDPR purge job; `token` is the cleanup API token."""
        return await self.invoke("scheduled-cleanup", {}, token)


# Singleton instance
_functions_client: Optional[EdgeFunctionsClient] = None


def get_functions_client() -> EdgeFunctionsClient:
    """Get singleton edge functions client instance."""
    global _functions_client
    if _functions_client is None:
        _functions_client = EdgeFunctionsClient()
    return _functions_client


def set_functions_client(client: Optional[EdgeFunctionsClient]) -> None:
    global _functions_client
    _functions_client = client
