import asyncio
import json

import httpx
import pytest
from fastapi import HTTPException

from backoffice.core.errors import to_http_exception
from backoffice.schemas.common import DataProviderError
from backoffice.services.functions import EdgeFunctionError, EdgeFunctionsClient


def _client(handler):
    return EdgeFunctionsClient(transport=httpx.MockTransport(handler))


def test_invoke_posts_json_with_caller_token():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["apikey"] = request.headers["apikey"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    result = asyncio.run(_client(handler).invalidate_user_session("u1", access_token="admin-jwt"))

    assert result == {"success": True}
    assert seen["url"] == "https://project.supabase.co/functions/v1/invalidate-user-session"
    assert seen["auth"] == "Bearer admin-jwt"
    assert seen["apikey"] == "anon-key"
    assert seen["body"] == {"userId": "u1"}


def test_error_message_comes_from_json_error_field():
    def handler(request):
        return httpx.Response(404, json={"error": "User not found"})

    with pytest.raises(EdgeFunctionError) as excinfo:
        asyncio.run(_client(handler).unlock_user("ghost"))

    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "User not found"
    assert excinfo.value.is_client_error


def test_transport_error_has_no_status():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(EdgeFunctionError) as excinfo:
        asyncio.run(_client(handler).invalidate_user_session("u1"))

    assert excinfo.value.status_code is None
    assert not excinfo.value.is_client_error


def test_empty_body_is_empty_dict():
    result = asyncio.run(_client(lambda request: httpx.Response(204)).scheduled_cleanup("token"))
    assert result == {}


def _status(exc):
    http_exc = to_http_exception(exc)
    assert isinstance(http_exc, HTTPException)
    return http_exc.status_code


def test_error_mapping():
    assert _status(EdgeFunctionError("unlock-user", 404, "User not found")) == 404
    assert _status(EdgeFunctionError("create-user", 500, "boom")) == 502
    assert _status(EdgeFunctionError("create-user", None, "timeout")) == 502
    assert _status(DataProviderError("profiles x not found", "not_found")) == 404
    assert _status(DataProviderError("Only paid payments can be refunded", "invalid_state")) == 400
    assert _status(DataProviderError("permission denied", "42501")) == 502
    assert _status(RuntimeError("unexpected")) == 500
