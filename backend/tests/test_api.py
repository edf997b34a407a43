from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from backoffice.core.config import get_settings
from backoffice.main import app
from backoffice.routers import auth as auth_router

from fakes import FakeAPIError

ADMIN = {"Authorization": "Bearer admin-token"}


def _admin_profile(**overrides):
    profile = {
        "id": "admin-1",
        "email": "admin@example.com",
        "full_name": "Ada Admin",
        "role": "admin",
        "profile_validated": True,
        "account_locked": False,
        "locked_until": None,
    }
    profile.update(overrides)
    return profile


@pytest.fixture
def api(fake_supabase):
    fake_supabase.tables["profiles"] = [
        _admin_profile(),
        {"id": "t-1", "email": "traveler@example.com", "role": "traveler", "profile_validated": True,
         "full_name": "Tom, \"the\" Traveler", "created_at": "2024-01-01T00:00:00+00:00"},
    ]
    fake_supabase.auth.add_user("admin-1", "admin@example.com", "admin-token", password="s3cret")
    fake_supabase.auth.add_user("t-1", "traveler@example.com", "traveler-token", password="pass")
    return TestClient(app)


def test_health_needs_no_auth(api):
    response = api.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_missing_token_is_rejected(api):
    response = api.get("/v1/users")
    assert response.status_code in (401, 403)


def test_invalid_token_is_401(api):
    response = api.get("/v1/users", headers={"Authorization": "Bearer forged"})
    assert response.status_code == 401


def test_non_admin_is_403(api):
    response = api.get("/v1/users", headers={"Authorization": "Bearer traveler-token"})
    assert response.status_code == 403
    assert response.json()["detail"] == "Admin privileges required"


def test_unvalidated_admin_is_403(api, fake_supabase):
    fake_supabase.tables["profiles"][0]["profile_validated"] = False
    response = api.get("/v1/auth/me", headers=ADMIN)
    assert response.status_code == 403
    assert response.json()["detail"] == "Admin profile not validated"


def test_expired_admin_lock_is_cleared_on_access(api, fake_supabase):
    past = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()
    fake_supabase.tables["profiles"][0].update(account_locked=True, locked_until=past, lock_reason="x")

    response = api.get("/v1/auth/me", headers=ADMIN)

    assert response.status_code == 200
    assert response.json()["role"] == "admin"
    assert fake_supabase.tables["profiles"][0]["account_locked"] is False


def test_active_admin_lock_is_403(api, fake_supabase):
    future = (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat()
    fake_supabase.tables["profiles"][0].update(account_locked=True, locked_until=future)

    response = api.get("/v1/auth/me", headers=ADMIN)

    assert response.status_code == 403
    assert response.json()["detail"] == "Account is locked"


def test_login_returns_session_for_admin(api, fake_supabase, monkeypatch):
    async def auth_client():
        return fake_supabase

    monkeypatch.setattr(auth_router, "create_auth_client", auth_client)

    ok = api.post("/v1/auth/login", json={"email": "admin@example.com", "password": "s3cret"})
    assert ok.status_code == 200
    assert ok.json()["access_token"] == "token-admin-1"
    assert ok.json()["user"]["full_name"] == "Ada Admin"

    wrong = api.post("/v1/auth/login", json={"email": "admin@example.com", "password": "nope"})
    assert wrong.status_code == 401

    traveler = api.post("/v1/auth/login", json={"email": "traveler@example.com", "password": "pass"})
    assert traveler.status_code == 403


def test_login_closes_its_client_and_revokes_refused_sessions(api, fake_supabase, monkeypatch):
    async def auth_client():
        return fake_supabase

    monkeypatch.setattr(auth_router, "create_auth_client", auth_client)

    api.post("/v1/auth/login", json={"email": "admin@example.com", "password": "s3cret"})
    assert (fake_supabase.auth.closed, fake_supabase.auth.sign_outs) == (1, 0)

    api.post("/v1/auth/login", json={"email": "traveler@example.com", "password": "pass"})
    assert (fake_supabase.auth.closed, fake_supabase.auth.sign_outs) == (2, 1)


def test_unknown_user_maps_to_404(api):
    response = api.get("/v1/users/ghost", headers=ADMIN)
    assert response.status_code == 404


def test_remote_failure_maps_to_502(api, fake_supabase):
    fake_supabase.failures["payments"] = FakeAPIError("upstream timeout")
    response = api.get("/v1/payments/stats", headers=ADMIN)
    assert response.status_code == 502
    assert response.json()["detail"] == "upstream timeout"


def test_refund_of_unpaid_payment_is_400(api, fake_supabase):
    fake_supabase.tables["payments"] = [{"id": "pay-1", "status": "pending", "amount": 80}]
    response = api.post("/v1/payments/pay-1/refund", headers=ADMIN, json={})
    assert response.status_code == 400


def test_unknown_tab_is_400(api):
    response = api.get("/v1/users", params={"tab": "everyone"}, headers=ADMIN)
    assert response.status_code == 400


def test_admin_cannot_lock_themselves(api):
    response = api.post("/v1/users/admin-1/lock", headers=ADMIN, json={"duration_minutes": 10})
    assert response.status_code == 400


def test_users_export_is_a_quoted_csv_attachment(api):
    response = api.get("/v1/users/export", headers=ADMIN)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=\"users_export_" in response.headers["content-disposition"]
    body = response.content.decode("utf-8-sig")
    assert body.splitlines()[0].startswith('"Name","Email"')
    assert '"Tom, ""the"" Traveler"' in body


def test_user_tabs_count_rows(api):
    response = api.get("/v1/users/tabs", headers=ADMIN)

    counts = {tab["key"]: tab["count"] for tab in response.json()}
    assert counts["all"] == 1
    assert counts["admin"] == 1
    assert counts["deleted"] == 0


def test_form_options_unknown_resource_is_404(api):
    response = api.get("/v1/forms/planets/options", headers=ADMIN)
    assert response.status_code == 404


def test_scheduled_cleanup_needs_token(api, monkeypatch):
    monkeypatch.delenv("CLEANUP_API_TOKEN", raising=False)
    get_settings.cache_clear()

    response = api.post("/v1/gdpr/scheduled-cleanup", headers=ADMIN)

    assert response.status_code == 503


def test_invalid_payment_filters_are_422(api):
    response = api.get(
        "/v1/payments", params={"min_amount": 50, "max_amount": 10}, headers=ADMIN
    )
    assert response.status_code == 422
