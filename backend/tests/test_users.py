import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from backoffice.models.enums import BulkUserAction, UserRole
from backoffice.schemas.common import DataProviderError
from backoffice.schemas.user import UserCreate, UserFilters
from backoffice.services.data_provider import DataProvider
from backoffice.services.functions import EdgeFunctionError
from backoffice.services.query_cache import QueryCache
from backoffice.services.users import (
    UserService,
    calculate_lock_time_remaining,
    can_be_vip,
    is_account_lock_expired,
    process_expired_locks,
    tab_filters,
    to_db_filters,
    user_stats,
)

from fakes import FakeAPIError, FakeSupabase

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeFunctions:
    def __init__(self, fail_invalidate=False, unlock_response=None):
        self.calls = []
        self.fail_invalidate = fail_invalidate
        self.unlock_response = unlock_response or {"success": True, "message": "Account unlocked"}

    async def create_user(self, payload, access_token=None):
        self.calls.append(("create-user", payload))
        return {"user": {"id": "new-user"}, "profile": {"id": "new-user", **payload}}

    async def invalidate_user_session(self, user_id, access_token=None):
        self.calls.append(("invalidate-user-session", user_id))
        if self.fail_invalidate:
            raise EdgeFunctionError("invalidate-user-session", 500, "boom")
        return {"success": True}

    async def unlock_user(self, user_id, access_token=None):
        self.calls.append(("unlock-user", user_id))
        return self.unlock_response


def _service(tables=None, functions=None):
    client = FakeSupabase(tables)
    provider = DataProvider(client, QueryCache())
    return client, UserService(provider, functions=functions or FakeFunctions())


def _iso(dt):
    return dt.isoformat()


def test_lock_expiry_rules():
    past = {"account_locked": True, "locked_until": _iso(NOW - timedelta(minutes=1))}
    future = {"account_locked": True, "locked_until": _iso(NOW + timedelta(hours=2))}
    permanent = {"account_locked": True, "locked_until": None}

    assert is_account_lock_expired(past, NOW)
    assert not is_account_lock_expired(future, NOW)
    assert not is_account_lock_expired(permanent, NOW)
    assert not is_account_lock_expired({"account_locked": False, "locked_until": past["locked_until"]}, NOW)


def test_process_expired_locks_only_clears_expired_rows():
    rows = [
        {"id": "a", "account_locked": True, "locked_until": _iso(NOW - timedelta(days=1)), "lock_reason": "spam"},
        {"id": "b", "account_locked": True, "locked_until": None, "lock_reason": "fraud"},
    ]

    processed = process_expired_locks(rows, NOW)

    assert processed[0]["account_locked"] is False
    assert processed[0]["lock_reason"] is None
    assert processed[1] == rows[1]


def test_lock_time_remaining_formats():
    assert calculate_lock_time_remaining(None, NOW) == "permanent"
    assert calculate_lock_time_remaining(_iso(NOW - timedelta(minutes=5)), NOW) == "expired"
    assert calculate_lock_time_remaining(_iso(NOW + timedelta(minutes=125)), NOW) == "2h 5m"
    assert calculate_lock_time_remaining(_iso(NOW + timedelta(minutes=42)), NOW) == "42m"


def test_toolbar_and_tab_filters():
    filters = UserFilters(role=UserRole.TRAVELER, status="locked", subscription="standard")

    assert to_db_filters(filters) == {
        "role": "traveler",
        "account_locked": True,
        "vip_subscription": False,
    }
    assert tab_filters("all") == {"role__neq": "admin", "deleted_at": "IS_NULL"}
    assert tab_filters("deleted") == {"deleted_at": "NOT_NULL"}
    with pytest.raises(ValueError):
        tab_filters("everyone")


def test_user_stats_ignores_deleted_and_admins_for_active():
    stats = user_stats(
        [
            {"role": "traveler", "profile_validated": True, "vip_subscription": True},
            {"role": "admin", "profile_validated": True},
            {"role": "traveler", "profile_validated": False},
            {"role": "traveler", "profile_validated": True, "deleted_at": "2024-01-01"},
        ]
    )

    assert stats.total == 3
    assert stats.active == 1
    assert stats.pending_validations == 1
    assert stats.vip == 1
    assert can_be_vip("Tenant")
    assert not can_be_vip("service_provider")


def test_list_users_shows_expired_locks_as_unlocked():
    client, service = _service(
        {
            "profiles": [
                {"id": "u1", "role": "traveler", "deleted_at": None, "account_locked": True,
                 "locked_until": "2000-01-01T00:00:00+00:00", "created_at": "2024-01-01"},
                {"id": "u2", "role": "admin", "deleted_at": None, "created_at": "2024-01-02"},
            ]
        }
    )

    result = asyncio.run(service.list_users(tab="all"))

    assert [row["id"] for row in result.items] == ["u1"]
    assert result.items[0]["account_locked"] is False


def test_lock_account_writes_lock_and_survives_session_failure():
    functions = FakeFunctions(fail_invalidate=True)
    client, service = _service({"profiles": [{"id": "u1", "account_locked": False}]}, functions)

    result = asyncio.run(service.lock_account("u1", duration_minutes=30, reason="Abuse", admin_id="admin"))

    row = client.tables["profiles"][0]
    assert row["account_locked"] is True
    assert row["lock_reason"] == "Abuse"
    assert row["locked_until"] is not None
    assert result.session_invalidated is False
    audit = client.tables["audit_logs"][0]
    assert audit["action"] == "account_locked"
    assert audit["metadata"]["session_invalidated"] is False


def test_permanent_lock_has_no_end_date():
    client, service = _service({"profiles": [{"id": "u1"}]})

    result = asyncio.run(service.lock_account("u1", permanent=True))

    assert result.locked_until is None
    assert client.tables["profiles"][0]["locked_until"] is None
    assert result.lock_reason == "Locked by an administrator"


def test_unlock_failure_from_function_raises():
    functions = FakeFunctions(unlock_response={"success": False, "error": "User not found"})
    _, service = _service({"profiles": [{"id": "u1"}]}, functions)

    with pytest.raises(EdgeFunctionError) as excinfo:
        asyncio.run(service.unlock_account("u1"))
    assert excinfo.value.message == "User not found"


def test_unlock_expired_accounts_clears_and_audits():
    client, service = _service(
        {
            "profiles": [
                {"id": "old", "account_locked": True, "locked_until": _iso(NOW - timedelta(hours=1))},
                {"id": "new", "account_locked": True, "locked_until": _iso(NOW + timedelta(hours=1))},
                {"id": "forever", "account_locked": True, "locked_until": None},
            ]
        }
    )

    unlocked = asyncio.run(service.unlock_expired_accounts(NOW))

    assert unlocked == 1
    by_id = {row["id"]: row for row in client.tables["profiles"]}
    assert by_id["old"]["account_locked"] is False
    assert by_id["new"]["account_locked"] is True
    assert by_id["forever"]["account_locked"] is True
    assert client.tables["audit_logs"][0]["metadata"]["actor_type"] == "system"


def test_bulk_action_reports_partial_failures():
    client, service = _service({"profiles": [{"id": "u1"}, {"id": "u3"}]})

    result = asyncio.run(service.bulk_action(BulkUserAction.SET_VIP, ["u1", "u2", "u3"], admin_id="admin"))

    assert result.succeeded == ["u1", "u3"]
    assert [f.id for f in result.failed] == ["u2"]
    assert not result.success
    assert all(row["vip_subscription"] for row in client.tables["profiles"])
    audit = client.tables["audit_logs"][0]
    assert audit["action"] == "bulk_action"
    assert audit["metadata"]["failed"] == 1


def test_bulk_action_continues_after_remote_error():
    client, service = _service({"profiles": [{"id": "u1"}, {"id": "u2"}]})
    updates = iter([FakeAPIError("deadlock detected"), None])
    client.failures[("profiles", "update")] = lambda: next(updates)

    result = asyncio.run(service.bulk_action(BulkUserAction.VALIDATE, ["u1", "u2"]))

    assert result.succeeded == ["u2"]
    assert result.failed[0].error == "deadlock detected"


def test_change_role_requires_role():
    _, service = _service({"profiles": [{"id": "u1"}]})

    with pytest.raises(ValueError):
        asyncio.run(service.bulk_action(BulkUserAction.CHANGE_ROLE, ["u1"]))


def test_create_user_goes_through_function_and_audits():
    functions = FakeFunctions()
    client, service = _service({"profiles": []}, functions)
    data = UserCreate(email="new@example.com", role=UserRole.SERVICE_PROVIDER, full_name="New Provider")

    created = asyncio.run(service.create_user(data, admin_id="admin"))

    assert created["user"]["id"] == "new-user"
    assert functions.calls[0][1]["role"] == "service_provider"
    assert client.tables["audit_logs"][0]["user_id"] == "new-user"


def test_reset_password_requires_email():
    client, service = _service({"profiles": [{"id": "u1", "email": None}, {"id": "u2", "email": "b@example.com"}]})

    with pytest.raises(DataProviderError) as excinfo:
        asyncio.run(service.reset_password("u1"))
    assert excinfo.value.code == "missing_email"

    result = asyncio.run(service.reset_password("u2"))
    assert result.email == "b@example.com"
    email, options = client.auth.reset_emails[0]
    assert email == "b@example.com"
    assert options["redirect_to"].endswith("/reset-password")
