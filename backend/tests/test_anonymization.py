import asyncio
from datetime import datetime, timezone

from backoffice.models.enums import AnonymizationLevel, DeletionReason
from backoffice.services.anonymization import (
    AnonymizationService,
    anonymized_personal_fields,
    calculate_purge_date,
    generate_anonymous_id,
)
from backoffice.services.data_provider import DataProvider
from backoffice.services.query_cache import QueryCache

from fakes import FakeAPIError, FakeSupabase


def _tables():
    return {
        "profiles": [{"id": "u1", "email": "alice@example.com", "full_name": "Alice", "phone": "0600"}],
        "bookings": [{"id": "b1", "user_id": "u1"}, {"id": "b2", "user_id": "u2"}],
        "payments": [{"id": "pay-1", "user_id": "u1"}],
        "reviews": [{"id": "r1", "user_id": "u1"}],
    }


def _service(tables):
    client = FakeSupabase(tables)
    return client, AnonymizationService(DataProvider(client, QueryCache()))


def test_anonymous_id_shape():
    anonymous_id = generate_anonymous_id()
    assert anonymous_id.startswith("anon_")

    fields = anonymized_personal_fields("anon_1_abcdef123")
    assert fields["email"] == "anon_1_abcdef123@anonymized.local"
    assert fields["full_name"] == "Anonymized User def123"
    assert fields["phone"] is None


def test_partial_anonymization_keeps_business_rows():
    client, service = _service(_tables())

    result = asyncio.run(service.anonymize_user("u1", DeletionReason.USER_REQUEST, admin_id="admin"))

    assert result.success
    profile = client.tables["profiles"][0]
    assert profile["email"].endswith("@anonymized.local")
    assert profile["phone"] is None
    assert profile["deleted_at"]
    assert profile["anonymization_level"] == "partial"
    assert len(client.tables["bookings"]) == 2
    assert client.tables["bookings"][0]["anonymous_user_id"] == result.anonymous_id
    assert "anonymous_user_id" not in client.tables["bookings"][1]
    assert client.tables["audit_logs"][0]["action"] == "user_anonymized"


def test_full_anonymization_purges_all_but_accounting():
    client, service = _service(_tables())

    result = asyncio.run(
        service.anonymize_user("u1", DeletionReason.GDPR_COMPLIANCE, AnonymizationLevel.FULL)
    )

    assert result.success
    assert [b["id"] for b in client.tables["bookings"]] == ["b2"]
    assert client.tables["reviews"] == []
    assert client.tables["payments"][0]["anonymous_user_id"] == result.anonymous_id


def test_failure_is_reported_not_raised():
    client, service = _service(_tables())
    client.failures[("profiles", "update")] = FakeAPIError("permission denied")

    result = asyncio.run(service.anonymize_user("u1", DeletionReason.ADMIN_DECISION))

    assert not result.success
    assert result.error == "permission denied"
    assert "audit_logs" not in client.tables


def test_a_failing_business_table_is_skipped():
    client, service = _service(_tables())
    client.failures[("notifications", "update")] = FakeAPIError("relation does not exist")

    result = asyncio.run(service.anonymize_user("u1", DeletionReason.INACTIVITY))

    assert result.success
    assert "notifications" not in result.tables_processed
    assert "bookings" in result.tables_processed


def test_restore_clears_markers():
    tables = _tables()
    tables["profiles"][0].update(deleted_at="2024-01-01", anonymous_id="anon_x", anonymization_level="partial")
    client, service = _service(tables)

    asyncio.run(service.restore_user("u1"))

    profile = client.tables["profiles"][0]
    assert profile["deleted_at"] is None
    assert profile["anonymous_id"] is None


def test_purge_goes_through_rpc():
    client, service = _service({})
    client.rpc_results["execute_gdpr_purges"] = {"purged": 2}
    client.rpc_results["preview_pending_purges"] = None

    assert asyncio.run(service.execute_purges()) == {"purged": 2}
    assert asyncio.run(service.preview_pending_purges()) == []


def test_purge_date_depends_on_reason():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    assert calculate_purge_date(DeletionReason.GDPR_COMPLIANCE, now) == now
    assert calculate_purge_date(DeletionReason.USER_REQUEST, now) == datetime(2024, 1, 31, tzinfo=timezone.utc)
    assert (calculate_purge_date(DeletionReason.TERMS_VIOLATION, now) - now).days == 1095
    assert (calculate_purge_date(DeletionReason.INACTIVITY, now) - now).days == 2555


def test_anonymization_schedules_the_final_purge():
    client, service = _service(_tables())

    result = asyncio.run(service.anonymize_user("u1", DeletionReason.USER_REQUEST))

    assert result.scheduled_purge_at
    assert result.preserved_data_until
    [purge] = client.tables["scheduled_purges"]
    assert purge["user_id"] == "u1"
    assert purge["status"] == "pending"
    assert purge["scheduled_for"] == result.scheduled_purge_at
    assert client.tables["profiles"][0]["scheduled_purge_at"] == result.scheduled_purge_at


def test_full_anonymization_preserves_nothing():
    _, service = _service(_tables())

    result = asyncio.run(service.anonymize_user("u1", DeletionReason.GDPR_COMPLIANCE, AnonymizationLevel.FULL))

    assert result.preserved_data_until is None


def test_a_failed_purge_schedule_does_not_fail_anonymization():
    client, service = _service(_tables())
    client.failures[("scheduled_purges", "insert")] = FakeAPIError("relation does not exist")

    result = asyncio.run(service.anonymize_user("u1", DeletionReason.INACTIVITY))

    assert result.success


def test_failed_personal_data_step_undoes_the_deletion():
    client, service = _service(_tables())
    profile_updates = iter([None, FakeAPIError("statement timeout")])
    client.failures[("profiles", "update")] = lambda: next(profile_updates, None)

    result = asyncio.run(service.anonymize_user("u1", DeletionReason.ADMIN_DECISION))

    assert not result.success
    assert result.error == "statement timeout"
    profile = client.tables["profiles"][0]
    assert profile["email"] == "alice@example.com"
    assert profile["deleted_at"] is None
    assert profile["scheduled_purge_at"] is None
    assert "scheduled_purges" not in client.tables


def test_restore_cancels_pending_purges():
    tables = _tables()
    tables["data_purge_tasks"] = [
        {"id": "t1", "user_id": "u1", "status": "pending"},
        {"id": "t2", "user_id": "u1", "status": "done"},
        {"id": "t3", "user_id": "u2", "status": "pending"},
    ]
    client, service = _service(tables)

    asyncio.run(service.restore_user("u1"))

    assert [t["status"] for t in client.tables["data_purge_tasks"]] == ["cancelled", "done", "pending"]
