import asyncio

from backoffice.models.enums import ValidationStatus
from backoffice.schemas.property import PropertyFilters
from backoffice.services.data_provider import DataProvider
from backoffice.services.properties import PropertyService, moderation_payload, property_stats
from backoffice.services.query_cache import QueryCache

from fakes import FakeSupabase


def _service(rows):
    client = FakeSupabase({"properties": rows})
    return client, PropertyService(DataProvider(client, QueryCache()))


def test_approve_payload_stamps_validator():
    payload = moderation_payload(ValidationStatus.APPROVED, "admin-1", "Looks good")

    assert payload["validation_status"] == "approved"
    assert payload["validated_by"] == "admin-1"
    assert payload["validated_at"]
    assert payload["moderation_notes"] == "Looks good"


def test_pending_payload_clears_validation():
    payload = moderation_payload(ValidationStatus.PENDING, "admin-1")

    assert payload == {"validation_status": "pending", "validated_at": None, "validated_by": None}


def test_reject_updates_row_and_audits_owner():
    client, service = _service([{"id": "p1", "owner_id": "o1", "validation_status": "pending"}])

    row = asyncio.run(service.reject("p1", "admin-1", "Missing photos"))

    assert row["validation_status"] == "rejected"
    audit = client.tables["audit_logs"][0]
    assert audit["action"] == "property_rejected"
    assert audit["user_id"] == "o1"
    assert audit["metadata"]["notes"] == "Missing photos"


def test_bulk_approve_collects_missing_rows():
    client, service = _service([{"id": "p1"}, {"id": "p2"}])

    result = asyncio.run(service.bulk_approve(["p1", "missing", "p2"], "admin-1"))

    assert result.succeeded == ["p1", "p2"]
    assert result.failed[0].id == "missing"
    assert {r["validation_status"] for r in client.tables["properties"]} == {"approved"}


def test_bulk_delete_is_hard_delete():
    client, service = _service([{"id": "p1"}, {"id": "p2"}])

    result = asyncio.run(service.bulk_delete(["p1"]))

    assert result.success
    assert [r["id"] for r in client.tables["properties"]] == ["p2"]


def test_list_filters_by_status_and_city():
    _, service = _service(
        [
            {"id": "p1", "city": "Lyon", "validation_status": "approved", "created_at": "2024-01-01"},
            {"id": "p2", "city": "Paris", "validation_status": "approved", "created_at": "2024-01-02"},
            {"id": "p3", "city": "Lyon", "validation_status": "pending", "created_at": "2024-01-03"},
        ]
    )

    result = asyncio.run(service.list_properties(PropertyFilters(status="approved", city="lyon")))

    assert [r["id"] for r in result.items] == ["p1"]
    assert result.meta.total == 1


def test_property_stats_treat_missing_status_as_pending():
    stats = property_stats(
        [{"validation_status": "approved"}, {"validation_status": None}, {"validation_status": "rejected"}]
    )

    assert (stats.total, stats.pending, stats.approved, stats.rejected) == (3, 1, 1, 1)
