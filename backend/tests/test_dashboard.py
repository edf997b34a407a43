import asyncio
from datetime import datetime, timezone

from backoffice.services.dashboard import ACTIVITY_LIMIT, DashboardService, activity_sources
from backoffice.services.data_provider import DataProvider
from backoffice.services.query_cache import QueryCache

from fakes import FakeAPIError, FakeSupabase

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def _service(tables):
    client = FakeSupabase(tables)
    return client, DashboardService(DataProvider(client, QueryCache()))


def test_ten_activity_sources():
    names = [source.name for source in activity_sources(NOW)]
    assert len(names) == 10
    assert "overdue payments" in names


def test_stats_use_platform_revenue():
    _, service = _service(
        {
            "properties": [{"id": "p1", "validated_at": None}, {"id": "p2", "validated_at": "2024-06-01"}],
            "profiles": [
                {"id": "u1", "role": "service_provider", "profile_validated": False, "deleted_at": None},
                {"id": "u2", "role": "traveler", "profile_validated": True, "account_locked": False,
                 "deleted_at": None},
                {"id": "u3", "role": "admin", "profile_validated": True, "account_locked": False,
                 "deleted_at": None},
            ],
            "payments": [
                {"id": "a", "status": "paid", "payment_type": "booking", "amount": 100,
                 "created_at": "2024-06-03T00:00:00+00:00"},
                {"id": "b", "status": "succeeded", "payment_type": "subscription", "amount": 100,
                 "created_at": "2024-06-04T00:00:00+00:00"},
                {"id": "c", "status": "paid", "payment_type": "booking", "amount": 999,
                 "created_at": "2024-05-30T00:00:00+00:00"},
                {"id": "d", "status": "pending", "payment_type": "service", "amount": 999,
                 "created_at": "2024-06-05T00:00:00+00:00"},
            ],
        }
    )

    stats = asyncio.run(service.fetch_stats(NOW))

    assert stats.pending_validations == 1
    assert stats.moderation_cases == 1
    assert stats.active_users == 1
    assert stats.monthly_revenue == 120


def test_activities_are_merged_newest_first_and_capped():
    properties = [
        {"id": f"p{i}", "title": f"Flat {i}", "city": "Lyon", "validated_at": None,
         "created_at": f"2024-06-{i + 1:02d}T00:00:00+00:00"}
        for i in range(8)
    ]
    payments = [
        {"id": "late", "status": "pending", "amount": 50, "processed_at": None,
         "created_at": "2024-06-10T00:00:00+00:00"},
        {"id": "fail", "status": "failed", "failure_reason": "Card declined", "amount": 20,
         "created_at": "2024-06-14T00:00:00+00:00"},
    ]
    client, service = _service({"properties": properties, "payments": payments})
    client.failures["chat_reports"] = FakeAPIError("relation does not exist")

    activities = asyncio.run(service.fetch_recent_activities(NOW))

    assert len(activities) <= ACTIVITY_LIMIT
    assert activities[0].type == "failed_payment"
    assert activities[0].description == "Card declined"
    types = [a.type for a in activities]
    assert types.count("property") == 5
    overdue = next(a for a in activities if a.type == "overdue_payment")
    assert "5 day(s)" in overdue.description


def test_chart_data_covers_six_months():
    _, service = _service(
        {
            "payments": [
                {"status": "paid", "payment_type": "booking", "amount": 100,
                 "created_at": "2024-04-10T00:00:00+00:00"},
            ],
            "profiles": [
                {"profile_validated": True, "created_at": "2024-06-01T00:00:00+00:00"},
                {"profile_validated": True, "created_at": "2024-06-02T00:00:00+00:00"},
                {"profile_validated": False, "created_at": "2024-06-02T00:00:00+00:00"},
            ],
        }
    )

    charts = asyncio.run(service.fetch_chart_data(NOW))

    assert [p.month for p in charts.revenue][0] == "2024-01"
    assert charts.revenue[3].value == 20
    assert charts.user_growth[-1].value == 2
    assert charts.user_growth[-1].label == "Jun"


def test_a_failing_activity_source_is_skipped_and_logged(caplog):
    client, service = _service(
        {
            "properties": [
                {"id": "p1", "title": "Loft", "city": "Nantes", "validated_at": None,
                 "created_at": "2024-06-10T00:00:00+00:00"},
            ],
            "chat_reports": [
                {"id": "r1", "status": "pending", "reason": "spam",
                 "created_at": "2024-06-14T00:00:00+00:00"},
            ],
        }
    )
    client.failures[("chat_reports", "select")] = FakeAPIError("permission denied")

    with caplog.at_level("WARNING"):
        activities = asyncio.run(service.fetch_recent_activities(NOW))

    assert [a.type for a in activities] == ["property"]
    assert "Skipping chat reports" in caplog.text

    del client.failures[("chat_reports", "select")]
    service.provider.cache.clear()
    activities = asyncio.run(service.fetch_recent_activities(NOW))
    assert [a.type for a in activities] == ["chat_report", "property"]
