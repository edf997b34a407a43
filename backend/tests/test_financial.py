import asyncio
from datetime import datetime, timezone

import pytest

from backoffice.services.data_provider import DataProvider
from backoffice.services.financial import (
    FinancialService,
    calculate_financial_overview,
    calculate_monthly_data,
    calculate_owners_report,
    calculate_revenue,
    calculate_revenue_by_category,
    describe_payment,
    growth_rate,
    recent_transactions,
)
from backoffice.services.query_cache import QueryCache

from fakes import FakeSupabase

NOW = datetime(2024, 6, 15, tzinfo=timezone.utc)

BOOKINGS = [
    {"id": "b1", "property_id": "prop-1", "payment_status": "paid", "total_amount": 500,
     "commission_amount": 50, "created_at": "2024-06-02T00:00:00+00:00"},
    {"id": "b2", "property_id": "prop-1", "payment_status": "paid", "total_amount": 300,
     "commission_amount": 30, "created_at": "2024-05-10T00:00:00+00:00"},
    {"id": "b3", "property_id": "prop-2", "payment_status": "pending", "total_amount": 900,
     "commission_amount": 90, "created_at": "2024-06-03T00:00:00+00:00"},
]
SUBSCRIPTIONS = [
    {"id": "s1", "status": "active", "amount": 100, "created_at": "2024-06-01T00:00:00+00:00"},
    {"id": "s2", "status": "expired", "amount": 100, "created_at": "2024-01-01T00:00:00+00:00"},
]
REQUESTS = [
    {"id": "r1", "status": "completed", "total_amount": 200, "created_at": "2024-06-05T00:00:00+00:00",
     "service": {"is_vip_only": True}},
    {"id": "r2", "status": "completed", "total_amount": 100, "created_at": "2024-05-05T00:00:00+00:00",
     "service": {"is_vip_only": False}},
    {"id": "r3", "status": "pending", "total_amount": 999, "created_at": "2024-06-05T00:00:00+00:00"},
]
PAYMENTS = [
    {"id": "pay-refund", "status": "paid", "payment_type": "refund", "amount": 20,
     "created_at": "2024-06-06T00:00:00+00:00"},
    {"id": "pay-booking", "status": "succeeded", "payment_type": "booking", "amount": 500,
     "booking_id": "b1234567890", "payer_id": "u1", "payer": {"full_name": "Alice"},
     "stripe_payment_intent_id": "pi_1", "created_at": "2024-06-02T00:00:00+00:00"},
]


def test_calculate_revenue_keeps_subscriptions_and_services_whole():
    assert calculate_revenue(100, "subscription") == 100
    assert calculate_revenue(100, "service") == 100
    assert calculate_revenue(100, "booking") == pytest.approx(20)
    assert calculate_revenue(100, None) == pytest.approx(20)


def test_growth_rate():
    assert growth_rate(150, 100) == 50.0
    assert growth_rate(10, 0) == 0.0
    assert growth_rate(1, 3) == -66.7


def test_overview_totals():
    overview = calculate_financial_overview(PAYMENTS, BOOKINGS, SUBSCRIPTIONS, REQUESTS, NOW)

    # 50 + 30 commission, 100 subscription, 300 services
    assert overview.total_revenue == 480
    # 85% of services paid out plus the refund
    assert overview.total_expenses == 275
    assert overview.net_profit == 205
    assert overview.active_subscriptions == 1
    # June: 50 + 100 + 200 = 350; May: 30 + 100 = 130
    assert overview.revenue_growth == growth_rate(350, 130)


def test_monthly_data_covers_six_months_oldest_first():
    months = calculate_monthly_data(BOOKINGS, REQUESTS, SUBSCRIPTIONS, PAYMENTS, NOW)

    assert [m.month for m in months] == ["2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06"]
    assert months[0].label == "Jan 2024"
    june = months[-1]
    assert june.revenue == 350
    assert june.expenses == 190
    assert june.profit == 160
    may = months[-2]
    assert (may.revenue, may.expenses) == (130, 85)


def test_revenue_by_category_percentages():
    categories = {c.category: c for c in calculate_revenue_by_category(BOOKINGS, SUBSCRIPTIONS, REQUESTS)}

    assert categories["Locations"].amount == 80
    assert categories["Subscriptions"].amount == 100
    assert categories["VIP services"].amount == 200
    assert categories["Services"].amount == 100
    assert categories["VIP services"].percentage == 42


def test_revenue_by_category_without_revenue():
    assert all(c.percentage == 0 for c in calculate_revenue_by_category([], [], []))


def test_recent_transactions_newest_first():
    transactions = recent_transactions(PAYMENTS + [{"id": "old", "status": "weird"}])

    assert [t.id for t in transactions] == ["pay-refund", "pay-booking", "old"]
    booking = transactions[1]
    assert booking.type == "revenue"
    assert booking.status == "completed"
    assert booking.payment_method == "card"
    assert booking.user_name == "Alice"
    assert booking.description == "Booking payment b1234567"
    assert transactions[2].status == "pending"
    assert transactions[2].user_name == "Unknown user"


def test_describe_payment_fallbacks():
    assert describe_payment({"payment_type": "subscription"}) == "Annual subscription"
    assert describe_payment({"payment_type": "other", "service_request_id": "abcdefghij"}) == "Service transaction abcdefgh"
    assert describe_payment({}) == "Transaction"


def test_owners_report_skips_owners_without_properties():
    profiles = [
        {"id": "o1", "role": "property_owner", "full_name": "Olivia"},
        {"id": "o2", "role": "property_owner", "full_name": "No listing"},
        {"id": "o3", "role": "property_owner", "anonymized_at": "2024-01-01"},
        {"id": "t1", "role": "traveler"},
    ]
    properties = [{"id": "prop-1", "owner_id": "o1"}, {"id": "prop-3", "owner_id": "o3"}]

    reports = calculate_owners_report(profiles, properties, BOOKINGS)

    assert len(reports) == 1
    report = reports[0]
    assert report.owner_name == "Olivia"
    assert report.total_revenue == 800
    assert report.commission_earned == 80
    assert report.net_balance == 720
    assert report.subscription_fee == 100


def test_service_loads_rows_through_provider():
    client = FakeSupabase(
        {
            "payments": PAYMENTS,
            "bookings": BOOKINGS,
            "subscriptions": SUBSCRIPTIONS,
            "service_requests": REQUESTS,
        }
    )
    service = FinancialService(DataProvider(client, QueryCache()))

    overview = asyncio.run(service.overview(NOW))
    transactions = asyncio.run(service.transactions(limit=1))

    assert overview.total_revenue == 480
    assert len(transactions) == 1
