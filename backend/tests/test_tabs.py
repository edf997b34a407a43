import pytest

from backoffice.services.tabs import count_for_tab, tab_configs, tab_counts

USERS = [
    {"role": "traveler"},
    {"role": "traveler", "deleted_at": "2024-02-01"},
    {"role": "admin"},
    {"role": "service_provider"},
]


def test_users_all_excludes_admins_and_deleted():
    assert count_for_tab("users", "all", USERS) == 2
    assert count_for_tab("users", "deleted", USERS) == 1
    assert count_for_tab("users", "traveler", USERS) == 1
    assert count_for_tab("users", "admin", USERS) == 1


def test_all_counts_every_row_elsewhere():
    rows = [{"status": "paid"}, {"status": "failed"}, {"status": "paid"}]
    assert count_for_tab("payments", "all", rows) == 3
    assert count_for_tab("payments", "paid", rows) == 2


def test_boolean_backed_tabs():
    services = [{"is_active": True}, {"is_active": False}, {}]
    assert count_for_tab("services", "active", services) == 1
    assert count_for_tab("services", "inactive", services) == 2

    providers = [{"profile_validated": True}, {"profile_validated": None}]
    assert count_for_tab("providers", "pending", providers) == 1


def test_tab_counts_keep_config_order():
    counts = tab_counts("properties", [{"validation_status": "pending"}])

    assert [t.key for t in counts] == ["all", "pending", "approved", "rejected"]
    assert [t.count for t in counts] == [1, 1, 0, 0]
    assert counts[1].color == "warning"


def test_service_request_tabs_cover_every_status():
    keys = [t.key for t in tab_configs("service_requests")]
    assert keys[0] == "all"
    assert "disputed" in keys


def test_unknown_area():
    with pytest.raises(ValueError):
        tab_configs("planets")
