"""
Unit tests for derived view-state – stock, dueness, gestation and finances.
"""

from datetime import date, datetime

import pytest

from farm_portal.metrics import (
    DUE_NOT_DUE,
    DUE_OVERDUE,
    DUE_SOON,
    GESTATION_DAYS,
    STOCK_LOW,
    STOCK_OK,
    annotate_breeding,
    annotate_inventory,
    as_date,
    compute_dueness,
    compute_expected_date,
    compute_stock_status,
    count_by_predicate,
    dashboard_summary,
    expected_birth_for,
    financial_summary,
    has_status,
    is_cost,
    is_revenue,
    overdue_records,
    sum_completed_by_category,
    upcoming_reminders,
)

TODAY = date(2024, 6, 1)


# ── Tests: counting ──────────────────────────────────────────────────

def test_count_by_predicate():
    animals = [{"status": "available"}, {"status": "sold"}, {"status": "available"}, {}]
    assert count_by_predicate(animals, has_status("available")) == 2
    assert count_by_predicate(animals, has_status("available", "sold")) == 3
    assert count_by_predicate([], has_status("available")) == 0


# ── Tests: stock status ──────────────────────────────────────────────

@pytest.mark.parametrize("quantity,threshold,expected", [
    (5, 10, STOCK_LOW),
    (10, 10, STOCK_LOW),
    (11, 10, STOCK_OK),
    (0, 0, STOCK_LOW),
    ("3", "2.5", STOCK_OK),
])
def test_stock_status_boundary(quantity, threshold, expected):
    assert compute_stock_status({"quantity": quantity, "low_stock_threshold": threshold}) == expected


def test_stock_status_missing_fields():
    assert compute_stock_status({"quantity": 4}) is None
    assert compute_stock_status({"low_stock_threshold": 4}) is None
    assert compute_stock_status({"quantity": "lots", "low_stock_threshold": 4}) is None


def test_annotate_inventory_does_not_mutate_input():
    items = [{"name": "Hay", "quantity": 2, "low_stock_threshold": 5}]
    annotated = annotate_inventory(items)
    assert annotated[0]["stock_status"] == STOCK_LOW
    assert "stock_status" not in items[0]


# ── Tests: dueness ───────────────────────────────────────────────────

def test_dueness_overdue():
    d = compute_dueness({"next_due_date": date(2024, 5, 29)}, TODAY)
    assert d.status == DUE_OVERDUE
    assert d.days == 3


def test_dueness_due_today_is_soon():
    d = compute_dueness({"next_due_date": "2024-06-01"}, TODAY)
    assert d.status == DUE_SOON
    assert d.days == 0


def test_dueness_horizon_boundary():
    assert compute_dueness({"next_due_date": date(2024, 7, 1)}, TODAY).status == DUE_SOON
    assert compute_dueness({"next_due_date": date(2024, 7, 2)}, TODAY).status == DUE_NOT_DUE


def test_dueness_custom_horizon():
    record = {"next_due_date": date(2024, 6, 10)}
    assert compute_dueness(record, TODAY, horizon_days=7).status == DUE_NOT_DUE
    assert compute_dueness(record, TODAY, horizon_days=9).status == DUE_SOON


def test_dueness_without_due_date():
    assert compute_dueness({"next_due_date": None}, TODAY) is None
    assert compute_dueness({}, TODAY) is None
    assert compute_dueness({"next_due_date": "not a date"}, TODAY) is None


def test_reminders_and_overdue_are_sorted_and_disjoint():
    records = [
        {"id": "a", "next_due_date": date(2024, 6, 20)},
        {"id": "b", "next_due_date": date(2024, 6, 3)},
        {"id": "c", "next_due_date": date(2024, 5, 1)},
        {"id": "d", "next_due_date": date(2024, 5, 20)},
        {"id": "e", "next_due_date": date(2024, 12, 1)},
        {"id": "f", "next_due_date": None},
    ]
    upcoming = upcoming_reminders(records, TODAY)
    overdue = overdue_records(records, TODAY)

    assert [r["id"] for r in upcoming] == ["b", "a"]
    assert [r["id"] for r in overdue] == ["c", "d"]
    assert upcoming[0]["due_in_days"] == 2
    assert overdue[0]["due_status"] == DUE_OVERDUE


# ── Tests: gestation ─────────────────────────────────────────────────

def test_expected_date_rabbit():
    assert expected_birth_for("2024-01-01", "rabbit") == date(2024, 2, 1)


def test_expected_date_guinea_pig():
    assert expected_birth_for(date(2024, 1, 1), "guinea-pig") == date(2024, 3, 9)
    assert expected_birth_for(date(2024, 1, 1), "Guinea Pig") == date(2024, 3, 9)


def test_expected_date_all_species_known():
    assert set(GESTATION_DAYS) == {"rabbit", "guinea-pig", "dog", "cat", "fowl"}
    assert expected_birth_for("2024-01-01", "fowl") == date(2024, 1, 22)


def test_expected_date_invalid_inputs():
    assert compute_expected_date("", 31) is None
    assert compute_expected_date("2024-13-45", 31) is None
    assert compute_expected_date("2024-01-01junk", 31) is None
    assert compute_expected_date("2024-01-01 not a date", 31) is None
    assert compute_expected_date("2024-01-01", None) is None
    assert expected_birth_for("2024-01-01", "horse") is None
    assert expected_birth_for(None, "rabbit") is None


def test_annotate_breeding_prefers_stored_date():
    records = [
        {"breeding_date": date(2024, 5, 20), "animal_type": "rabbit", "status": "bred"},
        {"breeding_date": date(2024, 5, 20), "animal_type": "rabbit", "status": "bred",
         "expected_birth": date(2024, 6, 25)},
        {"breeding_date": date(2024, 1, 1), "animal_type": "rabbit", "status": "born"},
    ]
    out = annotate_breeding(records, TODAY)
    assert out[0]["projected_birth"] == date(2024, 6, 20)
    assert out[0]["days_until_birth"] == 19
    assert out[1]["projected_birth"] == date(2024, 6, 25)
    assert out[2]["days_until_birth"] is None


# ── Tests: financials ────────────────────────────────────────────────

TRANSACTIONS = [
    {"transaction_type": "sale", "amount": 100, "status": "completed", "category": "animals"},
    {"transaction_type": "purchase", "amount": 40, "status": "completed", "category": "feed"},
    {"transaction_type": "sale", "amount": 999, "status": "pending", "category": "animals"},
]


def test_revenue_and_cost_predicates():
    assert is_revenue({"transaction_type": "income"})
    assert is_cost({"transaction_type": "expense"})
    assert not is_revenue({"transaction_type": "purchase"})


def test_sum_completed_by_category():
    assert sum_completed_by_category(TRANSACTIONS, is_revenue) == 100.0
    assert sum_completed_by_category(TRANSACTIONS, is_cost) == 40.0


def test_financial_summary_excludes_pending():
    summary = financial_summary(TRANSACTIONS)
    assert summary["total_income"] == 100.0
    assert summary["total_expenses"] == 40.0
    assert summary["net"] == 60.0
    assert summary["pending_total"] == 999.0
    assert summary["by_category"] == {"animals": 100.0, "feed": 40.0}
    assert summary["transaction_count"] == 3


def test_financial_summary_empty():
    summary = financial_summary([])
    assert summary["net"] == 0.0
    assert summary["by_category"] == {}


def test_financial_summary_skips_bad_amounts():
    rows = [
        {"transaction_type": "income", "amount": "12.5", "status": "completed"},
        {"transaction_type": "income", "amount": None, "status": "completed"},
        {"transaction_type": "income", "amount": "n/a", "status": "completed"},
    ]
    summary = financial_summary(rows)
    assert summary["total_income"] == 12.5
    assert summary["by_category"] == {"uncategorized": 12.5}


def test_non_finite_amounts_are_skipped():
    rows = [
        {"transaction_type": "sale", "amount": 10, "status": "completed"},
        {"transaction_type": "sale", "amount": "nan", "status": "completed"},
        {"transaction_type": "expense", "amount": "inf", "status": "completed"},
    ]
    assert sum_completed_by_category(rows, is_revenue) == 10.0
    assert sum_completed_by_category(rows, is_cost) == 0.0
    summary = financial_summary(rows)
    assert summary["total_income"] == 10.0
    assert summary["total_expenses"] == 0.0
    assert summary["by_category"] == {"uncategorized": 10.0}


def test_summary_totals_match_completed_sums():
    summary = financial_summary(TRANSACTIONS)
    assert summary["total_income"] == sum_completed_by_category(TRANSACTIONS, is_revenue)
    assert summary["total_expenses"] == sum_completed_by_category(TRANSACTIONS, is_cost)


def test_financial_summary_is_idempotent():
    assert financial_summary(TRANSACTIONS) == financial_summary(TRANSACTIONS)


# ── Tests: dashboard ─────────────────────────────────────────────────

def test_dashboard_summary():
    animals = [
        {"name": "A", "status": "available", "created_at": datetime(2024, 1, 1)},
        {"name": "B", "status": "breeding", "created_at": datetime(2024, 3, 1)},
        {"name": "C", "status": "sold", "created_at": datetime(2024, 2, 1)},
    ]
    summary = dashboard_summary(
        animals=animals,
        breeding_records=[{"status": "bred"}, {"status": "born"}],
        inventory=[{"quantity": 1, "low_stock_threshold": 5}, {"quantity": 9, "low_stock_threshold": 5}],
        due_records=[{"next_due_date": date(2024, 6, 5)}, {"next_due_date": date(2024, 5, 5)}],
        transactions=TRANSACTIONS,
        today=TODAY,
    )
    assert summary["total_animals"] == 3
    assert summary["available_animals"] == 1
    assert summary["breeding_animals"] == 1
    assert summary["active_breeding"] == 1
    assert summary["low_stock_items"] == 1
    assert summary["upcoming_reminders"] == 1
    assert summary["overdue_reminders"] == 1
    assert summary["net"] == 60.0
    assert [a["name"] for a in summary["recent_animals"]] == ["B", "C", "A"]


def test_as_date_accepts_datetime_and_iso():
    assert as_date(datetime(2024, 1, 2, 10, 0)) == date(2024, 1, 2)
    assert as_date("2024-01-02T10:00:00") == date(2024, 1, 2)
    assert as_date("") is None
    assert as_date("2024-01-02junk") is None
    assert as_date("2024-01-02 10:00:00") == date(2024, 1, 2)
