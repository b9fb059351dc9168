"""
Derived view-state – counts, stock status, due dates, gestation projections
and financial totals computed from freshly fetched rows.

Every function here is pure: it reads the snapshot it is given, returns new
values and never writes back. Rows missing the field a computation needs are
skipped rather than failing the whole view.
"""

import math
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional

import pandas as pd

from farm_portal.config import RECENT_ITEMS, REMINDER_HORIZON_DAYS
from farm_portal.models import Dueness

Row = Dict[str, Any]

STOCK_LOW = "low"
STOCK_OK = "ok"

DUE_OVERDUE = "overdue"
DUE_SOON = "due_soon"
DUE_NOT_DUE = "not_due"

REVENUE_TYPES = ("sale", "income")
COST_TYPES = ("purchase", "expense")

# Days from breeding to birth (or hatching, for fowl).
GESTATION_DAYS = {
    "rabbit": 31,
    "guinea-pig": 68,
    "dog": 63,
    "cat": 64,
    "fowl": 21,
}


# ── Coercion helpers ─────────────────────────────────────────────────

def as_date(value: Any) -> Optional[date]:
    """Read a date from a date, datetime or ISO string; None if unusable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            return None
    return None


def as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


# ── Counting ─────────────────────────────────────────────────────────

def count_by_predicate(rows: Iterable[Row], predicate: Callable[[Row], bool]) -> int:
    return sum(1 for row in rows if predicate(row))


def has_status(*statuses: str) -> Callable[[Row], bool]:
    """Predicate matching rows whose ``status`` is one of *statuses*."""
    wanted = set(statuses)
    return lambda row: row.get("status") in wanted


# ── Inventory ────────────────────────────────────────────────────────

def compute_stock_status(item: Row) -> Optional[str]:
    """'low' when quantity is at or below the item's own threshold."""
    quantity = as_number(item.get("quantity"))
    threshold = as_number(item.get("low_stock_threshold"))
    if quantity is None or threshold is None:
        return None
    return STOCK_LOW if quantity <= threshold else STOCK_OK


def annotate_inventory(items: Iterable[Row]) -> List[Row]:
    return [{**item, "stock_status": compute_stock_status(item)} for item in items]


# ── Health / vaccination reminders ───────────────────────────────────

def compute_dueness(
    record: Row,
    today: date,
    horizon_days: int = REMINDER_HORIZON_DAYS,
) -> Optional[Dueness]:
    """
    Classify ``record['next_due_date']`` against *today*.

    overdue  – due date already passed; ``days`` is how long ago.
    due_soon – due today or within *horizon_days*; ``days`` left.
    not_due  – further out.

    Returns None for records without a usable due date.
    """
    due = as_date(record.get("next_due_date"))
    today = as_date(today)
    if due is None or today is None:
        return None

    delta = (due - today).days
    if delta < 0:
        return Dueness(DUE_OVERDUE, -delta)
    if delta <= horizon_days:
        return Dueness(DUE_SOON, delta)
    return Dueness(DUE_NOT_DUE, delta)


def _records_with_status(records, today, horizon_days, status):
    selected = []
    for record in records:
        dueness = compute_dueness(record, today, horizon_days)
        if dueness is not None and dueness.status == status:
            selected.append({**record, "due_status": dueness.status, "due_in_days": dueness.days})
    return sorted(selected, key=lambda r: as_date(r["next_due_date"]))


def upcoming_reminders(records: Iterable[Row], today: date,
                       horizon_days: int = REMINDER_HORIZON_DAYS) -> List[Row]:
    """Records due within the horizon, soonest first."""
    return _records_with_status(records, today, horizon_days, DUE_SOON)


def overdue_records(records: Iterable[Row], today: date,
                    horizon_days: int = REMINDER_HORIZON_DAYS) -> List[Row]:
    return _records_with_status(records, today, horizon_days, DUE_OVERDUE)


# ── Breeding ─────────────────────────────────────────────────────────

def normalize_species(animal_type: Any) -> Optional[str]:
    if not isinstance(animal_type, str):
        return None
    return animal_type.strip().lower().replace("_", "-").replace(" ", "-")


def compute_expected_date(start_date: Any, gestation_days: Optional[int]) -> Optional[date]:
    """start_date + gestation_days, or None when either is missing."""
    start = as_date(start_date)
    if start is None or gestation_days is None:
        return None
    return start + timedelta(days=gestation_days)


def expected_birth_for(breeding_date: Any, animal_type: Any) -> Optional[date]:
    return compute_expected_date(breeding_date, GESTATION_DAYS.get(normalize_species(animal_type)))


def annotate_breeding(records: Iterable[Row], today: date) -> List[Row]:
    """
    Add ``projected_birth`` (stored expected_birth, else the gestation
    projection) and ``days_until_birth`` for records still in progress.
    """
    today = as_date(today)
    annotated = []
    for record in records:
        projected = as_date(record.get("expected_birth")) or expected_birth_for(
            record.get("breeding_date"), record.get("animal_type")
        )
        days_until = None
        if projected is not None and today is not None and record.get("status") in ("planned", "bred"):
            days_until = (projected - today).days
        annotated.append({**record, "projected_birth": projected, "days_until_birth": days_until})
    return annotated


# ── Financials ───────────────────────────────────────────────────────

def is_revenue(transaction: Row) -> bool:
    return transaction.get("transaction_type") in REVENUE_TYPES


def is_cost(transaction: Row) -> bool:
    return transaction.get("transaction_type") in COST_TYPES


def sum_completed_by_category(transactions: Iterable[Row],
                              category_predicate: Callable[[Row], bool]) -> float:
    """Sum ``amount`` over completed transactions matching the predicate."""
    total = 0.0
    for t in transactions:
        if t.get("status") != "completed" or not category_predicate(t):
            continue
        amount = as_number(t.get("amount"))
        if amount is not None:
            total += amount
    return round(total, 2)


def financial_summary(transactions: List[Row]) -> Dict[str, Any]:
    """
    Income, expenses and net over completed transactions, plus the pending
    total and a per-category breakdown of completed amounts.
    """
    empty = {
        "total_income": 0.0,
        "total_expenses": 0.0,
        "net": 0.0,
        "pending_total": 0.0,
        "by_category": {},
        "transaction_count": 0,
    }
    if not transactions:
        return empty

    df = pd.DataFrame(transactions)
    for col in ("transaction_type", "status", "amount", "category"):
        if col not in df.columns:
            df[col] = None

    df["amount"] = pd.to_numeric(df["amount"].map(as_number), errors="coerce")
    df = df.dropna(subset=["amount"])

    income = sum_completed_by_category(transactions, is_revenue)
    expenses = sum_completed_by_category(transactions, is_cost)
    completed = df[df["status"] == "completed"]
    pending = df.loc[df["status"] == "pending", "amount"].sum()

    by_category = {}
    if not completed.empty:
        categories = completed["category"].fillna("uncategorized")
        grouped = completed.groupby(categories)["amount"].sum().round(2)
        by_category = {str(k): float(v) for k, v in grouped.items()}

    return {
        **empty,
        "total_income": income,
        "total_expenses": expenses,
        "net": round(float(income - expenses), 2),
        "pending_total": round(float(pending), 2),
        "by_category": by_category,
        "transaction_count": len(transactions),
    }


# ── Dashboard ────────────────────────────────────────────────────────

def dashboard_summary(
    animals: List[Row],
    breeding_records: List[Row],
    inventory: List[Row],
    due_records: List[Row],
    transactions: List[Row],
    today: date,
) -> Dict[str, Any]:
    """Headline numbers for the management dashboard."""
    recent = sorted(animals, key=lambda a: str(a.get("created_at") or ""), reverse=True)
    finances = financial_summary(transactions)

    return {
        "total_animals": len(animals),
        "available_animals": count_by_predicate(animals, has_status("available")),
        "breeding_animals": count_by_predicate(animals, has_status("breeding")),
        "active_breeding": count_by_predicate(breeding_records, has_status("planned", "bred")),
        "inventory_items": len(inventory),
        "low_stock_items": count_by_predicate(inventory, lambda i: compute_stock_status(i) == STOCK_LOW),
        "upcoming_reminders": len(upcoming_reminders(due_records, today)),
        "overdue_reminders": len(overdue_records(due_records, today)),
        "total_income": finances["total_income"],
        "total_expenses": finances["total_expenses"],
        "net": finances["net"],
        "recent_animals": recent[:RECENT_ITEMS],
    }
