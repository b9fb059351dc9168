"""
Management sections – the role-tagged registry behind the management shell.
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from farm_portal.config import ADMIN_ONLY, STAFF_ROLES
from farm_portal.metrics import (
    annotate_breeding,
    annotate_inventory,
    dashboard_summary,
    financial_summary,
    overdue_records,
    upcoming_reminders,
)
from farm_portal.models import Identity
from farm_portal.rbac import MODE_HIDE, evaluate_access
from farm_portal.store import CollectionView, RowStore, StoreError

CATEGORIES = OrderedDict([
    ("dashboard", "Dashboard"),
    ("livestock", "Livestock Management"),
    ("business", "Business Operations"),
    ("content", "Website Content"),
    ("system", "System Settings"),
])


@dataclass(frozen=True)
class Section:
    key: str
    name: str
    category: str
    required_roles: FrozenSet[str]
    renderer: Callable[[RowStore, date], Dict[str, Any]]
    collection: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "category": self.category,
            "collection": self.collection,
        }


# ── Renderers ────────────────────────────────────────────────────────

def _load(store: RowStore, collection: str, **kwargs) -> List[Dict[str, Any]]:
    """Fetch one snapshot; a failed fetch surfaces as StoreError."""
    view = CollectionView(store, collection, **kwargs)
    rows = view.reload()
    if view.error:
        raise StoreError(view.error)
    return rows


def due_records(store: RowStore) -> List[Dict[str, Any]]:
    animal_join = {"animal_id": ("animals", ["name", "animal_type"])}
    return (
        _load(store, "health_records", joins=animal_join)
        + _load(store, "vaccinations", joins=animal_join)
    )


def render_dashboard(store: RowStore, today: date) -> Dict[str, Any]:
    return {
        "summary": dashboard_summary(
            animals=_load(store, "animals"),
            breeding_records=_load(store, "breeding_records"),
            inventory=_load(store, "inventory_items"),
            due_records=due_records(store),
            transactions=_load(store, "financial_transactions"),
            today=today,
        )
    }


def render_breeding(store: RowStore, today: date) -> Dict[str, Any]:
    return {"rows": annotate_breeding(_load(store, "breeding_records", order_by="-breeding_date"), today)}


def render_health(store: RowStore, today: date) -> Dict[str, Any]:
    due = due_records(store)
    return {
        "rows": _load(store, "health_records", order_by="-record_date",
                      joins={"animal_id": ("animals", ["name", "animal_type"])}),
        "vaccinations": _load(store, "vaccinations", order_by="-administered_date"),
        "reminders": upcoming_reminders(due, today),
        "overdue": overdue_records(due, today),
    }


def render_inventory(store: RowStore, today: date) -> Dict[str, Any]:
    items = annotate_inventory(_load(store, "inventory_items", order_by="name",
                                     joins={"supplier_id": ("suppliers", ["name"])}))
    return {"rows": items, "low_stock_count": sum(1 for i in items if i["stock_status"] == "low")}


def render_financial(store: RowStore, today: date) -> Dict[str, Any]:
    transactions = _load(
        store, "financial_transactions", order_by="-transaction_date",
        joins={
            "customer_id": ("customers", ["first_name", "last_name", "business_name"]),
            "supplier_id": ("suppliers", ["name"]),
        },
    )
    return {"rows": transactions, "totals": financial_summary(transactions)}


def rows_of(collection: str, order_by: Optional[str] = None):
    def render(store: RowStore, today: date) -> Dict[str, Any]:
        return {"rows": _load(store, collection, order_by=order_by)}
    return render


# ── Registry ─────────────────────────────────────────────────────────

SECTIONS: List[Section] = [
    Section("dashboard", "Dashboard", "dashboard", STAFF_ROLES, render_dashboard),

    Section("animals", "Animals", "livestock", STAFF_ROLES, rows_of("animals", "name"), "animals"),
    Section("breeding", "Breeding", "livestock", STAFF_ROLES, render_breeding, "breeding_records"),
    Section("health", "Health Records", "livestock", STAFF_ROLES, render_health, "health_records"),
    Section("vaccinations", "Vaccinations", "livestock", STAFF_ROLES,
            rows_of("vaccinations", "-administered_date"), "vaccinations"),
    Section("facilities", "Facilities", "livestock", STAFF_ROLES, rows_of("facilities", "name"), "facilities"),
    Section("veterinarians", "Veterinarians", "livestock", STAFF_ROLES,
            rows_of("veterinarians", "name"), "veterinarians"),

    Section("inventory", "Inventory", "business", STAFF_ROLES, render_inventory, "inventory_items"),
    Section("biproducts", "Bi-Products", "business", STAFF_ROLES, rows_of("bi_products", "name"), "bi_products"),
    Section("suppliers", "Suppliers", "business", STAFF_ROLES, rows_of("suppliers", "name"), "suppliers"),
    Section("customers", "Customers", "business", STAFF_ROLES, rows_of("customers", "last_name"), "customers"),
    Section("financial", "Financial", "business", STAFF_ROLES, render_financial, "financial_transactions"),

    Section("news", "News", "content", ADMIN_ONLY, rows_of("news", "-published_date"), "news"),

    Section("settings", "Farm Settings", "system", ADMIN_ONLY, rows_of("farm_settings"), "farm_settings"),
]

_BY_KEY = {s.key: s for s in SECTIONS}
_BY_COLLECTION = {s.collection: s for s in SECTIONS if s.collection}


def find_section(key: str) -> Optional[Section]:
    return _BY_KEY.get(key)


def section_for_collection(collection: str) -> Optional[Section]:
    return _BY_COLLECTION.get(collection)


def accessible_sections(identity: Optional[Identity]) -> List[Section]:
    """Registry entries the identity may open, in registry order."""
    return [
        s for s in SECTIONS
        if evaluate_access(identity, s.required_roles, MODE_HIDE).granted
    ]


def group_by_category(sections: List[Section]) -> List[Dict[str, Any]]:
    groups = OrderedDict((key, []) for key in CATEGORIES)
    for s in sections:
        groups[s.category].append(s.to_dict())
    return [
        {"category": key, "name": CATEGORIES[key], "sections": items}
        for key, items in groups.items() if items
    ]


def render_section(section: Section, store: RowStore, today: date) -> Dict[str, Any]:
    return {"section": section.to_dict(), **section.renderer(store, today)}
