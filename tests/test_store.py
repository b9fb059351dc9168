"""
Unit tests for the row store and the snapshot/write protocol.
"""

from datetime import date

import pytest

from farm_portal.models import Write
from farm_portal.store import CollectionView, RowNotFound, RowStore, StoreError, get_table


# ── Helpers / Fakes ──────────────────────────────────────────────────

class FlakyStore:
    """Wraps a RowStore; flips to failing every call once ``broken`` is set."""
    def __init__(self, inner):
        self.inner = inner
        self.broken = False

    def _guard(self):
        if self.broken:
            raise StoreError("row store unavailable")

    def select(self, *args, **kwargs):
        self._guard()
        return self.inner.select(*args, **kwargs)

    def insert(self, *args, **kwargs):
        self._guard()
        return self.inner.insert(*args, **kwargs)

    def update(self, *args, **kwargs):
        self._guard()
        return self.inner.update(*args, **kwargs)

    def delete(self, *args, **kwargs):
        self._guard()
        return self.inner.delete(*args, **kwargs)


def add_animal(store, name, **extra):
    row = {"name": name, "animal_type": "rabbit", "gender": "female", "status": "available"}
    row.update(extra)
    return store.insert("animals", row)


@pytest.fixture
def store(engine):
    return RowStore(engine)


# ── Tests: RowStore ──────────────────────────────────────────────────

def test_get_table_unknown():
    with pytest.raises(ValueError, match="Unknown collection"):
        get_table("users")


def test_insert_assigns_id_and_created_at(store):
    row = add_animal(store, "Clover", date_of_birth=date(2023, 4, 1))
    assert len(row["id"]) == 32
    assert row["created_at"] is not None
    assert row["date_of_birth"] == date(2023, 4, 1)


def test_select_filters_and_orders(store):
    add_animal(store, "Bramble")
    add_animal(store, "Acorn")
    add_animal(store, "Sold One", status="sold")

    names = [r["name"] for r in store.select("animals", {"status": "available"}, order_by="name")]
    assert names == ["Acorn", "Bramble"]

    names = [r["name"] for r in store.select("animals", order_by="-name")]
    assert names == ["Sold One", "Bramble", "Acorn"]


def test_select_unknown_column(store):
    with pytest.raises(ValueError, match="Unknown column"):
        store.select("animals", {"colour": "brown"})


def test_select_attaches_related_rows(store):
    supplier = store.insert("suppliers", {"name": "Feed Co"})
    store.insert("inventory_items", {"name": "Hay", "category": "feed", "unit": "bale",
                                     "quantity": 3, "low_stock_threshold": 5,
                                     "supplier_id": supplier["id"]})
    store.insert("inventory_items", {"name": "Straw", "category": "bedding", "unit": "bale",
                                     "quantity": 9, "low_stock_threshold": 5})

    rows = store.select("inventory_items", joins={"supplier_id": ("suppliers", ["name"])}, order_by="name")
    assert rows[0]["suppliers"] == {"id": supplier["id"], "name": "Feed Co"}
    assert rows[1]["suppliers"] is None


def test_update_and_delete(store):
    row = add_animal(store, "Pip")
    updated = store.update("animals", row["id"], {"status": "sold", "id": "ignored"})
    assert updated["status"] == "sold"
    assert updated["id"] == row["id"]

    store.delete("animals", row["id"])
    assert store.get("animals", row["id"]) is None


def test_update_missing_row(store):
    with pytest.raises(RowNotFound, match="No animals record"):
        store.update("animals", "nope", {"status": "sold"})


def test_delete_missing_row(store):
    with pytest.raises(RowNotFound, match="No animals record"):
        store.delete("animals", "nope")


def test_insert_constraint_violation_is_store_error(store):
    with pytest.raises(StoreError, match="Failed to create animals"):
        store.insert("animals", {"animal_type": "rabbit"})


# ── Tests: CollectionView ────────────────────────────────────────────

def test_reload_replaces_snapshot(store):
    view = CollectionView(store, "animals", order_by="name")
    assert view.reload() == []

    add_animal(store, "Willow")
    assert [r["name"] for r in view.reload()] == ["Willow"]
    assert view.error is None


def test_submit_does_not_touch_rows_until_reload(store):
    view = CollectionView(store, "animals")
    view.reload()

    result = view.submit(Write("insert", data={"name": "Moss", "animal_type": "cat",
                                               "gender": "male", "status": "available"}))
    assert result.ok
    assert result.row["name"] == "Moss"
    assert view.rows == []

    assert [r["name"] for r in view.reload()] == ["Moss"]


def test_failed_write_keeps_previous_snapshot(store):
    add_animal(store, "Hazel")
    view = CollectionView(store, "animals")
    before = view.reload()

    result = view.submit(Write("update", data={"status": "sold"}, row_id="missing"))
    assert not result.ok
    assert "No animals record" in result.error
    assert result.not_found
    assert view.rows == before


def test_failed_reload_keeps_previous_snapshot(store, capsys):
    add_animal(store, "Fern")
    flaky = FlakyStore(store)
    view = CollectionView(flaky, "animals")
    before = view.reload()

    flaky.broken = True
    assert view.reload() == before
    assert view.error == "row store unavailable"
    assert "[store] Reload of animals failed" in capsys.readouterr().err

    flaky.broken = False
    view.reload()
    assert view.error is None


def test_delete_through_view(store):
    row = add_animal(store, "Rowan")
    view = CollectionView(store, "animals")
    assert view.submit(Write("delete", row_id=row["id"])).ok
    assert view.reload() == []


def test_unknown_write_op(store):
    view = CollectionView(store, "animals")
    with pytest.raises(ValueError, match="Unknown write operation"):
        view.submit(Write("upsert", data={}))
