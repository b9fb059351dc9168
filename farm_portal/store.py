"""
Row-store facade over the farm tables, plus the snapshot/write protocol
used by every management view.
"""

import sys
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from farm_portal.config import MAX_RESULTS_RETURN
from farm_portal.database import COLLECTIONS
from farm_portal.models import Write, WriteResult


class StoreError(Exception):
    """A read or write rejected by the row store. The message is user-facing."""


class RowNotFound(StoreError):
    """An update or delete named an id that is not in the collection."""


def get_table(collection: str):
    table = COLLECTIONS.get(collection)
    if table is None:
        raise ValueError(f"Unknown collection: {collection}")
    return table


class RowStore:
    """select / insert / update / delete over named collections."""

    def __init__(self, engine):
        self.engine = engine

    # ── Reads ────────────────────────────────────────────────────────

    def select(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        joins: Optional[Dict[str, Tuple[str, Iterable[str]]]] = None,
        order_by: Optional[str] = None,
        limit: int = MAX_RESULTS_RETURN,
    ) -> List[Dict[str, Any]]:
        """
        Return rows of *collection* matching the equality *filters*.

        *joins* maps a foreign-key column to ``(related_collection, columns)``;
        the related row (or None) is attached under the related collection's
        name. *order_by* is a column name, prefixed with "-" for descending.
        """
        table = get_table(collection)
        stmt = select(table)

        for col, value in (filters or {}).items():
            if col not in table.c:
                raise ValueError(f"Unknown column '{col}' for {collection}")
            stmt = stmt.where(table.c[col] == value)

        if order_by:
            descending = order_by.startswith("-")
            col = order_by.lstrip("-")
            if col not in table.c:
                raise ValueError(f"Unknown column '{col}' for {collection}")
            stmt = stmt.order_by(table.c[col].desc() if descending else table.c[col])
        elif "created_at" in table.c:
            stmt = stmt.order_by(table.c.created_at.desc())

        stmt = stmt.limit(limit)

        try:
            with self.engine.connect() as conn:
                rows = [dict(r) for r in conn.execute(stmt).mappings().all()]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to fetch {collection}: {e}") from e

        for fk_col, (related, columns) in (joins or {}).items():
            self._attach_related(rows, fk_col, related, list(columns))

        return rows

    def get(self, collection: str, row_id: str) -> Optional[Dict[str, Any]]:
        rows = self.select(collection, {"id": row_id}, limit=1)
        return rows[0] if rows else None

    def _attach_related(self, rows, fk_col, related, columns):
        table = get_table(related)
        ids = {r.get(fk_col) for r in rows if r.get(fk_col)}
        found = {}
        if ids:
            stmt = select(table.c.id, *[table.c[c] for c in columns]).where(table.c.id.in_(ids))
            try:
                with self.engine.connect() as conn:
                    found = {m["id"]: dict(m) for m in conn.execute(stmt).mappings()}
            except SQLAlchemyError as e:
                raise StoreError(f"Failed to fetch {related}: {e}") from e
        for r in rows:
            r[related] = found.get(r.get(fk_col))

    # ── Writes ───────────────────────────────────────────────────────

    def insert(self, collection: str, row: Dict[str, Any]) -> Dict[str, Any]:
        table = get_table(collection)
        values = dict(row)
        values["id"] = uuid.uuid4().hex
        if "created_at" in table.c:
            values["created_at"] = datetime.utcnow()
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(table).values(**values))
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to create {collection} record: {e}") from e
        return self.get(collection, values["id"])

    def update(self, collection: str, row_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        table = get_table(collection)
        values = {k: v for k, v in patch.items() if k not in ("id", "created_at")}
        try:
            with self.engine.begin() as conn:
                if values:
                    result = conn.execute(
                        update(table).where(table.c.id == row_id).values(**values)
                    )
                    missing = result.rowcount == 0
                else:
                    missing = conn.execute(
                        select(table.c.id).where(table.c.id == row_id)
                    ).first() is None
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update {collection} record: {e}") from e
        if missing:
            raise RowNotFound(f"No {collection} record with id {row_id}")
        return self.get(collection, row_id)

    def delete(self, collection: str, row_id: str) -> None:
        table = get_table(collection)
        try:
            with self.engine.begin() as conn:
                result = conn.execute(delete(table).where(table.c.id == row_id))
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete {collection} record: {e}") from e
        if result.rowcount == 0:
            raise RowNotFound(f"No {collection} record with id {row_id}")


class CollectionView:
    """
    The client-side copy of one collection.

    ``rows`` is replaced wholesale by ``reload()``; ``submit()`` never touches
    it. After a successful write the caller reloads explicitly, after a failed
    one the previous snapshot stays as it was.
    """

    def __init__(self, store: RowStore, collection: str, filters=None, joins=None, order_by=None):
        get_table(collection)
        self.store = store
        self.collection = collection
        self.filters = filters or {}
        self.joins = joins
        self.order_by = order_by
        self.rows: List[Dict[str, Any]] = []
        self.error: Optional[str] = None

    def reload(self) -> List[Dict[str, Any]]:
        try:
            self.rows = self.store.select(
                self.collection, self.filters, joins=self.joins, order_by=self.order_by,
            )
            self.error = None
        except StoreError as e:
            print(f"[store] Reload of {self.collection} failed: {e}", file=sys.stderr)
            self.error = str(e)
        return self.rows

    def submit(self, write: Write) -> WriteResult:
        try:
            if write.op == "insert":
                row = self.store.insert(self.collection, write.data)
            elif write.op == "update":
                row = self.store.update(self.collection, write.row_id, write.data)
            elif write.op == "delete":
                self.store.delete(self.collection, write.row_id)
                row = None
            else:
                raise ValueError(f"Unknown write operation: {write.op}")
        except RowNotFound as e:
            print(f"[store] {write.op} on {self.collection} skipped: {e}", file=sys.stderr)
            return WriteResult(ok=False, error=str(e), not_found=True)
        except StoreError as e:
            print(f"[store] {write.op} on {self.collection} failed: {e}", file=sys.stderr)
            return WriteResult(ok=False, error=str(e))
        return WriteResult(ok=True, row=row)
