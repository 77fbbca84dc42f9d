"""Record store abstraction over Supabase tables, with an in-process fallback."""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any, Iterable, Iterator, Optional, Protocol, Sequence

from ..config import settings
from ..db.supabase import get_supabase_client

logger = logging.getLogger(__name__)

# (column, operator, value) with operator one of eq, neq, in, gte, lte
Filter = tuple[str, str, Any]

_OPERATORS = {"eq", "neq", "in", "gte", "lte"}

# Unique column appended to ordered reads so offset pages stay stable across ties.
TIEBREAK_COLUMN = "id"


class StoreError(RuntimeError):
    """A read or write against the record store failed."""


class RecordStore(Protocol):
    def select_all(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        *,
        columns: str = "*",
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> list[dict[str, Any]]: ...

    def insert(self, table: str, records: Sequence[dict[str, Any]]) -> int: ...

    def upsert(
        self,
        table: str,
        records: Sequence[dict[str, Any]],
        on_conflict: str,
        *,
        ignore_duplicates: bool = False,
    ) -> int: ...

    def update(self, table: str, values: dict[str, Any], filters: Sequence[Filter]) -> None: ...

    def delete(self, table: str, filters: Sequence[Filter]) -> None: ...


def _chunks(records: Sequence[dict[str, Any]], size: int) -> Iterator[Sequence[dict[str, Any]]]:
    for start in range(0, len(records), size):
        yield records[start:start + size]


def _check_filters(filters: Iterable[Filter]) -> None:
    for column, operator, _ in filters:
        if operator not in _OPERATORS:
            raise ValueError(f"Unsupported filter operator '{operator}' on column '{column}'")


class SupabaseRecordStore:
    """Paginated reads and chunked writes against Supabase/PostgREST."""

    def __init__(self, client: Any, page_size: int | None = None, batch_size: int | None = None) -> None:
        self.client = client
        self.page_size = page_size or settings.store_page_size
        self.batch_size = batch_size or settings.store_write_batch_size

    @staticmethod
    def _apply(query: Any, filters: Sequence[Filter]) -> Any:
        for column, operator, value in filters:
            if operator == "eq":
                query = query.eq(column, value)
            elif operator == "neq":
                query = query.neq(column, value)
            elif operator == "in":
                query = query.in_(column, list(value))
            elif operator == "gte":
                query = query.gte(column, value)
            elif operator == "lte":
                query = query.lte(column, value)
        return query

    def select_all(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        *,
        columns: str = "*",
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> list[dict[str, Any]]:
        _check_filters(filters)
        rows: list[dict[str, Any]] = []
        offset = 0
        while True:
            try:
                query = self._apply(self.client.table(table).select(columns), filters)
                if order_by:
                    query = query.order(order_by, desc=not ascending)
                    if order_by != TIEBREAK_COLUMN:
                        query = query.order(TIEBREAK_COLUMN)
                response = query.range(offset, offset + self.page_size - 1).execute()
            except Exception as exc:
                raise StoreError(f"Failed to read '{table}' at offset {offset}: {exc}") from exc
            page = response.data or []
            rows.extend(page)
            if len(page) < self.page_size:
                break
            offset += self.page_size
        logger.debug(f"Read {len(rows)} rows from '{table}'")
        return rows

    def insert(self, table: str, records: Sequence[dict[str, Any]]) -> int:
        written = 0
        for number, batch in enumerate(_chunks(records, self.batch_size), start=1):
            try:
                self.client.table(table).insert(list(batch)).execute()
            except Exception as exc:
                raise StoreError(f"Failed to insert batch {number} into '{table}': {exc}") from exc
            written += len(batch)
        return written

    def upsert(
        self,
        table: str,
        records: Sequence[dict[str, Any]],
        on_conflict: str,
        *,
        ignore_duplicates: bool = False,
    ) -> int:
        written = 0
        for number, batch in enumerate(_chunks(records, self.batch_size), start=1):
            try:
                self.client.table(table).upsert(
                    list(batch), on_conflict=on_conflict, ignore_duplicates=ignore_duplicates
                ).execute()
            except Exception as exc:
                raise StoreError(f"Failed to upsert batch {number} into '{table}': {exc}") from exc
            written += len(batch)
        return written

    def update(self, table: str, values: dict[str, Any], filters: Sequence[Filter]) -> None:
        if not filters:
            raise ValueError("Refusing to update every row without a filter.")
        _check_filters(filters)
        try:
            self._apply(self.client.table(table).update(values), filters).execute()
        except Exception as exc:
            raise StoreError(f"Failed to update '{table}': {exc}") from exc

    def delete(self, table: str, filters: Sequence[Filter]) -> None:
        if not filters:
            raise ValueError("PostgREST requires a filter for deletes.")
        _check_filters(filters)
        try:
            self._apply(self.client.table(table).delete(), filters).execute()
        except Exception as exc:
            raise StoreError(f"Failed to delete from '{table}': {exc}") from exc


def _matches(record: dict[str, Any], filters: Sequence[Filter]) -> bool:
    for column, operator, value in filters:
        current = record.get(column)
        if operator == "eq" and current != value:
            return False
        if operator == "neq" and current == value:
            return False
        if operator == "in" and current not in set(value):
            return False
        if operator == "gte" and (current is None or current < value):
            return False
        if operator == "lte" and (current is None or current > value):
            return False
    return True


class MemoryRecordStore:
    """Process-local tables with the same contract as :class:`SupabaseRecordStore`."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self._next_id = 1

    def _table(self, table: str) -> list[dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def _with_id(self, record: dict[str, Any]) -> dict[str, Any]:
        stored = deepcopy(record)
        if stored.get("id") is None:
            stored["id"] = self._next_id
            self._next_id += 1
        return stored

    def select_all(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        *,
        columns: str = "*",
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> list[dict[str, Any]]:
        _check_filters(filters)
        rows = [deepcopy(row) for row in self._table(table) if _matches(row, filters)]
        if order_by:
            present = [row for row in rows if row.get(order_by) is not None]
            missing = [row for row in rows if row.get(order_by) is None]
            present.sort(key=lambda row: row[order_by], reverse=not ascending)
            rows = present + missing
        if columns != "*":
            wanted = [name.strip() for name in columns.split(",")]
            rows = [{name: row.get(name) for name in wanted} for row in rows]
        return rows

    def insert(self, table: str, records: Sequence[dict[str, Any]]) -> int:
        rows = self._table(table)
        for record in records:
            rows.append(self._with_id(record))
        return len(records)

    def upsert(
        self,
        table: str,
        records: Sequence[dict[str, Any]],
        on_conflict: str,
        *,
        ignore_duplicates: bool = False,
    ) -> int:
        keys = [name.strip() for name in on_conflict.split(",")]
        rows = self._table(table)
        for record in records:
            identity = tuple(record.get(key) for key in keys)
            existing = next((row for row in rows if tuple(row.get(key) for key in keys) == identity), None)
            if existing is None:
                rows.append(self._with_id(record))
            elif not ignore_duplicates:
                existing.update(deepcopy(record))
        return len(records)

    def update(self, table: str, values: dict[str, Any], filters: Sequence[Filter]) -> None:
        if not filters:
            raise ValueError("Refusing to update every row without a filter.")
        _check_filters(filters)
        for row in self._table(table):
            if _matches(row, filters):
                row.update(deepcopy(values))

    def delete(self, table: str, filters: Sequence[Filter]) -> None:
        if not filters:
            raise ValueError("PostgREST requires a filter for deletes.")
        _check_filters(filters)
        self.tables[table] = [row for row in self._table(table) if not _matches(row, filters)]


_fallback_store: MemoryRecordStore | None = None


def get_record_store() -> RecordStore:
    """Supabase when configured, otherwise a process-local store."""
    global _fallback_store
    client = get_supabase_client()
    if client is not None:
        return SupabaseRecordStore(client)
    if _fallback_store is None:
        logger.warning("Supabase not configured - using in-memory record store (data is not persisted)")
        _fallback_store = MemoryRecordStore()
    return _fallback_store
