from __future__ import annotations

import copy
import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional

from conversation.errors import StoreConflictError
from conversation.store.base import SESSIONS_TABLE, RecordStore


class InMemoryRecordStore(RecordStore):
    """Process-local store for development and tests.

    Rows are deep-copied on the way in and out so callers cannot mutate
    stored state. Ordering ties are broken by insertion order.
    """

    def __init__(self, unique_keys: Optional[Dict[str, str]] = None) -> None:
        self._tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self._unique_keys = unique_keys if unique_keys is not None else {SESSIONS_TABLE: "session_token"}
        self._lock = threading.Lock()

    def select(
        self,
        table: str,
        filters: Dict[str, Any],
        *,
        columns: str = "*",
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        with self._lock:
            indexed = [
                (idx, row) for idx, row in enumerate(self._tables.get(table, []))
                if _matches(row, filters)
            ]
        if order_by:
            indexed.sort(key=lambda pair: (pair[1].get(order_by) or "", pair[0]), reverse=descending)
        rows = [copy.deepcopy(row) for _, row in indexed]
        if limit is not None:
            rows = rows[:limit]
        return rows

    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            key = self._unique_keys.get(table)
            if key and any(row.get(key) == record.get(key) for row in self._tables[table]):
                raise StoreConflictError(f"Duplicate {key} in {table}: {record.get(key)}")
            stored = copy.deepcopy(record)
            self._tables[table].append(stored)
            return copy.deepcopy(stored)

    def update(self, table: str, filters: Dict[str, Any], values: Dict[str, Any]) -> List[Dict[str, Any]]:
        updated = []
        with self._lock:
            for row in self._tables.get(table, []):
                if _matches(row, filters):
                    row.update(copy.deepcopy(values))
                    updated.append(copy.deepcopy(row))
        return updated

    def rows(self, table: str) -> List[Dict[str, Any]]:
        """Snapshot of every row in ``table``, in insertion order."""
        with self._lock:
            return copy.deepcopy(self._tables.get(table, []))


def _matches(row: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    return all(str(row.get(key)) == str(value) for key, value in filters.items())
