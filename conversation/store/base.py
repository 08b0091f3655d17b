from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


SESSIONS_TABLE = "user_sessions"
MEMORY_TABLE = "conversation_memory"
PERSONALITIES_TABLE = "artwork_personalities"


class RecordStore(ABC):
    """Minimal record store: equality filters, one ordering column, a limit.

    Implementations raise ``StoreError`` (or ``StoreConflictError`` for a
    unique-key collision on insert) and nothing else.
    """

    @abstractmethod
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
        ...

    @abstractmethod
    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    def update(self, table: str, filters: Dict[str, Any], values: Dict[str, Any]) -> List[Dict[str, Any]]:
        ...

    def get(self, table: str, filters: Dict[str, Any], *, columns: str = "*") -> Optional[Dict[str, Any]]:
        rows = self.select(table, filters, columns=columns, limit=1)
        return rows[0] if rows else None
