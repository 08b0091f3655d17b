from __future__ import annotations

"""Server-side conversation memory.

Every completed turn is appended as one row; the prompt is conditioned on the
most recent turns for the exact (session, personality) pair.
"""

from typing import List

from conversation.models import MemoryEntry
from conversation.store import MEMORY_TABLE, RecordStore


DEFAULT_WINDOW = 10


class MemoryStore:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def load_recent(self, session_token: str, personality_id: str, limit: int = DEFAULT_WINDOW) -> List[MemoryEntry]:
        """Most recent turns first. No history is an empty list, not an error."""
        rows = self.store.select(
            MEMORY_TABLE,
            {"session_token": session_token, "personality_id": personality_id},
            order_by="created_at",
            descending=True,
            limit=limit,
        )
        return [MemoryEntry.from_record(row) for row in rows]

    def append(self, entry: MemoryEntry) -> MemoryEntry:
        stored = self.store.insert(MEMORY_TABLE, entry.to_record())
        return MemoryEntry.from_record(stored)
