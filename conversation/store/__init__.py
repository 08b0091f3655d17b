from conversation.store.base import (
    MEMORY_TABLE,
    PERSONALITIES_TABLE,
    SESSIONS_TABLE,
    RecordStore,
)
from conversation.store.memory import InMemoryRecordStore
from conversation.store.supabase import SupabaseRecordStore

__all__ = [
    "MEMORY_TABLE",
    "PERSONALITIES_TABLE",
    "SESSIONS_TABLE",
    "RecordStore",
    "InMemoryRecordStore",
    "SupabaseRecordStore",
]
