from __future__ import annotations

from conversation.errors import NotFoundError
from conversation.models import PersonalityProfile
from conversation.store import PERSONALITIES_TABLE, RecordStore


class PersonalityCatalog:
    """Read-only lookup of artwork personalities and their gallery item."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def get(self, personality_id: str) -> PersonalityProfile:
        record = self.store.get(
            PERSONALITIES_TABLE,
            {"id": personality_id},
            columns="*,gallery_items(*)",
        )
        if not record:
            raise NotFoundError("AI personality not found")
        return PersonalityProfile.from_record(record)
