from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List

from conversation.core.memory import MemoryStore
from conversation.errors import StoreError
from conversation.models import MemoryEntry, PersonalityProfile, Session, utcnow
from conversation.store import SESSIONS_TABLE, RecordStore


logger = logging.getLogger(__name__)

TOPIC_LEXICON = (
    "art",
    "creativity",
    "inspiration",
    "color",
    "emotion",
    "beauty",
    "meaning",
    "life",
    "expression",
)

# Placeholder scores; nothing derives them yet.
EMOTIONAL_TONE = "engaged"
USER_SENTIMENT = 0.5
ENGAGEMENT_LEVEL = 0.8
MEMORY_STRENGTH = 1.0


def extract_topics(message: str) -> List[str]:
    """Lexicon topics found as substrings of any word, in lexicon order."""
    words = message.lower().split()
    return [topic for topic in TOPIC_LEXICON if any(topic in word for word in words)]


class TurnRecorder:
    def __init__(
        self,
        store: RecordStore,
        memory: MemoryStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.memory = memory
        self.clock = clock

    def record(
        self,
        session: Session,
        personality: PersonalityProfile,
        user_message: str,
        ai_response: str,
    ) -> MemoryEntry:
        """Append the turn, then bump the session counter.

        Both writes must land for the turn to be durable; a failure in either,
        including a stored row that does not parse, raises ``StoreError``. A
        session created by this same request already counts the turn, so its
        counter is left as is.
        """
        now = self.clock()
        entry = MemoryEntry(
            session_token=session.token,
            personality_id=personality.id,
            gallery_item_id=personality.gallery_item_id,
            user_message=user_message,
            ai_response=ai_response,
            topics=extract_topics(user_message),
            created_at=now,
            strength=MEMORY_STRENGTH,
            emotional_tone=EMOTIONAL_TONE,
            user_sentiment=USER_SENTIMENT,
            engagement_level=ENGAGEMENT_LEVEL,
        )
        turn_count = session.turn_count if session.created else session.turn_count + 1
        try:
            stored = self.memory.append(entry)
            rows = self.store.update(
                SESSIONS_TABLE,
                {"session_token": session.token},
                {"last_active": now.isoformat(), "total_conversations": turn_count},
            )
        except StoreError:
            raise
        except Exception as exc:
            raise StoreError(f"Could not record turn for session {session.token}: {exc}") from exc
        if not rows:
            raise StoreError(f"Session {session.token} vanished before its counter could be updated")

        logger.info(
            "Recorded turn: session=%s personality=%s topics=%s turns=%s",
            session.token,
            personality.id,
            stored.topics,
            turn_count,
        )
        return stored
