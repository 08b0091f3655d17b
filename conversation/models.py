from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _number(record: Dict[str, Any], key: str, default: float) -> float:
    value = record.get(key)
    return default if value is None else value


class Session(BaseModel):
    """Caller continuity record keyed by an opaque token."""

    token: str
    first_seen: datetime
    last_active: datetime
    turn_count: int = Field(0, ge=0)
    # Set when this request created the session; never persisted.
    created: bool = Field(False, exclude=True)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Session":
        return cls(
            token=record["session_token"],
            first_seen=record.get("first_visit") or record["last_active"],
            last_active=record["last_active"],
            turn_count=record.get("total_conversations") or 0,
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "session_token": self.token,
            "first_visit": self.first_seen.isoformat(),
            "last_active": self.last_active.isoformat(),
            "total_conversations": self.turn_count,
        }


class PersonalityProfile(BaseModel):
    """Read-only persona descriptor. Missing fields fall back at compose time."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: Optional[str] = None
    voice: Optional[str] = None
    traits: Optional[List[str]] = None
    gallery_item_id: Optional[str] = None
    title: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "PersonalityProfile":
        core = (record.get("personality_data") or {}).get("core_identity") or {}
        gallery = record.get("gallery_items") or {}
        if isinstance(gallery, list):
            gallery = gallery[0] if gallery else {}
        gallery_item_id = record.get("gallery_item_id")
        return cls(
            id=str(record["id"]),
            display_name=core.get("name"),
            voice=core.get("artistic_voice"),
            traits=core.get("personality_traits"),
            gallery_item_id=str(gallery_item_id) if gallery_item_id is not None else None,
            title=gallery.get("title"),
        )

    @property
    def name(self) -> Optional[str]:
        return self.display_name or self.title


class MemoryEntry(BaseModel):
    """One recorded turn. Immutable once written."""

    model_config = ConfigDict(frozen=True)

    session_token: str
    personality_id: str
    user_message: str
    ai_response: str
    topics: List[str] = Field(default_factory=list)
    created_at: datetime
    strength: float = Field(1.0, ge=0.0, le=1.0)
    gallery_item_id: Optional[str] = None
    emotional_tone: str = "engaged"
    user_sentiment: float = 0.5
    engagement_level: float = 0.8

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "MemoryEntry":
        gallery_item_id = record.get("gallery_item_id")
        return cls(
            session_token=record["session_token"],
            personality_id=str(record["personality_id"]),
            user_message=record.get("user_message") or "",
            ai_response=record.get("ai_response") or "",
            topics=record.get("topics_discussed") or [],
            created_at=record["created_at"],
            strength=_number(record, "memory_strength", 1.0),
            gallery_item_id=str(gallery_item_id) if gallery_item_id is not None else None,
            emotional_tone=record.get("emotional_tone") or "engaged",
            user_sentiment=_number(record, "user_sentiment", 0.5),
            engagement_level=_number(record, "ai_engagement_level", 0.8),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "session_token": self.session_token,
            "gallery_item_id": self.gallery_item_id,
            "personality_id": self.personality_id,
            "user_message": self.user_message,
            "ai_response": self.ai_response,
            "emotional_tone": self.emotional_tone,
            "topics_discussed": list(self.topics),
            "user_sentiment": self.user_sentiment,
            "ai_engagement_level": self.engagement_level,
            "memory_strength": self.strength,
            "created_at": self.created_at.isoformat(),
        }


class GenerationConfig(BaseModel):
    """Sampling policy. Fixed by server configuration, never by the caller."""

    model_config = ConfigDict(frozen=True)

    temperature: float = 0.7
    top_p: float = 0.95
    top_k: int = 40
    max_output_tokens: int = 1024


class ConversationRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: Optional[str] = None
    personality_id: Optional[str] = None
    session_token: Optional[str] = None
    # Accepted for compatibility; not used when building the reply.
    conversation_id: Optional[str] = None
    remember_context: Optional[bool] = None
    conversation_style: Optional[Literal["casual", "formal", "philosophical", "technical"]] = None


class PersonalityDescriptor(BaseModel):
    id: str
    name: Optional[str] = None


class ConversationReply(BaseModel):
    message: str
    session_token: str
    personality: PersonalityDescriptor


class ApiError(BaseModel):
    code: str
    message: str
    details: Optional[Any] = None


class ApiResponse(BaseModel):
    success: bool
    data: Optional[Any] = None
    error: Optional[ApiError] = None
    request_id: str
    timestamp: str
