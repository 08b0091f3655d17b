from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from config.settings import Settings
from conversation.core.memory import DEFAULT_WINDOW, MemoryStore
from conversation.core.personalities import PersonalityCatalog
from conversation.core.prompt import compose
from conversation.core.recorder import TurnRecorder
from conversation.core.sessions import SessionResolver, new_token
from conversation.errors import ConversationError, StoreError, ValidationError
from conversation.generation import GenerationClient
from conversation.models import (
    ApiError,
    ApiResponse,
    ConversationReply,
    ConversationRequest,
    GenerationConfig,
    MemoryEntry,
    PersonalityDescriptor,
    PersonalityProfile,
    utcnow,
)
from conversation.store import InMemoryRecordStore, RecordStore, SupabaseRecordStore


logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 5000
INTERNAL_ERROR_MESSAGE = "An internal error occurred while processing your conversation"


def sanitize_input(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    return text[:max_length].strip()


def iso_timestamp() -> str:
    return utcnow().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def envelope(
    success: bool,
    data: Optional[Any] = None,
    error: Optional[ApiError] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    response = ApiResponse(
        success=success,
        data=data if success else None,
        error=None if success else error,
        request_id=request_id or new_token("req"),
        timestamp=iso_timestamp(),
    )
    return response.model_dump()


def error_envelope(code: str, message: str, details: Optional[Any] = None, request_id: Optional[str] = None) -> Dict[str, Any]:
    return envelope(False, error=ApiError(code=code, message=message, details=details), request_id=request_id)


class ConversationService:
    """Runs one inbound message through the memory-augmented reply pipeline.

    Order: validate, look up the personality, resolve the session, load the
    memory window, compose, generate, record. Validation and unknown
    personalities are reported precisely; every other failure collapses into
    one opaque ``INTERNAL_ERROR``.
    """

    def __init__(
        self,
        personalities: PersonalityCatalog,
        sessions: SessionResolver,
        memory: MemoryStore,
        recorder: TurnRecorder,
        generator: GenerationClient,
        generation_config: Optional[GenerationConfig] = None,
        max_message_length: int = MAX_MESSAGE_LENGTH,
        memory_window: int = DEFAULT_WINDOW,
        composer: Callable[[PersonalityProfile, Sequence[MemoryEntry], str], str] = compose,
    ) -> None:
        self.personalities = personalities
        self.sessions = sessions
        self.memory = memory
        self.recorder = recorder
        self.generator = generator
        self.generation_config = generation_config or GenerationConfig()
        self.max_message_length = max_message_length
        self.memory_window = memory_window
        self.composer = composer

    def handle(self, payload: Any, request_id: Optional[str] = None) -> Tuple[int, Dict[str, Any]]:
        """Return ``(http_status, envelope)`` for a decoded request body."""
        request_id = request_id or new_token("req")
        try:
            reply = self.converse(payload)
        except ConversationError as exc:
            if exc.status >= 500:
                logger.exception("Conversation handler error (request_id=%s): %s", request_id, exc)
                return 500, error_envelope("INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE, request_id=request_id)
            logger.info("Rejected request %s: %s %s", request_id, exc.code, exc.message)
            return exc.status, error_envelope(exc.code, exc.message, exc.details, request_id=request_id)
        except Exception as exc:
            logger.exception("Conversation handler error (request_id=%s): %s", request_id, exc)
            return 500, error_envelope("INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE, request_id=request_id)

        return 200, envelope(True, reply.model_dump(), request_id=request_id)

    def parse(self, payload: Any) -> Tuple[ConversationRequest, str]:
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        try:
            request = ConversationRequest.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError(
                "Invalid request body",
                details=exc.errors(include_url=False, include_context=False),
            ) from exc

        message = sanitize_input(request.message or "", self.max_message_length)
        if not message or not request.personality_id:
            raise ValidationError("Missing required fields: message, personality_id")
        return request, message

    def converse(self, payload: Any) -> ConversationReply:
        request, message = self.parse(payload)

        personality = self.personalities.get(request.personality_id)
        session = self.sessions.resolve(request.session_token)
        window = self.memory.load_recent(session.token, personality.id, limit=self.memory_window)
        logger.info(
            "Conversation: session=%s personality=%s new_session=%s memory_turns=%s message_len=%s",
            session.token,
            personality.id,
            session.created,
            len(window),
            len(message),
        )

        prompt = self.composer(personality, window, message)
        ai_response = self.generator.generate(prompt, self.generation_config)

        try:
            self.recorder.record(session, personality, message, ai_response)
        except StoreError as exc:
            # The reply is still returned; this turn's memory may be lost.
            logger.exception("Turn not fully recorded for session %s: %s", session.token, exc)

        return ConversationReply(
            message=ai_response,
            session_token=session.token,
            personality=PersonalityDescriptor(id=personality.id, name=personality.name),
        )


@lru_cache(maxsize=1)
def _local_store() -> InMemoryRecordStore:
    # Only for STORE_BACKEND=memory; lives as long as the process.
    return InMemoryRecordStore()


def build_record_store(settings: Settings) -> RecordStore:
    backend = settings.store_backend.lower()
    if backend == "memory":
        return _local_store()
    if backend == "supabase":
        return SupabaseRecordStore(settings.supabase_url, settings.supabase_key, timeout=settings.store_timeout)
    raise StoreError(f"Unknown STORE_BACKEND: {settings.store_backend}")


def build_service(settings: Settings, store: Optional[RecordStore] = None) -> ConversationService:
    if store is None:
        store = build_record_store(settings)
    memory = MemoryStore(store)
    return ConversationService(
        personalities=PersonalityCatalog(store),
        sessions=SessionResolver(store),
        memory=memory,
        recorder=TurnRecorder(store, memory),
        generator=GenerationClient(
            api_key=settings.google_api_key,
            model=settings.gemini_model,
            timeout=settings.generation_timeout,
        ),
        generation_config=GenerationConfig(
            temperature=settings.temperature,
            top_p=settings.top_p,
            top_k=settings.top_k,
            max_output_tokens=settings.max_output_tokens,
        ),
        max_message_length=settings.max_message_length,
        memory_window=settings.memory_window,
    )
