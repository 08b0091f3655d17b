"""Shared fixtures: an in-memory store seeded with personalities, a fake
Gemini chat model, and a deterministic clock."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import pytest
from langchain_core.messages import AIMessage

from conversation.core.memory import MemoryStore
from conversation.core.personalities import PersonalityCatalog
from conversation.core.recorder import TurnRecorder
from conversation.core.sessions import SessionResolver
from conversation.generation import GenerationClient
from conversation.orchestrator import ConversationService
from conversation.store import PERSONALITIES_TABLE, InMemoryRecordStore


STARRY_NIGHT = {
    "id": "P1",
    "gallery_item_id": "G1",
    "personality_data": {
        "core_identity": {
            "name": "Starry Night",
            "artistic_voice": "swirling",
            "personality_traits": ["dreamy", "restless"],
        }
    },
    "gallery_items": {"id": "G1", "title": "The Starry Night"},
}

UNTITLED = {
    "id": "P2",
    "gallery_item_id": "G2",
    "personality_data": {},
    "gallery_items": {"id": "G2", "title": "Untitled No. 5"},
}


class FakeClock:
    """Returns a strictly increasing UTC time, one second per call."""

    def __init__(self, start: datetime = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


class CountingStore(InMemoryRecordStore):
    """In-memory store that counts writes and can be told to fail them."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.writes: List[str] = []
        self.fail_on: Dict[Any, Exception] = {}

    def insert(self, table, record):
        if ("insert", table) in self.fail_on:
            raise self.fail_on[("insert", table)]
        self.writes.append(f"insert:{table}")
        return super().insert(table, record)

    def update(self, table, filters, values):
        if ("update", table) in self.fail_on:
            raise self.fail_on[("update", table)]
        self.writes.append(f"update:{table}")
        return super().update(table, filters, values)


class FakeChatModel:
    def __init__(self, reply: Any = "I'm doing well, thank you!", error: Exception = None):
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    def invoke(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if isinstance(self.reply, AIMessage):
            return self.reply
        return AIMessage(content=self.reply)


class FakeModelFactory:
    """Stands in for ChatGoogleGenerativeAI; remembers constructor kwargs."""

    def __init__(self, model: FakeChatModel = None):
        self.model = model or FakeChatModel()
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        return self.model

    @property
    def prompts(self) -> List[str]:
        return self.model.prompts


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    store = CountingStore()
    InMemoryRecordStore.insert(store, PERSONALITIES_TABLE, STARRY_NIGHT)
    InMemoryRecordStore.insert(store, PERSONALITIES_TABLE, UNTITLED)
    return store


@pytest.fixture
def model_factory():
    return FakeModelFactory()


@pytest.fixture
def generator(model_factory):
    return GenerationClient(api_key="test-key", model="gemini-test", timeout=5, model_factory=model_factory)


@pytest.fixture
def memory(store):
    return MemoryStore(store)


@pytest.fixture
def resolver(store, clock):
    return SessionResolver(store, clock=clock)


@pytest.fixture
def recorder(store, memory, clock):
    return TurnRecorder(store, memory, clock=clock)


@pytest.fixture
def service(store, memory, resolver, recorder, generator):
    return ConversationService(
        personalities=PersonalityCatalog(store),
        sessions=resolver,
        memory=memory,
        recorder=recorder,
        generator=generator,
    )
