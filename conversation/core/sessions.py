from __future__ import annotations

import logging
import random
import string
import time
from datetime import datetime
from typing import Callable, Optional

from conversation.errors import StoreConflictError, StoreError
from conversation.models import Session, utcnow
from conversation.store import SESSIONS_TABLE, RecordStore


logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def random_suffix(length: int = 9) -> str:
    return "".join(random.choice(_BASE36) for _ in range(length))


def new_token(prefix: str) -> str:
    """Time component plus random suffix; unique with high probability only."""
    return f"{prefix}_{int(time.time() * 1000)}_{random_suffix()}"


class SessionResolver:
    """Get-or-create for caller sessions."""

    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = utcnow) -> None:
        self.store = store
        self.clock = clock

    def resolve(self, token: Optional[str] = None) -> Session:
        token = token or new_token("session")
        record = self.store.get(SESSIONS_TABLE, {"session_token": token})
        if record:
            return Session.from_record(record)

        now = self.clock()
        session = Session(token=token, first_seen=now, last_active=now, turn_count=1, created=True)
        try:
            stored = self.store.insert(SESSIONS_TABLE, session.to_record())
        except StoreConflictError:
            # Lost a create race for the same token; the other writer's row wins.
            record = self.store.get(SESSIONS_TABLE, {"session_token": token})
            if not record:
                raise StoreError(f"Session {token} conflicted on insert but could not be read back")
            logger.info("Session %s created concurrently, reusing existing row", token)
            return Session.from_record(record)

        logger.info("Created session %s", token)
        resolved = Session.from_record(stored)
        resolved.created = True
        return resolved
