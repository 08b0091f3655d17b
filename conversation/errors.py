from __future__ import annotations

from typing import Any, Optional


class ConversationError(Exception):
    """Base error; carries the code and status reported at the API boundary."""

    code = "INTERNAL_ERROR"
    status = 500

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ConversationError):
    """Malformed or missing inbound fields. Raised before any side effect."""

    code = "INVALID_REQUEST"
    status = 400


class NotFoundError(ConversationError):
    code = "PERSONALITY_NOT_FOUND"
    status = 404


class GenerationUnavailable(ConversationError):
    """The generation backend was unreachable or answered with a failure."""


class EmptyCandidate(ConversationError):
    """The generation backend succeeded but returned no usable text."""


class StoreError(ConversationError):
    """Any failure reading from or writing to the record store."""


class StoreConflictError(StoreError):
    """An insert collided with an existing unique key."""
