from __future__ import annotations

from typing import Sequence

from conversation.models import MemoryEntry, PersonalityProfile


DEFAULT_NAME = "AI Artwork"
DEFAULT_VOICE = "contemplative"
DEFAULT_TRAITS = ("thoughtful", "creative")

PERSONA_PROMPT = "You are {name}, embodying a {voice} consciousness with {traits} characteristics."

SYSTEM_PROMPT = (
    "Respond authentically as this AI artwork personality. "
    "Keep responses conversational and engaging, typically 1-3 sentences."
)


def persona_line(profile: PersonalityProfile) -> str:
    return PERSONA_PROMPT.format(
        name=profile.display_name or DEFAULT_NAME,
        voice=profile.voice or DEFAULT_VOICE,
        traits=", ".join(profile.traits or DEFAULT_TRAITS),
    )


def render_history(window: Sequence[MemoryEntry]) -> str:
    # The store hands back newest first; the transcript reads oldest first.
    return "\n\n".join(
        f"User: {entry.user_message}\nAI: {entry.ai_response}" for entry in reversed(window)
    )


def compose(profile: PersonalityProfile, window: Sequence[MemoryEntry], message: str) -> str:
    """Build the single generation prompt for one turn.

    Pure: identical inputs give identical output. The "Previous conversation"
    block is left out entirely when ``window`` is empty.
    """
    sections = [persona_line(profile)]
    if window:
        sections.append(f"Previous conversation:\n{render_history(window)}")
    sections.append(SYSTEM_PROMPT)
    sections.append(f"User: {message}")
    sections.append("AI:")
    return "\n\n".join(sections)
