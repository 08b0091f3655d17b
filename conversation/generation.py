from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from langchain_google_genai import ChatGoogleGenerativeAI

from conversation.errors import EmptyCandidate, GenerationUnavailable
from conversation.models import GenerationConfig


logger = logging.getLogger(__name__)


def first_text(content: Any) -> str:
    """Pull the first textual part out of a chat model's message content."""
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        for part in content:
            if isinstance(part, str) and part.strip():
                return part.strip()
            if isinstance(part, dict) and isinstance(part.get("text"), str) and part["text"].strip():
                return part["text"].strip()
    return ""


class GenerationClient:
    """Single-attempt text generation through Gemini.

    The chat model is built per call from the sampling config; nothing is
    cached between requests. Retries are disabled: a failed call surfaces
    immediately as ``GenerationUnavailable``.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        timeout: Optional[float] = None,
        model_factory: Callable[..., Any] = ChatGoogleGenerativeAI,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.model_factory = model_factory

    def build_model(self, config: GenerationConfig) -> Any:
        if not self.api_key:
            raise GenerationUnavailable("GOOGLE_API_KEY not set. Please configure it in environment or .env")
        return self.model_factory(
            model=self.model,
            google_api_key=self.api_key,
            temperature=config.temperature,
            top_p=config.top_p,
            top_k=config.top_k,
            max_output_tokens=config.max_output_tokens,
            timeout=self.timeout,
            max_retries=0,
        )

    def generate(self, prompt: str, config: GenerationConfig) -> str:
        llm = self.build_model(config)
        try:
            result = llm.invoke(prompt)
        except Exception as exc:
            raise GenerationUnavailable(f"Gemini call failed: {exc}") from exc

        text = first_text(getattr(result, "content", result))
        if not text:
            raise EmptyCandidate("No response from Gemini")
        logger.info("Gemini responded with %s chars (model=%s)", len(text), self.model)
        return text
