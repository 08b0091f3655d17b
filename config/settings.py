from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here. Components receive
    what they need at construction and never read the environment directly.
    """

    app_env: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    google_api_key: Optional[str] = os.getenv("GOOGLE_API_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.7"))
    top_p: float = float(os.getenv("MODEL_TOP_P", "0.95"))
    top_k: int = int(os.getenv("MODEL_TOP_K", "40"))
    max_output_tokens: int = int(os.getenv("MODEL_MAX_OUTPUT_TOKENS", "1024"))
    generation_timeout: float = float(os.getenv("GENERATION_TIMEOUT_SECONDS", "30"))

    # "memory" keeps one process-wide store and loses it on restart; development only.
    store_backend: str = os.getenv("STORE_BACKEND", "supabase")
    supabase_url: Optional[str] = os.getenv("SUPABASE_URL")
    supabase_key: Optional[str] = os.getenv("SUPABASE_ANON_KEY")
    store_timeout: float = float(os.getenv("STORE_TIMEOUT_SECONDS", "10"))

    max_message_length: int = int(os.getenv("MAX_MESSAGE_LENGTH", "5000"))
    memory_window: int = int(os.getenv("MEMORY_WINDOW", "10"))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
