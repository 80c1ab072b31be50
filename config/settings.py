from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here. A missing API key is
    not an error: it switches the matching feature to its fallback text.
    """

    app_env: str = os.getenv("APP_ENV", "development")
    port: int = int(os.getenv("PORT", "8080"))
    google_api_key: Optional[str] = os.getenv("GOOGLE_API_KEY") or None
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.6"))
    top_p: float = float(os.getenv("MODEL_TOP_P", "0.9"))
    completion_timeout: float = float(os.getenv("COMPLETION_TIMEOUT", "12"))
    fixtures_api_key: Optional[str] = os.getenv("FIXTURES_API_KEY") or None
    fixtures_api_url: str = os.getenv(
        "FIXTURES_API_URL", "https://v3.football.api-sports.io/fixtures"
    )
    fixtures_timeout: float = float(os.getenv("FIXTURES_TIMEOUT", "10"))
    memory_capacity: int = int(os.getenv("MEMORY_CAPACITY", "12"))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
