"""
Environment-driven settings.

Values come from the process environment; `.env` is loaded by the package
__init__ before anything reads them.
"""

import os
from dataclasses import dataclass
from typing import Optional

JIKAN_BASE_URL = "https://api.jikan.moe/v4"
GOOGLE_BOOKS_BASE_URL = "https://www.googleapis.com/books/v1"
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_MODEL = "gemini-2.5-flash"


def env_flag(name: str, default: str = 'false') -> bool:
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw in (None, ''):
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    gemini_api_key: Optional[str] = None
    gemini_model: str = GEMINI_MODEL
    gemini_base_url: str = GEMINI_BASE_URL
    google_books_api_key: Optional[str] = None
    jikan_base_url: str = JIKAN_BASE_URL
    google_books_base_url: str = GOOGLE_BOOKS_BASE_URL
    provider_timeout: float = 10.0
    jikan_pacing_seconds: float = 0.3  # Jikan allows ~3 requests/second

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            # API_KEY is the historical name of the generator credential
            gemini_api_key=os.environ.get('GEMINI_API_KEY') or os.environ.get('API_KEY') or None,
            gemini_model=os.environ.get('GEMINI_MODEL', GEMINI_MODEL),
            gemini_base_url=os.environ.get('GEMINI_BASE_URL', GEMINI_BASE_URL),
            google_books_api_key=os.environ.get('GOOGLE_BOOKS_API_KEY') or None,
            jikan_base_url=os.environ.get('JIKAN_BASE_URL', JIKAN_BASE_URL),
            google_books_base_url=os.environ.get('GOOGLE_BOOKS_BASE_URL', GOOGLE_BOOKS_BASE_URL),
            provider_timeout=_env_float('PROVIDER_TIMEOUT', 10.0),
            jikan_pacing_seconds=_env_float('JIKAN_PACING_SECONDS', 0.3),
        )
