# config.py

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from errors import ConfigurationError

# -----------------------
# Gemini endpoint
# -----------------------

API_KEY_ENV = "GEMINI_API_KEY"
MIN_API_KEY_LENGTH = 10

GEMINI_MODEL = "gemini-2.5-flash"
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
REQUEST_TIMEOUT_SECONDS = 60


@dataclass(frozen=True)
class Settings:
    api_key: str
    model: str = GEMINI_MODEL
    base_url: str = GEMINI_BASE_URL
    timeout: float = REQUEST_TIMEOUT_SECONDS

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.model}:generateContent"


def validate_api_key(key: Optional[str]) -> str:
    """Return the stripped key, or fail if it cannot possibly be valid."""
    key = (key or "").strip()
    if len(key) < MIN_API_KEY_LENGTH:
        raise ConfigurationError(
            f"Missing API key. Set the {API_KEY_ENV} environment variable "
            "to your Google Gemini API key."
        )
    return key


def load_settings(api_key: Optional[str] = None) -> Settings:
    """Build settings from an explicit key or the environment. Fails closed."""
    if api_key is None:
        api_key = os.getenv(API_KEY_ENV, "")
    return Settings(api_key=validate_api_key(api_key))
