from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .constants import (
    CONTENT_CACHE_TTL_SEC,
    DEFAULT_PROMPT_SUGGESTIONS,
    FETCH_TIMEOUT_SEC,
    INITIAL_BACKOFF_MS,
    MAX_RETRIES,
    PRODUCTS_URL,
)

BASE_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class Settings:
    """Configuration container for the model, context source, and retry limits."""
    gemini_api_key: str
    gemini_model: str
    default_context_url: str = PRODUCTS_URL
    prompts_dir: Path = BASE_DIR / "prompts"
    prompt_suggestions: List[str] = field(default_factory=lambda: list(DEFAULT_PROMPT_SUGGESTIONS))
    max_retries: int = MAX_RETRIES
    initial_backoff_ms: int = INITIAL_BACKOFF_MS
    fetch_timeout_sec: float = FETCH_TIMEOUT_SEC
    cache_ttl_sec: float = CONTENT_CACHE_TTL_SEC

    @property
    def has_credentials(self) -> bool:
        return bool(self.gemini_api_key and self.gemini_model)


def load_settings() -> Settings:
    """Purpose: Load configuration from environment variables and defaults.
    Inputs/Outputs: No inputs; returns a Settings instance.
    Side Effects / State: Reads environment variables.
    Dependencies: Uses os.getenv and the defaults in constants.
    Failure Modes: Invalid numeric env values raise ValueError. A missing API key is
        allowed here; the Gemini client raises ConfigurationError when it is needed.
    If Removed: App cannot configure the model or context source and fails at startup.
    Testing Notes: Verify defaults and overrides via monkeypatched environment.
    """
    # Suggestions are "|" separated so individual prompts may contain commas.
    raw_suggestions = os.getenv("PROMPT_SUGGESTIONS", "")
    suggestions = [item.strip() for item in raw_suggestions.split("|") if item.strip()]

    return Settings(
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
        default_context_url=os.getenv("DEFAULT_CONTEXT_URL") or PRODUCTS_URL,
        prompts_dir=Path(os.getenv("PROMPTS_DIR") or (BASE_DIR / "prompts")),
        prompt_suggestions=suggestions or list(DEFAULT_PROMPT_SUGGESTIONS),
        max_retries=int(os.getenv("MAX_RETRIES", str(MAX_RETRIES))),
        initial_backoff_ms=int(os.getenv("INITIAL_BACKOFF_MS", str(INITIAL_BACKOFF_MS))),
        fetch_timeout_sec=float(os.getenv("FETCH_TIMEOUT_SEC", str(FETCH_TIMEOUT_SEC))),
        cache_ttl_sec=float(os.getenv("CONTENT_CACHE_TTL_SEC", str(CONTENT_CACHE_TTL_SEC))),
    )
