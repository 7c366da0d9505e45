"""Environment-driven configuration."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from ytfeedback.core.utils.constants import DEFAULT_GEMINI_MODEL, DEFAULT_OPENAI_MODEL

__all__: list[str] = ["Settings", "get_settings", "mask_secret"]

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def mask_secret(value: str | None) -> str:
    """Render a secret as ``abcd...wxyz`` so it can be logged."""
    if not value:
        return "<missing>"
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}...{value[-4:]}"


class Settings:  # noqa: D101
    def __init__(self) -> None:
        self.app_env: str = os.getenv("YTFEEDBACK_ENV", "development")

        self.database_url: str | None = os.getenv("DATABASE_URL")
        self.database_ssl: bool = os.getenv("DATABASE_SSL", "false").strip().lower() in _TRUTHY

        self.llm_provider: str = os.getenv("LLM_PROVIDER", "gemini").strip().lower()
        # Older frontends only set the Vite-prefixed name
        self.gemini_api_key: str | None = os.getenv("GEMINI_API_KEY") or os.getenv("VITE_GEMINI_API_KEY")
        self.gemini_model: str = os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL)
        self.openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
        self.openai_model: str = os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL)

        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "3001"))
        self.cors_origins: list[str] = [
            origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
        ]
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def api_key_for(self, provider: str | None = None) -> str | None:
        """Configured API key for *provider* (defaults to ``llm_provider``)."""
        provider = (provider or self.llm_provider).lower()
        if provider == "openai":
            return self.openai_api_key
        return self.gemini_api_key

    def model_for(self, provider: str | None = None) -> str:
        provider = (provider or self.llm_provider).lower()
        if provider == "openai":
            return self.openai_model
        return self.gemini_model

    def log_summary(self) -> None:
        """Log the effective configuration with secrets masked."""
        logger.info(f"Environment: {self.app_env}, LLM provider: {self.llm_provider}")
        key = self.api_key_for()
        if key:
            logger.info(f"{self.llm_provider} API key loaded: {mask_secret(key)}")
        else:
            logger.warning(f"No API key configured for provider '{self.llm_provider}'")
        if not self.database_url:
            logger.warning("DATABASE_URL is not set; persistence endpoints will fail")


@lru_cache(maxsize=1)
def get_settings() -> Settings:  # noqa: D401
    """Return cached Settings instance."""

    return Settings()
