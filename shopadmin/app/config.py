#!/usr/bin/env python3
"""
Configuration management for the shop admin backend.
"""

import os
from dotenv import load_dotenv

from ..utils.logger import get_logger

# Load environment variables from .env file
load_dotenv()

logger = get_logger("config")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuration class for the application."""

    # OpenAI-compatible chat completions API
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1")
    OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
    LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", 0.25))
    LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", 60))

    # Database
    DB_PATH = os.path.join(os.path.dirname(__file__), "..", "data", "shop.db")
    DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{os.path.abspath(DB_PATH)}")

    # Commit once per operation; set false for stores without transactions
    ATOMIC_WRITES = _env_flag("ATOMIC_WRITES", "true")

    # Application Configuration
    RECENT_PURCHASE_LIMIT = int(os.getenv("RECENT_PURCHASE_LIMIT", 20))
    CURRENCY_LABEL = os.getenv("CURRENCY_LABEL", "Rp")
    CORS_ORIGINS = [
        o.strip()
        for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
        if o.strip()
    ]

    @classmethod
    def llm_configured(cls) -> bool:
        return bool(cls.OPENAI_API_KEY)

    @classmethod
    def debug_print(cls):
        logger.info("[CONFIG] OPENAI_MODEL=%s base=%s set=%s", cls.OPENAI_MODEL, cls.OPENAI_BASE_URL, cls.llm_configured())
        logger.info("[CONFIG] DATABASE_URL=%s ATOMIC_WRITES=%s", cls.DATABASE_URL, cls.ATOMIC_WRITES)

    @classmethod
    def validate(cls):
        """Validate configuration; a missing API key only disables planning."""
        if not cls.DATABASE_URL:
            raise ValueError("Missing required configuration: DATABASE_URL")

        if not cls.llm_configured():
            logger.warning("OPENAI_API_KEY is not set; chat will answer with the 'AI not configured' reply")

        return True

# Validate configuration on import
Config.validate()
