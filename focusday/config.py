"""
FocusDay — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from focusday/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str

    # SQLite
    DATABASE_PATH: str = "data/focusday.db"

    # Security
    ALLOWED_USER_IDS: list[int] = []

    # Goals & stats
    DEFAULT_GOAL_MINUTES: int = 60
    STATS_WINDOW_DAYS: int = 14

    # Empty → system local time zone
    TIMEZONE: str = ""

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("DEFAULT_GOAL_MINUTES", "STATS_WINDOW_DAYS", mode="before")
    @classmethod
    def parse_int(cls, v: str | int) -> int:
        return int(v)

    @field_validator("DEFAULT_GOAL_MINUTES")
    @classmethod
    def check_goal_range(cls, v: int) -> int:
        if not 1 <= v <= 1440:
            raise ValueError("DEFAULT_GOAL_MINUTES must be between 1 and 1440")
        return v


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/focusday.db"),
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        DEFAULT_GOAL_MINUTES=os.getenv("DEFAULT_GOAL_MINUTES", "60"),
        STATS_WINDOW_DAYS=os.getenv("STATS_WINDOW_DAYS", "14"),
        TIMEZONE=os.getenv("TIMEZONE", ""),
    )


# Singleton, imported by all other modules as:
#   from focusday.config import settings
settings = _load_settings()
