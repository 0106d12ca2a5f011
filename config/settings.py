"""
Runtime configuration.

All settings load from environment variables (optionally from a .env file in
the project root) with defaults suitable for local development.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

# Look for .env in the project root
env_path = Path(__file__).parent.parent / ".env"

STORE_BACKENDS = ("supabase", "memory")


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    store_backend: str = "supabase"
    unlock_max_attempts: int = 3
    payment_webhook_secret: Optional[str] = None
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = ("*",)

    def __post_init__(self) -> None:
        if self.store_backend not in STORE_BACKENDS:
            raise ValueError(
                f"STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}, got {self.store_backend!r}"
            )
        if self.unlock_max_attempts < 1:
            raise ValueError("UNLOCK_MAX_ATTEMPTS must be >= 1")


def _split_csv(value: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def load_settings() -> Settings:
    """Read settings from the environment."""

    load_dotenv(dotenv_path=env_path)

    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        store_backend=os.getenv("STORE_BACKEND", "supabase").strip().lower(),
        unlock_max_attempts=int(os.getenv("UNLOCK_MAX_ATTEMPTS", "3")),
        payment_webhook_secret=os.getenv("PAYMENT_WEBHOOK_SECRET") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "*")) or ("*",),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


__all__ = ["Settings", "load_settings", "get_settings"]
