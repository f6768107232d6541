"""Runtime settings read from the environment (and an optional .env file)."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name) or default
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items or [default]


@dataclass
class Settings:
    openai_api_key: str | None = None
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    llm_timeout_seconds: float = 50.0
    cache_ttl_seconds: float = 60.0
    reprice_with_estimator: bool = True
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    unsplash_access_key: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            model=os.getenv("TRIPMATCH_MODEL") or "gpt-4o-mini",
            temperature=_env_float("TRIPMATCH_TEMPERATURE", 0.7),
            llm_timeout_seconds=_env_float("TRIPMATCH_LLM_TIMEOUT", 50.0),
            cache_ttl_seconds=_env_float("TRIPMATCH_CACHE_TTL", 60.0),
            reprice_with_estimator=_env_bool("TRIPMATCH_REPRICE_WITH_ESTIMATOR", True),
            allowed_origins=_env_list("TRIPMATCH_ALLOWED_ORIGINS", "*"),
            unsplash_access_key=os.getenv("UNSPLASH_ACCESS_KEY") or None,
        )
