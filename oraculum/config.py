"""Runtime settings for Oraculum.

Values come from the process environment, optionally seeded from a `.env`
file at the repository root (see `load_env`).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]

PROVIDERS = ("gemini", "openai")

DEFAULT_MODELS = {
    "gemini": ("gemini-2.5-flash", "gemini-2.5-flash-image"),
    "openai": ("gpt-4o-mini", "gpt-image-1"),
}

# Checked in order; the first non-empty one wins.
CREDENTIAL_VARS = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"),
    "openai": ("OPENAI_API_KEY",),
}


def load_env() -> None:
    load_dotenv(REPO_ROOT / ".env")


def _credential(provider: str) -> Optional[str]:
    for var in CREDENTIAL_VARS[provider]:
        value = (os.getenv(var) or "").strip()
        if value:
            return value
    return None


@dataclass
class Settings:
    provider: str = "gemini"
    api_key: Optional[str] = None
    text_model: str = DEFAULT_MODELS["gemini"][0]
    image_model: str = DEFAULT_MODELS["gemini"][1]
    log_level: str = "INFO"
    max_sessions: int = 256

    @classmethod
    def from_env(cls) -> "Settings":
        provider = (os.getenv("ORACULUM_PROVIDER") or "gemini").strip().lower()
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown ORACULUM_PROVIDER: {provider!r} (expected one of {', '.join(PROVIDERS)})")

        text_default, image_default = DEFAULT_MODELS[provider]
        return cls(
            provider=provider,
            api_key=_credential(provider),
            text_model=os.getenv("ORACULUM_TEXT_MODEL") or text_default,
            image_model=os.getenv("ORACULUM_IMAGE_MODEL") or image_default,
            log_level=(os.getenv("ORACULUM_LOG_LEVEL") or "INFO").upper(),
            max_sessions=int(os.getenv("ORACULUM_MAX_SESSIONS", "256")),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
