from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


def _env_flag(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class LLMConfig:
    api_key: str = os.getenv("GROQ_API_KEY", "")
    model: str = os.getenv("CARMATCH_LLM_MODEL", "llama-3.3-70b-versatile")
    timeout: float = float(os.getenv("CARMATCH_LLM_TIMEOUT", "10.0"))
    max_tokens: int = 160
    temperature: float = 0.35
    enabled: bool = _env_flag("CARMATCH_LLM_ENABLED")

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.api_key)


DEFAULT_LLM_CONFIG = LLMConfig()
