from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parents[2] / ".env")


@dataclass(frozen=True)
class LLMConfig:
    """Groq settings for place blurbs. ``LLM_BLURBS=0`` turns them off."""

    api_key: str = os.getenv("GROQ_API_KEY", "")
    model: str = os.getenv("GROQ_MODEL", "llama-3.1-8b-instant")
    enabled: bool = os.getenv("LLM_BLURBS", "1") != "0"
    timeout: float = 6.0
    temperature: float = 0.7
    max_tokens: int = 60
    # provider descriptions longer than this get replaced
    max_description_length: int = 220


DEFAULT_LLM_CONFIG = LLMConfig()
