from __future__ import annotations

import logging

from groq import Groq

from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

BLURB_PROMPT = (
    'Write a friendly 1-sentence, 20-30 word blurb for the restaurant "{name}". '
    "Keep it neutral and avoid hype."
)


def summarize_place(
    name: str,
    raw_description: str | None = None,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> str | None:
    """
    Return a short description for a place.

    A provider description that already fits is returned unchanged. Otherwise
    Groq writes one; on any failure the raw description (possibly None) is
    returned instead.
    """
    if raw_description and len(raw_description) <= config.max_description_length:
        return raw_description

    if not config.enabled or not config.api_key:
        return raw_description

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[{"role": "user", "content": BLURB_PROMPT.format(name=name)}],
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )
        content = (response.choices[0].message.content or "").strip()
        return content or raw_description

    except Exception:
        logger.warning("Groq blurb for %r failed, keeping provider description", name, exc_info=True)
        return raw_description
