from __future__ import annotations

import json
import logging
from typing import Any

from groq import Groq

from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You write short highlight reels for used and new Toyota dealer listings. "
    "Write exactly two upbeat but grounded sentences. Mention the year, model, "
    "vehicle category, price versus the shopper's budget, mileage, drivetrain, "
    "fuel type, exterior and interior colors, seating, doors, condition and the "
    "dealership. Only use facts present in the listing. Return plain text, no "
    "markdown and no preamble."
)


def _build_user_message(
    listing: dict[str, Any],
    user_filter: dict[str, Any],
    profile_summary: dict[str, Any],
) -> str:
    lines = ["## Listing", json.dumps(listing, default=str)]
    lines.append("\n## Shopper filter")
    lines.append(json.dumps(user_filter, default=str))
    lines.append("\n## Shopper taste so far")
    lines.append(json.dumps(profile_summary, default=str))
    return "\n".join(lines)


def generate_description(
    listing: dict[str, Any],
    user_filter: dict[str, Any],
    profile_summary: dict[str, Any],
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> str:
    """
    Ask Groq for a two-sentence pitch for one listing.

    Returns an empty string when the LLM is disabled, unconfigured or fails
    (timeout, quota, empty completion); callers use their own template then.
    """
    if not config.active:
        return ""

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": _build_user_message(listing, user_filter, profile_summary),
                },
            ],
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )
        content = response.choices[0].message.content or ""
        return content.strip()

    except Exception:
        logger.warning("Groq description call failed, falling back to template", exc_info=True)
        return ""
