"""Helpers for a delivery layer deciding when to answer with a capsule."""

from typing import Optional

from mako_capsule.config import CAPSULE_MEDIA_TYPE

# User-agent substrings of known AI crawlers and assistants
AI_BOTS = (
    "GPTBot",
    "ClaudeBot",
    "PerplexityBot",
    "Google-Extended",
    "Bytespider",
    "CCBot",
    "ChatGPT-User",
    "anthropic-ai",
    "Applebot-Extended",
    "cohere-ai",
)


def accepts_capsule(accept: Optional[str]) -> bool:
    """Return True when the ``Accept`` header lists the capsule media type."""
    if not accept:
        return False
    for media_range in accept.split(","):
        media_type = media_range.split(";", 1)[0].strip().lower()
        if media_type == CAPSULE_MEDIA_TYPE:
            return True
    return False


def is_ai_bot(user_agent: Optional[str]) -> bool:
    if not user_agent:
        return False
    return any(bot in user_agent for bot in AI_BOTS)


def etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    """Return True when an ``If-None-Match`` header covers *etag*."""
    if not if_none_match:
        return False
    candidates = [tag.strip() for tag in if_none_match.split(",")]
    return "*" in candidates or etag in candidates or f"W/{etag}" in candidates
