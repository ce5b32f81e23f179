"""Generator configuration: defaults, ``.env`` loading and ``MAKO_*`` overrides."""

import os
from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

SPEC_VERSION = "1.0"
GENERATOR_VERSION = "0.1.0"
GENERATOR_NAME = f"mako-capsule/{GENERATOR_VERSION}"

# Media type a client lists in ``Accept`` to receive a capsule instead of HTML
CAPSULE_MEDIA_TYPE = "text/mako+markdown"

Freshness = Literal["realtime", "hourly", "daily", "weekly", "monthly", "static"]


class GeneratorConfig(BaseModel):
    """Tunables shared by every generation call."""

    max_tokens: int = Field(default=1000, ge=1, description="Hard token budget for the body.")
    use_excerpt: bool = True
    include_tags: bool = True
    freshness_default: Freshness = "weekly"
    default_language: str = "en"
    cache_control: str = "public, max-age=3600"
    log_level: str = "INFO"


_ENV_FIELDS = {
    "max_tokens": "MAKO_MAX_TOKENS",
    "use_excerpt": "MAKO_USE_EXCERPT",
    "include_tags": "MAKO_INCLUDE_TAGS",
    "freshness_default": "MAKO_FRESHNESS_DEFAULT",
    "default_language": "MAKO_DEFAULT_LANGUAGE",
    "cache_control": "MAKO_CACHE_CONTROL",
    "log_level": "MAKO_LOG_LEVEL",
}


def load_config(env_file: Optional[str] = None) -> GeneratorConfig:
    """Build a :class:`GeneratorConfig` from ``.env`` and the process environment.

    Only variables that are actually set override the defaults; pydantic
    coerces the raw strings (``"false"``, ``"1500"``) and raises
    ``ValidationError`` for values it cannot accept.
    """
    load_dotenv(env_file)

    overrides = {
        name: os.environ[var] for name, var in _ENV_FIELDS.items() if os.environ.get(var)
    }
    return GeneratorConfig(**overrides)


@lru_cache(maxsize=1)
def get_config() -> GeneratorConfig:
    """Process-wide configuration, loaded once on first use."""
    return load_config()
