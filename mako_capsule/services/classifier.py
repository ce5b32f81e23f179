import re
from typing import Optional

from mako_capsule.models.capsule import CONTENT_TYPES
from mako_capsule.models.source import SourceDocument
from mako_capsule.services.vocabulary import (
    DOCS_KEYWORDS,
    FAQ_KEYWORDS,
    LISTING_KEYWORDS,
    NATIVE_TYPE_MAP,
    PROFILE_SLUGS,
)

_FENCE_RE = re.compile(r"^```", re.MULTILINE)
_LIST_ITEM_RE = re.compile(r"^\s*(?:[-*+]|\d+\.)\s", re.MULTILINE)

MIN_CODE_BLOCKS = 3
MIN_QUESTIONS = 5
MIN_LIST_ITEMS = 10


def native_type(post_type: str) -> str:
    """Map the host system's content type to a capsule type (``custom`` when unknown)."""
    return NATIVE_TYPE_MAP.get((post_type or "").lower(), "custom")


def _contains_any(keywords, *haystacks: str) -> bool:
    return any(keyword in haystack for keyword in keywords for haystack in haystacks)


def refine_page_type(slug: str, title: str, markdown: str) -> str:
    """Heuristic refinement of a generic page; ``landing`` when nothing matches."""
    slug = slug.lower()
    title = title.lower()

    # ── 1. Documentation ──────────────────────────────────────────────────
    if _contains_any(DOCS_KEYWORDS, slug, title):
        return "docs"
    # opening and closing fences
    if len(_FENCE_RE.findall(markdown)) >= MIN_CODE_BLOCKS * 2:
        return "docs"

    # ── 2. FAQ ────────────────────────────────────────────────────────────
    if markdown.count("?") >= MIN_QUESTIONS and _contains_any(FAQ_KEYWORDS, slug, title):
        return "faq"

    # ── 3. Profile ────────────────────────────────────────────────────────
    if slug in PROFILE_SLUGS:
        return "profile"

    # ── 4. Listing ────────────────────────────────────────────────────────
    if len(_LIST_ITEM_RE.findall(markdown)) >= MIN_LIST_ITEMS and _contains_any(LISTING_KEYWORDS, slug):
        return "listing"

    return "landing"


def classify(source: SourceDocument, markdown: str, override: Optional[str] = None) -> str:
    """Return the content type of *source*.

    A non-empty *override* that names a known type wins outright. Generic
    pages (mapped to ``landing``) are refined from their slug, title and
    converted Markdown.
    """
    if override and override in CONTENT_TYPES:
        return override

    content_type = native_type(source.post_type)
    if content_type == "landing" and markdown.strip():
        content_type = refine_page_type(source.effective_slug, source.title, markdown)
    return content_type
