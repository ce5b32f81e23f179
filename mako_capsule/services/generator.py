"""Capsule generation: orchestrates the pipeline for one source document.

``generate`` runs the stages in a fixed order

    reduce HTML -> convert -> classify -> entity -> links -> actions ->
    language -> body -> token budget -> media -> summary -> tags ->
    frontmatter -> validate -> serialize -> headers

and returns ``None`` only when the document has no usable content at all.
Every other stage degrades instead of failing: missing data simply leaves
the corresponding optional field out.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from bs4 import BeautifulSoup
from pydantic import ValidationError

from mako_capsule.config import GeneratorConfig
from mako_capsule.models.capsule import (
    Action,
    ContentCapsule,
    Cover,
    GenerationResult,
    LinkSet,
    Media,
)
from mako_capsule.models.source import SourceDocument
from mako_capsule.services.actions import extract_actions, limit_actions
from mako_capsule.services.classifier import classify
from mako_capsule.services.converter import convert
from mako_capsule.services.entity import derive_entity, derive_summary
from mako_capsule.services.frontmatter import serialize
from mako_capsule.services.headers import build_headers, generate_etag
from mako_capsule.services.hooks import GeneratorHooks, call_hook, run_chain
from mako_capsule.services.links import extract_links, limit_links
from mako_capsule.services.metadata import count_media, extract_html_lang, primary_language
from mako_capsule.services.sanitizer import reduce_html
from mako_capsule.services.tokens import estimate, savings_percent
from mako_capsule.services.validator import validate
from mako_capsule.services.vocabulary import SECTION_TEMPLATES

logger = logging.getLogger(__name__)

MAX_TAGS = 10
# Non-whitespace characters above which converted Markdown is used as-is
SUBSTANTIAL_CONTENT_CHARS = 50

_HEADING_LINE_RE = re.compile(r"^#{1,6}\s", re.MULTILINE)
_TITLE_HEADING_RE = re.compile(r"^#\s+(.+)")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n{2,}")
_WHITESPACE_RE = re.compile(r"\s+")

ProgressCallback = Callable[[int, int, SourceDocument], None]


# ---------------------------------------------------------------------------
# Body
# ---------------------------------------------------------------------------

def build_body(entity: str, markdown: str, sections: Optional[List[str]] = None) -> str:
    """Give *markdown* a title heading, scaffolding *sections* when it is thin.

    Scaffolded sections receive the existing paragraphs in order, one each,
    with any remainder under the last section; sections without content
    stay empty.
    """
    markdown = markdown.strip()
    title = f"# {entity}"

    if (
        len(_HEADING_LINE_RE.findall(markdown)) >= 2
        or len(_WHITESPACE_RE.sub("", markdown)) >= SUBSTANTIAL_CONTENT_CHARS
    ):
        if _starts_with_title(markdown, entity):
            return markdown
        return f"{title}\n\n{markdown}"

    if not sections:
        return f"{title}\n\n{markdown}" if markdown else title

    paragraphs = [p.strip() for p in _PARAGRAPH_SPLIT_RE.split(markdown) if p.strip()]
    blocks = [title]
    last = len(sections) - 1
    for i, section in enumerate(sections):
        blocks.append(f"## {section}")
        assigned = paragraphs[i:] if i == last else paragraphs[i:i + 1]
        blocks.extend(assigned)
    return "\n\n".join(blocks)


def _starts_with_title(markdown: str, entity: str) -> bool:
    """True when the first line is an H1 naming *entity*."""
    match = _TITLE_HEADING_RE.match(markdown)
    if match is None:
        return False
    heading = _WHITESPACE_RE.sub(" ", match.group(1)).strip().casefold()
    return heading == _WHITESPACE_RE.sub(" ", entity).strip().casefold()


def truncate_body(body: str, max_tokens: int) -> str:
    """Keep whole lines from the start of *body* while the estimate fits *max_tokens*.

    The first line is always kept, even when it alone is over budget.
    """
    lines = body.split("\n")
    result = ""
    for line in lines:
        candidate = result + line + "\n"
        if estimate(candidate) > max_tokens:
            break
        result = candidate

    result = result.rstrip()
    if not result:
        result = lines[0].rstrip()
    return result


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

def derive_freshness(post_type: str, config: GeneratorConfig) -> str:
    post_type = (post_type or "").lower()
    if post_type == "product":
        return "daily"
    if post_type == "page":
        return "monthly"
    return config.freshness_default


def derive_language(
    source: SourceDocument,
    config: GeneratorConfig,
    hooks: Optional[GeneratorHooks] = None,
    soup: Optional[BeautifulSoup] = None,
) -> str:
    """Language hook, then the source locale, then ``<html lang>``, then the default."""
    if hooks is not None:
        hooked = call_hook(hooks.language, source)
        if isinstance(hooked, str) and hooked.strip():
            return hooked.strip()

    language = primary_language(source.language)
    if language:
        return language

    if soup is not None:
        language = primary_language(extract_html_lang(soup))
        if language:
            return language

    return config.default_language


def derive_tags(source: SourceDocument, config: GeneratorConfig) -> List[str]:
    """Source tags, then categories except ``uncategorized``; lower-cased, unique, at most 10."""
    if not config.include_tags:
        return []

    candidates = list(source.tags) + [
        category for category in source.categories if category.strip().lower() != "uncategorized"
    ]

    tags: List[str] = []
    for candidate in candidates:
        tag = candidate.strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
        if len(tags) >= MAX_TAGS:
            break
    return tags


def derive_media(source: SourceDocument, html: str, entity: str) -> Optional[Media]:
    """Cover image plus element counts; *None* when there is nothing to report."""
    cover = None
    if source.cover is not None and source.cover.url:
        cover = Cover(url=source.cover.url, alt=source.cover.alt or source.title or entity)

    counts = count_media(html)
    if cover is None and not counts:
        return None
    return Media(cover=cover, **counts)


def _updated_date(source: SourceDocument):
    if source.modified is None:
        return datetime.now(timezone.utc).date()
    if source.modified.tzinfo is not None:
        return source.modified.astimezone(timezone.utc).date()
    return source.modified.date()


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def generate(
    source: SourceDocument,
    config: Optional[GeneratorConfig] = None,
    hooks: Optional[GeneratorHooks] = None,
) -> Optional[GenerationResult]:
    """Generate the capsule for *source*.

    Returns *None* when neither the HTML nor structured product data yields
    any content; the caller should skip the document.
    """
    config = config or GeneratorConfig()
    hooks = hooks or GeneratorHooks()

    html = source.html or ""
    has_html = bool(html.strip())
    base_url = source.base_url

    # ── 1. Reduce and convert ─────────────────────────────────────────────
    html_tokens = estimate(html) if has_html else 0
    markdown = convert(reduce_html(html), base_url) if has_html else ""

    if not markdown.strip() and source.product is not None:
        markdown = source.product.name or source.title
    if not markdown.strip():
        logger.info("No usable content for %s", source.url or "<unnamed document>")
        return None

    # ── 2. Classify and name ──────────────────────────────────────────────
    content_type = classify(source, markdown, override=call_hook(hooks.content_type, source, markdown))
    seo_title = call_hook(hooks.entity_title, source)
    entity = derive_entity(source, seo_title=seo_title if isinstance(seo_title, str) else None)

    # ── 3. Links and actions ──────────────────────────────────────────────
    links = extract_links(html, base_url)
    hooked_links = call_hook(hooks.links, links, html)
    if isinstance(hooked_links, LinkSet):
        links = limit_links(hooked_links)

    actions = extract_actions(html)
    hooked_actions = call_hook(hooks.actions, actions, html)
    if isinstance(hooked_actions, list) and all(isinstance(a, Action) for a in hooked_actions):
        actions = limit_actions(hooked_actions)

    raw_soup = BeautifulSoup(html, "lxml") if has_html else None
    language = derive_language(source, config, hooks, raw_soup)

    # ── 4. Body and token budget ──────────────────────────────────────────
    sections = SECTION_TEMPLATES.get(content_type)
    if sections:
        hooked_sections = call_hook(hooks.section_template, list(sections), content_type)
        if isinstance(hooked_sections, list) and all(isinstance(s, str) for s in hooked_sections):
            sections = hooked_sections or sections
        elif hooked_sections is not None:
            logger.warning("Section template hook returned %s, ignoring it", type(hooked_sections).__name__)
    body = build_body(entity, markdown, sections)
    body = run_chain(hooks.body_enrichers, body, source, expected=str)

    tokens = estimate(body)
    if tokens > config.max_tokens:
        body = truncate_body(body, config.max_tokens)
        logger.debug("Truncated body from %d to %d tokens", tokens, estimate(body))
        tokens = estimate(body)

    # ── 5. Frontmatter ────────────────────────────────────────────────────
    summary = derive_summary(source, markdown, content_type, use_excerpt=config.use_excerpt)
    capsule = ContentCapsule(
        type=content_type,
        entity=entity,
        updated=_updated_date(source),
        tokens=tokens,
        language=language,
        summary=summary or None,
        freshness=derive_freshness(source.post_type, config),
        canonical_url=source.url or None,
        media=derive_media(source, html, entity),
        tags=derive_tags(source, config),
        actions=actions,
        links=links,
        body=body,
    )

    frontmatter = run_chain(hooks.frontmatter_enrichers, capsule.frontmatter(), source, expected=dict)
    # enrichers may not desynchronise the token count from the body
    frontmatter["tokens"] = tokens
    if hooks.frontmatter_enrichers:
        try:
            capsule = ContentCapsule.model_validate({**frontmatter, "body": body})
        except ValidationError as exc:
            logger.warning("Enriched frontmatter does not fit the capsule model: %s", exc)

    # ── 6. Validate and serialize ─────────────────────────────────────────
    validation = validate(frontmatter, body, max_tokens=config.max_tokens)
    if not validation.valid:
        logger.warning(
            "Capsule validation errors for %s: %s",
            source.url or entity,
            "; ".join(validation.errors),
        )

    content = serialize(capsule, frontmatter)
    headers = build_headers(frontmatter, canonical=source.url, cache_control=config.cache_control)

    return GenerationResult(
        capsule=capsule,
        content=content,
        headers=headers,
        etag=generate_etag(content),
        html_tokens=html_tokens,
        savings=savings_percent(html_tokens, tokens),
        validation=validation,
    )


def generate_many(
    sources: Iterable[SourceDocument],
    config: Optional[GeneratorConfig] = None,
    hooks: Optional[GeneratorHooks] = None,
    progress: Optional[ProgressCallback] = None,
) -> List[Optional[GenerationResult]]:
    """Generate capsules for *sources* one after another.

    *progress* is called after each document with its 1-based position, the
    total and the document. Results keep the input order; documents without
    content yield ``None``.
    """
    sources = list(sources)
    total = len(sources)
    results: List[Optional[GenerationResult]] = []

    for index, source in enumerate(sources, start=1):
        results.append(generate(source, config=config, hooks=hooks))
        if progress is not None:
            call_hook(progress, index, total, source)

    return results
