"""Entity name and summary derivation."""

import html
import re
from typing import Optional

from bs4 import BeautifulSoup

from mako_capsule.models.source import ProductInfo, SourceDocument

MAX_ENTITY_LENGTH = 100
MAX_SUMMARY_LENGTH = 160
MIN_PARAGRAPH_CHARS = 30
UNKNOWN_ENTITY = "Unknown"

_WHITESPACE_RE = re.compile(r"\s+")

# "Title | Site", "Title - Company", "Title :: Store"; the separator must
# follow whitespace so hyphenated names such as "Spider-Man" survive
_TITLE_SUFFIX_RE = re.compile(r"\s+[|\-–—:]{1,2}\s*[^|\-–—:]+$")

_HEADING_RE = re.compile(r"^#{1,6}\s")
_IMAGE_MD_RE = re.compile(r"!\[[^\]]*\]\([^)]*\)")
_LINK_MD_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_MD_SYNTAX_RE = re.compile(r"[*_\[\]()>`#~=|]")
_PRICE_RE = re.compile(r"^(?:[$€£¥]\s*\d[\d.,]*|\d[\d.,]*\s*[$€£¥])")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n{2,}")


def truncate(text: str, limit: int) -> str:
    """Collapse whitespace and cut *text* to *limit* characters, ending in ``...``."""
    text = _WHITESPACE_RE.sub(" ", text.strip())
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def strip_html(fragment: str) -> str:
    if not fragment:
        return ""
    text = BeautifulSoup(fragment, "lxml").get_text(" ")
    return _WHITESPACE_RE.sub(" ", html.unescape(text)).strip()


def clean_title(title: str) -> str:
    """Strip a trailing site-name suffix from *title*."""
    cleaned = _TITLE_SUFFIX_RE.sub("", title).strip()
    return cleaned or title.strip()


def derive_entity(source: SourceDocument, seo_title: Optional[str] = None) -> str:
    """Primary entity name: SEO title, then cleaned source title, then ``Unknown``."""
    seo_title = seo_title or source.seo_title
    if seo_title and seo_title.strip():
        return truncate(seo_title, MAX_ENTITY_LENGTH)

    if source.title.strip():
        return truncate(clean_title(source.title), MAX_ENTITY_LENGTH)

    return UNKNOWN_ENTITY


def product_summary(product: ProductInfo, fallback_name: str = "") -> str:
    """Name, first sentence of the short description, price and stock status."""
    parts = []

    name = product.name or fallback_name
    if name:
        parts.append(name.strip())

    short = strip_html(product.short_description)
    if short:
        dot = short.find(".")
        if 0 <= dot < 120:
            short = short[:dot]
        elif len(short) > 80:
            short = short[:77] + "..."
        parts.append(short)

    if product.price:
        currency = product.currency
        if product.on_sale and product.regular_price:
            sale = product.sale_price or product.price
            parts.append(f"{currency}{sale} (was {currency}{product.regular_price})")
        else:
            parts.append(f"{currency}{product.price}")

    if not product.in_stock:
        parts.append("Out of stock")

    return ". ".join(parts)


def first_paragraph(markdown: str) -> str:
    """First paragraph of *markdown* with at least 30 characters of plain text."""
    for paragraph in _PARAGRAPH_SPLIT_RE.split(markdown.strip()):
        stripped = paragraph.strip()
        if not stripped or _HEADING_RE.match(stripped) or stripped.startswith("!["):
            continue

        clean = _IMAGE_MD_RE.sub("", stripped)
        clean = _LINK_MD_RE.sub(r"\1", clean)
        clean = _MD_SYNTAX_RE.sub("", clean)
        clean = _WHITESPACE_RE.sub(" ", clean).strip()

        if _PRICE_RE.match(clean):
            continue
        if len(clean) >= MIN_PARAGRAPH_CHARS:
            return clean
    return ""


def derive_summary(
    source: SourceDocument,
    markdown: str,
    content_type: str,
    use_excerpt: bool = True,
) -> str:
    """Summary of at most 160 characters; empty when nothing qualifies."""
    if content_type == "product" and source.product is not None:
        summary = product_summary(source.product, fallback_name=source.title)
        if summary:
            return truncate(summary, MAX_SUMMARY_LENGTH)

    if use_excerpt and source.excerpt.strip():
        return truncate(strip_html(source.excerpt), MAX_SUMMARY_LENGTH)

    if source.seo_description.strip():
        return truncate(source.seo_description, MAX_SUMMARY_LENGTH)

    return truncate(first_paragraph(markdown), MAX_SUMMARY_LENGTH)
