"""Page metadata read from raw HTML: title, description, canonical, language, media."""

import re
import unicodedata
from typing import Any, Dict, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from mako_capsule.models.source import SourceDocument

# media key -> tags counted towards it
_MEDIA_TAGS = {
    "images": ("img",),
    "video": ("video", "iframe"),
    "audio": ("audio",),
    "interactive": ("canvas", "form"),
}


def extract_title(soup: BeautifulSoup) -> str:
    h1 = soup.find("h1")
    if h1 and h1.get_text(strip=True):
        return h1.get_text(" ", strip=True)
    title_tag = soup.find("title")
    if title_tag:
        return title_tag.get_text(strip=True)
    return ""


def extract_description(soup: BeautifulSoup) -> str:
    meta = soup.find("meta", attrs={"name": "description"})
    if meta and meta.get("content"):
        return str(meta["content"]).strip()
    og_desc = soup.find("meta", attrs={"property": "og:description"})
    if og_desc and og_desc.get("content"):
        return str(og_desc["content"]).strip()
    return ""


def extract_canonical(soup: BeautifulSoup, base_url: str) -> Optional[str]:
    """Return the canonical URL declared in the page, or *None* if absent."""
    link_tag = soup.find("link", rel="canonical")
    if link_tag and link_tag.get("href"):
        return urljoin(base_url, str(link_tag["href"]))

    og_url = soup.find("meta", attrs={"property": "og:url"})
    if og_url and og_url.get("content"):
        return urljoin(base_url, str(og_url["content"]))

    return None


def extract_html_lang(soup: BeautifulSoup) -> str:
    html_tag = soup.find("html")
    if html_tag is None:
        return ""
    return str(html_tag.get("lang", "")).strip()


def primary_language(code: str) -> str:
    """Primary subtag of a locale or language tag: ``en_US`` and ``en-GB`` give ``en``."""
    return re.split(r"[_-]", code.strip(), maxsplit=1)[0].lower() if code.strip() else ""


def count_media(html: str) -> Dict[str, int]:
    """Count media elements in *html*; zero counts are left out."""
    if not html or not html.strip():
        return {}

    soup = BeautifulSoup(html, "lxml")
    counts = {}
    for key, tags in _MEDIA_TAGS.items():
        total = len(soup.find_all(list(tags)))
        if total:
            counts[key] = total
    return counts


def generate_slug(url: str, title: str = "") -> str:
    """Generate a clean URL slug from the URL path, falling back to the page title.

    The slug is lowercased, ASCII-only, and uses hyphens as separators.
    """
    parsed = urlparse(url)
    path = parsed.path.strip("/")

    # Remove file extension from path segment
    path = re.sub(r"\.[^/]+$", "", path)

    if path:
        slug_base = path.split("/")[-1]
    elif title:
        slug_base = title
    else:
        return ""

    slug = unicodedata.normalize("NFKD", slug_base)
    slug = slug.encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", slug.lower())
    return slug.strip("-")


def source_from_html(html: str, url: str, **overrides: Any) -> SourceDocument:
    """Build a :class:`SourceDocument` for a fetched page.

    Title, description, canonical URL and language come from the page
    itself; keyword *overrides* with a non-empty value replace them.
    """
    soup = BeautifulSoup(html or "", "lxml")
    canonical = extract_canonical(soup, url) or url

    fields: Dict[str, Any] = {
        "html": html,
        "url": canonical,
        "title": extract_title(soup),
        "seo_description": extract_description(soup),
        "language": extract_html_lang(soup),
        "slug": generate_slug(canonical),
    }
    parsed = urlparse(url)
    if parsed.scheme and parsed.netloc:
        fields["site_url"] = f"{parsed.scheme}://{parsed.netloc}"

    fields.update({key: value for key, value in overrides.items() if value not in (None, "", [])})
    return SourceDocument(**fields)
