"""Semantic link extraction from raw page HTML."""

import re
from typing import List, Optional, Set, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from mako_capsule.models.capsule import Link, LinkSet
from mako_capsule.services.vocabulary import LINK_SKIP_PATTERNS

MAX_INTERNAL = 10
MAX_EXTERNAL = 5
MAX_CONTEXT = 120

_SKIP_HREF_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:")
_WHITESPACE_RE = re.compile(r"\s+")


def _bare_host(host: str) -> str:
    host = host.lower()
    return host[4:] if host.startswith("www.") else host


def normalize_url(url: str) -> str:
    """Dedup key for *url*: scheme, host, path without trailing slash, query."""
    parsed = urlparse(url)
    normalized = f"{parsed.scheme or 'https'}://{parsed.netloc.lower()}{parsed.path.rstrip('/')}"
    if parsed.query:
        normalized += f"?{parsed.query}"
    return normalized


def _relative_url(url: str) -> str:
    parsed = urlparse(url)
    path = parsed.path.rstrip("/") or "/"
    if parsed.query:
        path += f"?{parsed.query}"
    return path


def _should_skip(url: str) -> bool:
    """Return True for legal, account, cart, feed and API URLs."""
    parsed = urlparse(url)
    target = parsed.path + (f"?{parsed.query}" if parsed.query else "")
    return any(pattern.search(target) for pattern in LINK_SKIP_PATTERNS)


def link_context(anchor: Tag) -> str:
    """Describe *anchor*: its text, else aria-label, else title, else truncated text."""
    text = _WHITESPACE_RE.sub(" ", anchor.get_text()).strip()
    if 2 <= len(text) <= MAX_CONTEXT:
        return text

    aria = str(anchor.get("aria-label", "")).strip()
    if aria:
        return aria[:MAX_CONTEXT]

    title = str(anchor.get("title", "")).strip()
    if title:
        return title[:MAX_CONTEXT]

    if len(text) > MAX_CONTEXT:
        return text[: MAX_CONTEXT - 3] + "..."

    return ""


def _resolve(href: str, site_url: str) -> Optional[str]:
    href = href.strip()
    if not href or href.lower().startswith(_SKIP_HREF_PREFIXES):
        return None
    absolute = urljoin(site_url, href) if site_url else href
    if urlparse(absolute).scheme not in ("http", "https"):
        return None
    return absolute


def extract_links(html: str, site_url: str) -> LinkSet:
    """Extract up to 10 internal and 5 external links with readable context.

    Internal links (same host as *site_url*, ``www.`` ignored) are stored
    host-relative; external links keep their absolute URL. Fragments and
    trailing slashes are dropped, query strings kept.
    """
    links = LinkSet()
    if not html or not html.strip():
        return links

    soup = BeautifulSoup(html, "lxml")
    site_host = _bare_host(urlparse(site_url).netloc)
    seen: Set[Tuple[str, str]] = set()

    for anchor in soup.find_all("a", href=True):
        if len(links.internal) >= MAX_INTERNAL and len(links.external) >= MAX_EXTERNAL:
            break

        absolute = _resolve(str(anchor["href"]), site_url)
        if absolute is None or _should_skip(absolute):
            continue

        context = link_context(anchor)
        if not context:
            continue

        is_internal = bool(site_host) and _bare_host(urlparse(absolute).netloc) == site_host
        if is_internal:
            if len(links.internal) >= MAX_INTERNAL:
                continue
            url = _relative_url(absolute)
            key = ("internal", url)
        else:
            if len(links.external) >= MAX_EXTERNAL:
                continue
            url = normalize_url(absolute)
            key = ("external", url)

        if key in seen:
            continue
        seen.add(key)

        target = links.internal if is_internal else links.external
        target.append(Link(url=url, context=context))

    return links


def limit_links(links: LinkSet) -> LinkSet:
    """Re-apply the per-group caps and URL de-duplication to *links*."""

    def _unique(entries: List[Link], cap: int) -> List[Link]:
        seen: Set[str] = set()
        kept: List[Link] = []
        for link in entries:
            if link.url in seen:
                continue
            seen.add(link.url)
            kept.append(link)
            if len(kept) >= cap:
                break
        return kept

    return LinkSet(
        internal=_unique(links.internal, MAX_INTERNAL),
        external=_unique(links.external, MAX_EXTERNAL),
    )
