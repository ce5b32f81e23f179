"""Discovery feed: a JSON index of stored capsules for crawlers."""

from typing import Iterable
from urllib.parse import urlparse

from mako_capsule.models.capsule import ContentCapsule
from mako_capsule.models.sitemap import DiscoveryFeed, SitemapEntry


def _path(url: str) -> str:
    if not url:
        return "/"
    return urlparse(url).path or "/"


def build_discovery_feed(site_url: str, capsules: Iterable[ContentCapsule]) -> DiscoveryFeed:
    """Index *capsules* by the path of their canonical URL, in the order given."""
    pages = [
        SitemapEntry(
            url=_path(capsule.canonical_url or ""),
            type=capsule.type,
            tokens=capsule.tokens,
            updated=capsule.updated.isoformat(),
            entity=capsule.entity,
        )
        for capsule in capsules
    ]
    return DiscoveryFeed(site=site_url.rstrip("/"), pages=pages)
