import logging
from typing import List

from fastapi import APIRouter, Request
from pydantic import ValidationError

from mako_capsule.models.capsule import ContentCapsule
from mako_capsule.models.request import SitemapRequest
from mako_capsule.models.sitemap import DiscoveryFeed
from mako_capsule.routers.delivery import limiter
from mako_capsule.services.frontmatter import parse_capsule
from mako_capsule.services.sitemap import build_discovery_feed

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/sitemap", response_model=DiscoveryFeed, summary="Build the capsule discovery feed")
@limiter.limit("10/minute")
async def sitemap(request: Request, body: SitemapRequest) -> DiscoveryFeed:
    """Index the given serialized capsules; unreadable ones are skipped."""
    capsules: List[ContentCapsule] = []
    for position, content in enumerate(body.capsules, start=1):
        try:
            frontmatter, capsule_body = parse_capsule(content)
        except ValueError as exc:
            logger.warning("Sitemap: capsule #%d has unreadable frontmatter – %s", position, exc)
            continue
        if frontmatter is None:
            logger.warning("Sitemap: capsule #%d has no frontmatter – skipping", position)
            continue
        try:
            capsules.append(ContentCapsule.model_validate({**frontmatter, "body": capsule_body}))
        except ValidationError as exc:
            logger.warning("Sitemap: capsule #%d is malformed – %s", position, exc.error_count())

    return build_discovery_feed(str(body.site_url), capsules)
