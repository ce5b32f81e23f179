from typing import List

from pydantic import BaseModel, Field

from mako_capsule.config import GENERATOR_NAME, SPEC_VERSION


class SitemapEntry(BaseModel):
    url: str  # host-relative path
    type: str
    tokens: int
    updated: str
    entity: str


class DiscoveryFeed(BaseModel):
    """Site-wide index of the capsules a site can serve."""

    mako: str = SPEC_VERSION
    generator: str = GENERATOR_NAME
    site: str
    pages: List[SitemapEntry] = Field(default_factory=list)
