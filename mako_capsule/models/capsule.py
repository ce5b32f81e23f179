from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from mako_capsule.config import SPEC_VERSION

CONTENT_TYPES = (
    "product",
    "article",
    "docs",
    "landing",
    "listing",
    "profile",
    "event",
    "recipe",
    "faq",
    "custom",
)
FRESHNESS_VALUES = ("realtime", "hourly", "daily", "weekly", "monthly", "static")
LINK_TYPES = ("parent", "child", "sibling", "source", "competitor", "reference")


class Cover(BaseModel):
    url: str
    alt: str = ""


class Media(BaseModel):
    cover: Optional[Cover] = None
    images: Optional[int] = None
    video: Optional[int] = None
    audio: Optional[int] = None
    interactive: Optional[int] = None
    downloads: Optional[int] = None


class ActionParam(BaseModel):
    name: str
    type: str = "string"
    required: bool = False
    description: Optional[str] = None


class Action(BaseModel):
    """An interactive capability of the page, e.g. ``add_to_cart``."""

    name: str
    description: str
    endpoint: Optional[str] = None
    method: Optional[str] = None
    params: List[ActionParam] = Field(default_factory=list)


class Link(BaseModel):
    url: str  # host-relative for internal links, absolute for external ones
    context: str
    type: Optional[str] = None


class LinkSet(BaseModel):
    internal: List[Link] = Field(default_factory=list)
    external: List[Link] = Field(default_factory=list)


class ContentCapsule(BaseModel):
    """One generated capsule: frontmatter fields plus the Markdown body.

    Field aliases are the wire keys used in the serialized frontmatter
    (``mako`` for the format version, ``canonical`` for the canonical URL).
    """

    model_config = ConfigDict(populate_by_name=True)

    spec_version: str = Field(default=SPEC_VERSION, alias="mako")
    type: str
    entity: str
    updated: date
    tokens: int
    language: str
    summary: Optional[str] = None
    freshness: Optional[str] = None
    audience: Optional[str] = None
    canonical_url: Optional[str] = Field(default=None, alias="canonical")
    media: Optional[Media] = None
    tags: List[str] = Field(default_factory=list)
    actions: List[Action] = Field(default_factory=list)
    links: LinkSet = Field(default_factory=LinkSet)
    body: str = ""

    def frontmatter(self) -> Dict[str, Any]:
        """Return the wire-keyed frontmatter mapping (everything but the body)."""
        return self.model_dump(mode="json", by_alias=True, exclude={"body"}, exclude_none=True)


class ValidationResult(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class GenerationResult(BaseModel):
    """Everything a delivery layer needs to serve or store one capsule."""

    capsule: ContentCapsule
    content: str  # serialized frontmatter + body
    headers: Dict[str, str]
    etag: str
    html_tokens: int
    savings: float
    validation: ValidationResult
