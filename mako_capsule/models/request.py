from typing import List, Literal, Optional

from pydantic import BaseModel, Field, HttpUrl

from mako_capsule.models.source import SourceDocument


class GenerateRequest(SourceDocument):
    """A source document supplied inline, plus an optional token budget."""

    max_tokens: Optional[int] = Field(default=None, ge=1)

    def to_source(self) -> SourceDocument:
        return SourceDocument(**self.model_dump(exclude={"max_tokens"}))


class CapsuleRequest(BaseModel):
    url: HttpUrl
    render_mode: Literal["auto", "http", "browser"] = "auto"
    """Rendering strategy for the target URL.

    ``"auto"`` (default)
        Plain HTTP fetch first; when the page yields no capsule, render it
        again with a headless browser.

    ``"http"``
        Plain HTTP only. Fastest; client-side rendered pages may come back empty.

    ``"browser"``
        Always render with headless Chromium.
    """
    title: Optional[str] = None
    post_type: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    language: Optional[str] = None
    max_tokens: Optional[int] = Field(default=None, ge=1)


class ValidateRequest(BaseModel):
    content: str = Field(..., description="Serialized capsule: frontmatter block followed by the body.")
    max_tokens: int = Field(default=1000, ge=1)


class SitemapRequest(BaseModel):
    site_url: HttpUrl
    capsules: List[str] = Field(default_factory=list, description="Serialized capsules to index.")
