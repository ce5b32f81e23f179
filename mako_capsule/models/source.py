from datetime import datetime
from typing import List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field

from mako_capsule.models.capsule import Cover


class ProductInfo(BaseModel):
    """Structured commerce data supplied by the host shop, if any."""

    name: str = ""
    short_description: str = ""  # may contain HTML
    price: str = ""
    regular_price: str = ""
    sale_price: str = ""
    currency: str = ""
    on_sale: bool = False
    in_stock: bool = True


class SourceDocument(BaseModel):
    """Immutable input to one generation call.

    ``html`` is the fully rendered page; every other field is metadata the
    host system already knows about the document.
    """

    model_config = ConfigDict(frozen=True)

    html: str = ""
    url: str = ""
    site_url: str = ""
    title: str = ""
    excerpt: str = ""
    seo_title: str = ""
    seo_description: str = ""
    modified: Optional[datetime] = None
    post_type: str = "page"
    slug: str = ""
    tags: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    language: str = ""
    cover: Optional[Cover] = None
    product: Optional[ProductInfo] = None

    @property
    def base_url(self) -> str:
        """Site root used to resolve and classify links."""
        if self.site_url:
            return self.site_url
        parsed = urlparse(self.url)
        if parsed.scheme and parsed.netloc:
            return f"{parsed.scheme}://{parsed.netloc}"
        return ""

    @property
    def effective_slug(self) -> str:
        if self.slug:
            return self.slug.lower()
        path = urlparse(self.url).path.strip("/")
        return path.split("/")[-1].lower() if path else ""
