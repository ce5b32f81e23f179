import logging
import re
from typing import Optional

from bs4 import BeautifulSoup, Comment, Tag

logger = logging.getLogger(__name__)

# Matches `display:none` or `visibility:hidden` in inline style attributes
_HIDDEN_STYLE_RE = re.compile(
    r"(display\s*:\s*none|visibility\s*:\s*hidden)", re.IGNORECASE
)

# Tags whose entire subtree is chrome, scripting or binary noise
_REMOVE_TAGS = {
    "script",
    "style",
    "noscript",
    "iframe",
    "svg",
    "form",
    "nav",
    "footer",
    "header",
    "aside",
    "canvas",
    "template",
    "object",
    "embed",
    "link",
    "meta",
}

# ARIA landmark roles that mark page chrome rather than content
_REMOVE_ROLES = {"navigation", "banner", "contentinfo", "complementary"}

# Substrings of the raw class attribute that mark non-content blocks
_NOISE_CLASSES = (
    "adsbygoogle",
    "advertisement",
    "sidebar",
    "widget",
    "cookie",
    "consent",
    "popup",
    "modal",
    "overlay",
    "social-share",
    "share-buttons",
    "newsletter",
    "subscribe",
    "comments",
    "comment-form",
    "related-posts",
    "breadcrumb",
    "pagination",
    "footer",
    "copyright",
)

# "ad" or "ads" as a whole class or a hyphen/underscore part of one;
# "uploads" or "threads" do not match
_AD_CLASS_RE = re.compile(r"(?:^|[\s_-])ads?(?:$|[\s_-])")

# Structural roots are never dropped on class alone (WordPress puts classes
# such as "no-sidebar" on <body>)
_PROTECTED_TAGS = {"html", "body"}

# Content-root candidates, most specific first
_CONTENT_SELECTORS = (
    "main",
    "article",
    '[role="main"]',
    ".entry-content",
    ".post-content",
    ".page-content",
    ".wp-block-post-content",
    ".content",
)


def _class_string(tag: Tag) -> str:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        return classes.lower()
    return " ".join(classes).lower()


def _is_noise(tag: Tag) -> bool:
    """Return True when *tag* is page chrome, hidden, or flagged by class."""
    if tag.name in _PROTECTED_TAGS:
        return False
    if str(tag.get("role", "")).lower() in _REMOVE_ROLES:
        return True
    if tag.has_attr("hidden"):
        return True
    if str(tag.get("aria-hidden", "")).lower() == "true":
        return True
    inline_style = tag.get("style", "")
    if inline_style and _HIDDEN_STYLE_RE.search(str(inline_style)):
        return True
    class_attr = _class_string(tag)
    if not class_attr:
        return False
    return bool(_AD_CLASS_RE.search(class_attr)) or any(noise in class_attr for noise in _NOISE_CLASSES)


def sanitize(html: str) -> BeautifulSoup:
    """Parse *html* permissively and strip every noise node from the tree."""
    soup = BeautifulSoup(html, "lxml")

    for tag in soup.find_all(_REMOVE_TAGS):
        tag.decompose()

    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    # find_all returns a snapshot, so descendants of an already removed
    # element are still visited; skip them once their parent is gone.
    for tag in soup.find_all(True):
        if tag.decomposed:
            continue
        if _is_noise(tag):
            tag.decompose()

    return soup


def find_content_root(soup: BeautifulSoup) -> Tag:
    """Return the most likely main-content element of a sanitized tree."""
    for selector in _CONTENT_SELECTORS:
        node = soup.select_one(selector)
        if node:
            return node
    return soup.find("body") or soup


def reduce_html(html: str) -> Optional[Tag]:
    """Sanitize *html* and return its main-content subtree.

    Returns *None* when there is nothing to work with, so callers treat the
    document as "no content" instead of handling an exception.
    """
    if not html or not html.strip():
        return None

    try:
        soup = sanitize(html)
    except Exception as exc:
        logger.warning("HTML could not be parsed: %s", exc)
        return None

    root = find_content_root(soup)
    if root is None or not root.get_text(strip=True) and not root.find("img"):
        return None
    return root
