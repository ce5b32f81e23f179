"""DOM-to-Markdown conversion.

Two extraction strategies share one converter:

``render``
    markdownify over the whole content root, with overrides for links,
    images, code fences, lists, tables and the ``mark``/``del`` family.

``semantic_extract``
    Walks the same tree but only emits headings, paragraphs, list items,
    table cells, blockquotes and figcaptions (lists and tables as whole
    units), de-duplicated by normalised text. Page builders that bury text
    in dozens of wrapper ``<div>`` elements come out much cleaner this way.

:func:`convert` runs the recursive strategy and only falls back to the
semantic one when the result is thin, keeping whichever scores higher.
"""

import hashlib
import logging
import re
from typing import Callable, List, Optional, Sequence, Set, Tuple
from urllib.parse import urljoin

from bs4 import Tag
from markdownify import MarkdownConverter

from mako_capsule.services.cleaner import clean_markdown

logger = logging.getLogger(__name__)

# Below this many non-whitespace characters the recursive result is "thin"
MIN_CONTENT_CHARS = 100

_SKIP_HREF_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:")
_CODE_LANG_RE = re.compile(r"(?:language|lang|hljs)-(\w+)")
_WHITESPACE_RE = re.compile(r"\s+")
_BLANK_RUN_RE = re.compile(r"\n{2,}")

_HEADINGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
_SEMANTIC_TAGS = _HEADINGS | {"p", "li", "td", "th", "blockquote", "figcaption"}
_SEMANTIC_UNITS = {"ul", "ol", "table"}

ExtractionStrategy = Callable[[Tag, str], str]


def content_score(markdown: str) -> int:
    """Quality metric shared by the strategies: non-whitespace character count."""
    return len(_WHITESPACE_RE.sub("", markdown))


class CapsuleConverter(MarkdownConverter):
    """markdownify converter tuned for capsule bodies.

    Links and images are resolved against *base_url*. Lists and tables are
    rebuilt from the element itself so empty items are skipped and a table
    without ``<thead>`` gets its first row promoted to the header once.
    """

    def __init__(self, base_url: str = "", **options) -> None:
        options.setdefault("heading_style", "ATX")
        options.setdefault("bullets", "-")
        options.setdefault("escape_asterisks", False)
        options.setdefault("escape_underscores", False)
        options.setdefault("escape_misc", False)
        options.setdefault("sup_symbol", "<sup>")
        options.setdefault("sub_symbol", "<sub>")
        super().__init__(**options)
        self.base_url = base_url

    def fragment(self, node: Tag) -> str:
        """Markdown for the children of *node*, converted on their own."""
        return self.convert(node.decode_contents()).strip()

    # ------------------------------------------------------------------
    # Inline
    # ------------------------------------------------------------------

    def convert_a(self, el, text, *args, **kwargs):
        text = (text or "").strip()
        href = str(el.get("href", "")).strip()

        if not href or not text:
            return text
        if href.lower().startswith(_SKIP_HREF_PREFIXES):
            return text

        return f"[{text}]({self._resolve(href)})"

    def convert_img(self, el, text, *args, **kwargs):
        src = str(el.get("src", "")).strip()
        if not src:
            return ""
        alt = _WHITESPACE_RE.sub(" ", str(el.get("alt", ""))).strip()
        return f"![{alt}]({self._resolve(src)})"

    def convert_mark(self, el, text, *args, **kwargs):
        return _wrap(text, "==")

    def convert_del(self, el, text, *args, **kwargs):
        return _wrap(text, "~~")

    convert_s = convert_del
    convert_strike = convert_del

    def convert_figcaption(self, el, text, *args, **kwargs):
        text = (text or "").strip()
        return f"\n\n*{text}*\n\n" if text else ""

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def convert_pre(self, el, text, *args, **kwargs):
        code = el.find("code")
        lang = ""
        if code is not None:
            match = _CODE_LANG_RE.search(_class_attr(code))
            if match:
                lang = match.group(1)
            text = code.get_text()
        else:
            text = el.get_text()

        text = text.strip()
        if not text:
            return ""
        return f"\n\n```{lang}\n{text}\n```\n\n"

    def convert_ul(self, el, text, *args, **kwargs):
        return self._list(el, ordered=False)

    def convert_ol(self, el, text, *args, **kwargs):
        return self._list(el, ordered=True)

    def convert_li(self, el, text, *args, **kwargs):
        # only reached for items outside a list; lists rebuild their items
        return (text or "").strip()

    def convert_table(self, el, text, *args, **kwargs):
        header_rows, body_rows = self._table_rows(el)

        if not header_rows and body_rows:
            # promote the first body row; it is not repeated as data
            header_rows, body_rows = body_rows[:1], body_rows[1:]
        if not header_rows:
            return ""

        columns = len(header_rows[0]) or 1
        lines = [_table_line(row) for row in header_rows]
        lines.append(_table_line(["---"] * columns))
        lines.extend(_table_line(row) for row in body_rows)
        return "\n\n" + "\n".join(lines) + "\n\n"

    def _list(self, el: Tag, ordered: bool) -> str:
        items: List[str] = []
        for child in el.find_all("li", recursive=False):
            content = self.fragment(child)
            if not content:
                continue
            # keep nested blocks tight inside one item
            content = _BLANK_RUN_RE.sub("\n", content)
            prefix = f"{len(items) + 1}. " if ordered else "- "
            items.append(prefix + content)
        return "\n\n" + "\n".join(items) + "\n\n" if items else ""

    def _table_rows(self, table: Tag) -> Tuple[List[List[str]], List[List[str]]]:
        header_rows: List[List[str]] = []
        body_rows: List[List[str]] = []

        for tr in table.find_all("tr"):
            # rows of nested tables belong to those tables
            if tr.find_parent("table") is not table:
                continue
            cells = [
                _WHITESPACE_RE.sub(" ", self.fragment(cell)).strip().replace("|", "\\|")
                for cell in tr.find_all(["td", "th"], recursive=False)
            ]
            if not cells:
                continue
            section = tr.find_parent(["thead", "tbody", "tfoot", "table"])
            if section is not None and section.name == "thead":
                header_rows.append(cells)
            else:
                body_rows.append(cells)

        return header_rows, body_rows

    def _resolve(self, url: str) -> str:
        if not self.base_url:
            return url
        return urljoin(self.base_url, url)


def _class_attr(tag: Tag) -> str:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        return classes
    return " ".join(classes)


def _wrap(children: str, marker: str) -> str:
    text = (children or "").strip()
    return f"{marker}{text}{marker}" if text else ""


def _table_line(cells: Sequence[str]) -> str:
    return "| " + " | ".join(cells) + " |"


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def render(root: Tag, base_url: str = "") -> str:
    """Recursive strategy: convert the whole subtree."""
    return clean_markdown(CapsuleConverter(base_url).convert_soup(root))


def semantic_extract(root: Tag, base_url: str = "") -> str:
    """Semantic strategy: emit whitelisted elements only, de-duplicated."""
    converter = CapsuleConverter(base_url)
    blocks: List[str] = []
    seen: Set[str] = set()

    def emit(markdown: str) -> None:
        markdown = markdown.strip()
        normalized = _WHITESPACE_RE.sub(" ", markdown).lower()
        if not normalized:
            return
        digest = hashlib.md5(normalized.encode("utf-8")).hexdigest()
        if digest in seen:
            return
        seen.add(digest)
        blocks.append(markdown)

    def visit(node: Tag) -> None:
        for child in node.children:
            if not isinstance(child, Tag):
                continue
            name = (child.name or "").lower()
            if name in _SEMANTIC_UNITS or name in _SEMANTIC_TAGS:
                emit(converter.convert_soup(child))
            else:
                visit(child)

    visit(root)
    return clean_markdown("\n\n".join(blocks))


def pick_best(candidates: Sequence[str]) -> str:
    """Return the highest-scoring candidate; earlier candidates win ties."""
    best = ""
    best_score = -1
    for candidate in candidates:
        score = content_score(candidate)
        if score > best_score:
            best, best_score = candidate, score
    return best


def convert(
    root: Optional[Tag],
    base_url: str = "",
    fallbacks: Sequence[ExtractionStrategy] = (semantic_extract,),
) -> str:
    """Convert a content subtree to Markdown.

    The recursive strategy runs first. Only when its output scores below
    :data:`MIN_CONTENT_CHARS` are the *fallbacks* tried, and a fallback
    replaces the primary result only if it scores strictly higher.
    """
    if root is None:
        return ""

    primary = render(root, base_url)
    if content_score(primary) >= MIN_CONTENT_CHARS:
        return primary

    candidates = [primary] + [strategy(root, base_url) for strategy in fallbacks]
    best = pick_best(candidates)
    if best is not primary:
        logger.debug(
            "Semantic extraction replaced thin conversion (%d -> %d chars)",
            content_score(primary),
            content_score(best),
        )
    return best
