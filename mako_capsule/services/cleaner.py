"""Post-processing of generated Markdown: whitespace, boilerplate and duplicates."""

import re

# NBSP, typographic spaces, narrow NBSP, medium math space, ideographic space
_UNICODE_SPACE_RE = re.compile("[\u00a0\u2000-\u200a\u202f\u205f\u3000]")
_ZERO_WIDTH_RE = re.compile("[\u200b-\u200d\ufeff]")

# Boilerplate fragments; each pattern removes the rest of its line
_BOILERPLATE_PATTERNS = (
    re.compile(r"©\s*\d{4}[^\n]*", re.IGNORECASE),
    re.compile(r"\(c\)\s*\d{4}[^\n]*", re.IGNORECASE),
    re.compile(r"all\s+rights\s+reserved[^\n]*", re.IGNORECASE),
    re.compile(r"cookie\s+(?:policy|notice|consent|settings)[^\n]*", re.IGNORECASE),
    re.compile(r"(?:this\s+(?:web)?site|we)\s+uses?\s+cookies[^\n]*", re.IGNORECASE),
    re.compile(r"accept\s+(?:all\s+)?cookies[^\n]*", re.IGNORECASE),
    re.compile(r"privacy\s+(?:policy|notice)[^\n]*", re.IGNORECASE),
    re.compile(r"terms\s+(?:of\s+(?:service|use)|and\s+conditions)[^\n]*", re.IGNORECASE),
    re.compile(r"powered\s+by\s+\w+[^\n]*", re.IGNORECASE),
)

# Cloudflare e-mail obfuscation placeholder, in its raw and entity forms
_EMAIL_PROTECTED_RE = re.compile(r"\[email(?:\s|&#160;|&nbsp;)*protected\]", re.IGNORECASE)

# Links whose text is empty after conversion, e.g. icon-only anchors
_EMPTY_LINK_RE = re.compile(r"(?<!!)\[\s*\]\([^)]*\)")

_EXCESS_BLANK_LINES_RE = re.compile(r"\n{3,}")

# Heading markers left without text, e.g. from an empty <h2>
_EMPTY_HEADING_RE = re.compile(r"^#{1,6}$")


def clean_markdown(markdown: str) -> str:
    """Normalise whitespace, drop boilerplate lines and collapse duplicates."""
    if not markdown:
        return ""

    markdown = markdown.replace("\r\n", "\n").replace("\r", "\n")
    markdown = _UNICODE_SPACE_RE.sub(" ", markdown)
    markdown = _ZERO_WIDTH_RE.sub("", markdown)

    markdown = _EMAIL_PROTECTED_RE.sub("", markdown)
    markdown = _EMPTY_LINK_RE.sub("", markdown)
    for pattern in _BOILERPLATE_PATTERNS:
        markdown = pattern.sub("", markdown)

    deduped = []
    previous = None
    for line in markdown.split("\n"):
        line = line.strip()
        if _EMPTY_HEADING_RE.match(line):
            continue
        if line and line == previous:
            continue
        deduped.append(line)
        previous = line

    markdown = "\n".join(deduped)
    markdown = _EXCESS_BLANK_LINES_RE.sub("\n\n", markdown)

    return markdown.strip()
