"""Capsule wire format: frontmatter writer and the matching reader.

The writer emits a small, fixed YAML subset (scalars, nested mappings and
lists of scalars or mappings, two-space indentation) in a stable key order.
The reader is plain PyYAML, so hand-written capsules in any valid YAML
style are accepted too.
"""

import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import yaml

from mako_capsule.config import SPEC_VERSION
from mako_capsule.models.capsule import ContentCapsule

REQUIRED_KEYS = ("mako", "type", "entity", "updated", "tokens", "language")
OPTIONAL_KEYS = ("summary", "freshness", "audience", "canonical")
MEDIA_COUNT_KEYS = ("images", "video", "audio", "interactive", "downloads")

_BARE_VALUE_RE = re.compile(r"^[a-zA-Z0-9_./][a-zA-Z0-9\-_./]*$")
_BARE_TAGS = {"tag:yaml.org,2002:str", "tag:yaml.org,2002:timestamp"}
_RESOLVER = yaml.resolver.Resolver()
_VERSION_RE = re.compile(r"^\d+\.\d+$")
_BLOCK_RE = re.compile(r"\A---[ \t]*\n(.*?)^---[ \t]*(?:\n|\Z)", re.DOTALL | re.MULTILINE)


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------

def yaml_string(value: Any) -> str:
    """Leave simple path-like values bare, quote and escape everything else.

    A bare value must also read back as a string (or a date), so words YAML
    resolves to booleans, nulls or numbers, such as ``no`` or ``42``, get quoted.
    """
    value = str(value)
    if _BARE_VALUE_RE.match(value) and _is_bare_safe(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def _is_bare_safe(value: str) -> bool:
    return _RESOLVER.resolve(yaml.ScalarNode, value, (True, False)) in _BARE_TAGS


def yaml_version(value: Any) -> str:
    """Quote numeric-looking versions so YAML readers keep them as strings."""
    value = str(value)
    if _VERSION_RE.match(value):
        return f'"{value}"'
    return yaml_string(value)


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def build_frontmatter(data: Dict[str, Any]) -> str:
    """Serialize a wire-keyed frontmatter mapping, delimiters included.

    Required keys always come first and in a fixed order; optional keys
    follow only when they carry a value.
    """
    lines = ["---"]

    lines.append(f"mako: {yaml_version(data.get('mako') or SPEC_VERSION)}")
    lines.append(f"type: {yaml_string(data.get('type') or 'custom')}")
    lines.append(f"entity: {yaml_string(data.get('entity') or 'Unknown')}")
    lines.append(f"updated: {yaml_string(data.get('updated') or '')}")
    lines.append(f"tokens: {_to_int(data.get('tokens'))}")
    lines.append(f"language: {yaml_string(data.get('language') or 'en')}")

    for key in OPTIONAL_KEYS:
        if data.get(key):
            lines.append(f"{key}: {yaml_string(data[key])}")

    lines.extend(_media_lines(data.get("media")))

    tags = data.get("tags") or []
    if tags:
        lines.append("tags:")
        lines.extend(f"  - {yaml_string(tag)}" for tag in tags)

    lines.extend(_action_lines(data.get("actions") or []))
    lines.extend(_link_lines(data.get("links") or {}))

    # extra keys contributed by enrichers, scalars only
    known = set(REQUIRED_KEYS) | set(OPTIONAL_KEYS) | {"media", "tags", "actions", "links"}
    for key, value in data.items():
        if key in known or value is None or value == "" or isinstance(value, (dict, list)):
            continue
        if isinstance(value, bool):
            lines.append(f"{key}: {'true' if value else 'false'}")
        elif isinstance(value, (int, float)):
            lines.append(f"{key}: {value}")
        else:
            lines.append(f"{key}: {yaml_string(value)}")

    lines.append("---")
    return "\n".join(lines) + "\n"


def _media_lines(media: Optional[Dict[str, Any]]) -> List[str]:
    if not media:
        return []

    lines = []
    cover = media.get("cover")
    if cover and cover.get("url"):
        lines.append("  cover:")
        lines.append(f"    url: {yaml_string(cover['url'])}")
        lines.append(f"    alt: {yaml_string(cover.get('alt') or '')}")
    for key in MEDIA_COUNT_KEYS:
        count = _to_int(media.get(key))
        if count:
            lines.append(f"  {key}: {count}")

    return ["media:"] + lines if lines else []


def _action_lines(actions: List[Dict[str, Any]]) -> List[str]:
    if not actions:
        return []

    lines = ["actions:"]
    for action in actions:
        lines.append(f"  - name: {yaml_string(action.get('name', ''))}")
        lines.append(f"    description: {yaml_string(action.get('description', ''))}")
        if action.get("endpoint"):
            lines.append(f"    endpoint: {yaml_string(action['endpoint'])}")
        if action.get("method"):
            lines.append(f"    method: {yaml_string(action['method'])}")
        params = action.get("params") or []
        if params:
            lines.append("    params:")
            for param in params:
                lines.append(f"      - name: {yaml_string(param.get('name', ''))}")
                lines.append(f"        type: {yaml_string(param.get('type') or 'string')}")
                lines.append(f"        required: {'true' if param.get('required') else 'false'}")
                if param.get("description"):
                    lines.append(f"        description: {yaml_string(param['description'])}")
    return lines


def _link_lines(links: Dict[str, Any]) -> List[str]:
    lines = []
    for group in ("internal", "external"):
        entries = links.get(group) or []
        if not entries:
            continue
        lines.append(f"  {group}:")
        for link in entries:
            lines.append(f"    - url: {yaml_string(link.get('url', ''))}")
            lines.append(f"      context: {yaml_string(link.get('context', ''))}")
            if link.get("type"):
                lines.append(f"      type: {yaml_string(link['type'])}")
    return ["links:"] + lines if lines else []


def serialize(capsule: ContentCapsule, frontmatter: Optional[Dict[str, Any]] = None) -> str:
    """Full capsule text: frontmatter, a blank line, then the Markdown body.

    *frontmatter* overrides the mapping taken from the capsule, for callers
    that carry extra keys the model does not declare.
    """
    if frontmatter is None:
        frontmatter = capsule.frontmatter()
    return build_frontmatter(frontmatter) + "\n" + capsule.body


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------

def _normalize(value: Any) -> Any:
    """Turn YAML timestamps back into the ISO strings the writer emitted."""
    if isinstance(value, dict):
        return {str(key): _normalize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_normalize(item) for item in value]
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def parse_frontmatter(text: str) -> Optional[Dict[str, Any]]:
    """Parse the frontmatter block at the start of *text*.

    Returns None when there is no block at all. Raises ValueError when the
    block is not valid YAML or is not a mapping.
    """
    text = text.replace("\r\n", "\n")
    match = _BLOCK_RE.match(text)
    if match is None:
        return None

    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Frontmatter is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("Frontmatter must be a mapping.")

    updated = data.get("updated")
    if isinstance(updated, datetime):
        data["updated"] = updated.date()

    data = _normalize(data)

    # "mako: 1.0" loads as a float
    if data.get("mako") is not None:
        data["mako"] = str(data["mako"])
    if "tokens" in data and not isinstance(data["tokens"], bool):
        try:
            data["tokens"] = int(data["tokens"])
        except (TypeError, ValueError):
            pass

    return data


def parse_capsule(text: str) -> Tuple[Optional[Dict[str, Any]], str]:
    """Split serialized capsule *text* into its frontmatter mapping and body."""
    text = text.replace("\r\n", "\n")
    match = _BLOCK_RE.match(text)
    if match is None:
        return None, text

    body = text[match.end():]
    if body.startswith("\n"):
        body = body[1:]
    return parse_frontmatter(text), body
