import re
from typing import Any, Dict, List

from mako_capsule.models.capsule import CONTENT_TYPES, FRESHNESS_VALUES, LINK_TYPES, ValidationResult

REQUIRED_FIELDS = ("mako", "type", "entity", "updated", "tokens", "language")
MAX_SUMMARY_LENGTH = 160

_SNAKE_CASE_RE = re.compile(r"^[a-z][a-z0-9_]*$")


def _missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _as_int(value: Any):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def validate(frontmatter: Dict[str, Any], body: str = "", max_tokens: int = 1000) -> ValidationResult:
    """Check a wire-keyed frontmatter mapping and body against the capsule schema.

    Problems are reported, never raised, whatever shapes the mapping holds:
    callers decide whether to publish.
    """
    errors: List[str] = []
    warnings: List[str] = []

    for field in REQUIRED_FIELDS:
        if _missing(frontmatter.get(field)):
            errors.append(f"Missing required field: {field}")

    content_type = frontmatter.get("type")
    if not _missing(content_type) and content_type not in CONTENT_TYPES:
        errors.append(
            f'Invalid content type: "{content_type}". Must be one of: {", ".join(CONTENT_TYPES)}'
        )

    if not _missing(frontmatter.get("tokens")):
        tokens = _as_int(frontmatter["tokens"])
        if tokens is None or tokens <= 0:
            errors.append("Token count must be positive")
        elif tokens > max_tokens:
            warnings.append(
                f"Token count exceeds recommended maximum of {max_tokens} ({tokens})"
            )

    if not body or not body.strip():
        errors.append("Body is empty")

    freshness = frontmatter.get("freshness")
    if not _missing(freshness) and freshness not in FRESHNESS_VALUES:
        errors.append(
            f'Invalid freshness: "{freshness}". Must be one of: {", ".join(FRESHNESS_VALUES)}'
        )

    summary = frontmatter.get("summary")
    if summary is not None and not isinstance(summary, str):
        errors.append("Summary must be a string")
    elif summary and len(summary) > MAX_SUMMARY_LENGTH:
        warnings.append(f"Summary exceeds {MAX_SUMMARY_LENGTH} characters ({len(summary)})")

    _check_actions(frontmatter.get("actions"), errors, warnings)
    _check_links(frontmatter.get("links"), errors)

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def _check_actions(actions: Any, errors: List[str], warnings: List[str]) -> None:
    if not actions:
        return
    if not isinstance(actions, list) or not all(isinstance(action, dict) for action in actions):
        errors.append("actions must be a list of mappings")
        return

    for i, action in enumerate(actions, start=1):
        name = action.get("name")
        if _missing(name):
            errors.append(f'Action #{i}: missing required field "name"')
        elif not isinstance(name, str):
            errors.append(f"Action #{i}: name must be a string")
        elif not _SNAKE_CASE_RE.match(name):
            warnings.append(f'Action "{name}": name should be snake_case')
        if _missing(action.get("description")):
            errors.append(f'Action #{i}: missing required field "description"')


def _check_links(links: Any, errors: List[str]) -> None:
    if not links:
        return
    if not isinstance(links, dict):
        errors.append("links must be a mapping of internal and external lists")
        return

    for group in ("internal", "external"):
        entries = links.get(group) or []
        if not isinstance(entries, list):
            errors.append(f"links.{group} must be a list of mappings")
            continue
        for i, link in enumerate(entries, start=1):
            label = f"{group.capitalize()} link #{i}"
            if not isinstance(link, dict):
                errors.append(f"{label}: must be a mapping")
                continue
            if _missing(link.get("url")):
                errors.append(f'{label}: missing required field "url"')
            if _missing(link.get("context")):
                errors.append(f'{label}: missing required field "context"')
            link_type = link.get("type")
            if not _missing(link_type) and link_type not in LINK_TYPES:
                errors.append(
                    f'{label}: invalid link type "{link_type}". Must be one of: {", ".join(LINK_TYPES)}'
                )
