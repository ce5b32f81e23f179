import hashlib
from datetime import date, datetime, time, timezone
from email.utils import format_datetime
from typing import Any, Dict, Optional

from mako_capsule.config import CAPSULE_MEDIA_TYPE, SPEC_VERSION


def _http_date(updated: Any) -> Optional[str]:
    if isinstance(updated, str):
        try:
            updated = date.fromisoformat(updated[:10])
        except ValueError:
            return None
    if isinstance(updated, datetime):
        moment = updated if updated.tzinfo else updated.replace(tzinfo=timezone.utc)
    elif isinstance(updated, date):
        moment = datetime.combine(updated, time(0, 0), tzinfo=timezone.utc)
    else:
        return None
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def build_headers(
    frontmatter: Dict[str, Any],
    canonical: str = "",
    cache_control: str = "public, max-age=3600",
) -> Dict[str, str]:
    """Response headers mirroring a capsule's frontmatter for the delivery layer."""
    headers = {
        "Content-Type": f"{CAPSULE_MEDIA_TYPE}; charset=utf-8",
        "X-Mako-Version": str(frontmatter.get("mako") or SPEC_VERSION),
        "X-Mako-Tokens": str(frontmatter.get("tokens") or 0),
        "X-Mako-Type": str(frontmatter.get("type") or "custom"),
        "X-Mako-Lang": str(frontmatter.get("language") or "en"),
        "Vary": "Accept",
        "Cache-Control": cache_control,
    }

    names = [action.get("name") for action in frontmatter.get("actions") or [] if action.get("name")]
    if names:
        headers["X-Mako-Actions"] = ", ".join(names)

    last_modified = _http_date(frontmatter.get("updated"))
    if last_modified:
        headers["Last-Modified"] = last_modified

    location = canonical or frontmatter.get("canonical") or ""
    if location:
        headers["Content-Location"] = location

    return headers


def generate_etag(content: str) -> str:
    """Quoted strong ETag derived from the serialized capsule."""
    digest = hashlib.md5(content.encode("utf-8")).hexdigest()[:12]
    return f'"mako-{digest}"'
