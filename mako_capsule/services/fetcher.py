"""Self-fetch collaborator: retrieves the HTML of a public page.

Besides the markup, a fetch reports the URL that was finally served (after
redirects) and the page's ``Last-Modified`` time, which feed the capsule's
link resolution and its ``updated`` date.
"""

import ipaddress
import logging
import socket
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import NamedTuple, Optional
from urllib.parse import urljoin, urlparse

import httpx

from mako_capsule.config import GENERATOR_NAME

logger = logging.getLogger(__name__)

MAX_CONTENT_SIZE = 10 * 1024 * 1024  # 10 MB
TIMEOUT = 30  # seconds
MAX_REDIRECTS = 5
ALLOWED_SCHEMES = {"http", "https"}

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")

REQUEST_HEADERS = {
    "Accept": "text/html,application/xhtml+xml;q=0.9",
    "User-Agent": GENERATOR_NAME,
}


class FetchedPage(NamedTuple):
    html: str
    url: str  # final URL after redirects
    last_modified: Optional[datetime] = None


def parse_last_modified(value: Optional[str]) -> Optional[datetime]:
    """Parse an HTTP date header; None when absent or malformed."""
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None


def is_html(content_type: Optional[str]) -> bool:
    """True for HTML media types, and for a missing header."""
    if not content_type:
        return True
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type in HTML_CONTENT_TYPES


def _is_private_address(hostname: str) -> bool:
    """Return True if *hostname* resolves to a private, loopback, or link-local address."""
    try:
        infos = socket.getaddrinfo(hostname, None)
    except socket.gaierror:
        return False

    for info in infos:
        # Strip IPv6 zone IDs (e.g. "::1%eth0" → "::1")
        raw_ip = info[4][0].split("%")[0]
        try:
            addr = ipaddress.ip_address(raw_ip)
        except ValueError:
            continue
        if addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved:
            return True
    return False


def validate_url(url: str) -> None:
    """Raise ValueError if *url* fails SSRF / scheme validation."""
    parsed = urlparse(url)

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ValueError(f"Scheme '{parsed.scheme}' is not allowed. Use http or https.")

    hostname = parsed.hostname
    if not hostname:
        raise ValueError("URL must have a valid hostname.")

    if _is_private_address(hostname):
        raise ValueError("Requests to private/internal addresses are not allowed.")


async def _read_capped(response: httpx.Response) -> bytes:
    """Stream the response body, stopping once it passes MAX_CONTENT_SIZE."""
    content_length = response.headers.get("content-length", "")
    if content_length.isdigit() and int(content_length) > MAX_CONTENT_SIZE:
        raise RuntimeError("Response body exceeds the maximum allowed size.")

    chunks = []
    total = 0
    async for chunk in response.aiter_bytes():
        total += len(chunk)
        if total > MAX_CONTENT_SIZE:
            raise RuntimeError("Response body exceeds the maximum allowed size.")
        chunks.append(chunk)
    return b"".join(chunks)


async def fetch_url(url: str, client: Optional[httpx.AsyncClient] = None) -> FetchedPage:
    """Fetch *url* as the capsule generator.

    Redirects are followed manually so that every hop is validated against
    the SSRF rules before it is requested; the returned page carries the
    URL of the last hop. Pass *client* to reuse a connection pool.

    Raises:
        ValueError: if a URL fails SSRF / scheme validation or the response
            is not an HTML document.
        httpx.HTTPError: on network or HTTP errors.
        RuntimeError: if the body exceeds MAX_CONTENT_SIZE or redirects loop.
    """
    validate_url(url)

    if client is None:
        async with httpx.AsyncClient(
            follow_redirects=False, timeout=TIMEOUT, headers=REQUEST_HEADERS
        ) as own_client:
            return await _fetch(own_client, url)
    return await _fetch(client, url)


async def _fetch(client: httpx.AsyncClient, url: str) -> FetchedPage:
    current_url = url
    for _ in range(MAX_REDIRECTS + 1):
        async with client.stream(
            "GET", current_url, headers=REQUEST_HEADERS, follow_redirects=False
        ) as response:
            if response.is_redirect:
                next_url = urljoin(current_url, response.headers.get("location", ""))
                validate_url(next_url)
                logger.debug("Following redirect %s -> %s", current_url, next_url)
                current_url = next_url
                continue

            response.raise_for_status()

            content_type = response.headers.get("content-type")
            if not is_html(content_type):
                raise ValueError(f"Expected an HTML page, got '{content_type}'.")

            body = await _read_capped(response)
            return FetchedPage(
                html=body.decode(response.encoding or "utf-8", errors="replace"),
                url=current_url,
                last_modified=parse_last_modified(response.headers.get("last-modified")),
            )

    raise RuntimeError("Too many redirects.")
