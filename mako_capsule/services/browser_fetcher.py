"""Playwright-based fetcher for JavaScript-rendered (dynamic) web pages."""

from playwright.async_api import async_playwright

from mako_capsule.config import GENERATOR_NAME
from mako_capsule.services.fetcher import (
    MAX_CONTENT_SIZE,
    REQUEST_HEADERS,
    FetchedPage,
    parse_last_modified,
    validate_url,
)

TIMEOUT_MS = 30_000  # 30 s in milliseconds


async def fetch_url_with_browser(url: str) -> FetchedPage:
    """Render *url* with a headless Chromium browser.

    The page is captured once the network is idle, so client-side rendered
    content is present. The URL the browser ended up on after redirects and
    in-page navigation is validated again before the HTML is returned.

    Raises:
        ValueError: if the requested or the final URL fails SSRF / scheme validation.
        RuntimeError: if the rendered HTML exceeds MAX_CONTENT_SIZE.
        playwright.async_api.Error: on browser/network errors.
    """
    validate_url(url)

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(
            headless=True,
            # --no-sandbox is required when running as root inside a container
            args=["--no-sandbox", "--disable-dev-shm-usage", "--disable-gpu"],
        )
        context = await browser.new_context(
            user_agent=GENERATOR_NAME,
            extra_http_headers={"Accept": REQUEST_HEADERS["Accept"]},
        )
        page = await context.new_page()
        try:
            response = await page.goto(url, wait_until="networkidle", timeout=TIMEOUT_MS)
            final_url = page.url
            last_modified = None
            if response is not None:
                last_modified = parse_last_modified(response.headers.get("last-modified"))
            html = await page.content()
        finally:
            await context.close()
            await browser.close()

    validate_url(final_url)
    if len(html.encode()) > MAX_CONTENT_SIZE:
        raise RuntimeError("Rendered HTML exceeds the maximum allowed size.")

    return FetchedPage(html=html, url=final_url, last_modified=last_modified)
