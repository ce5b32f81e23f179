import logging
from typing import Optional

import httpx
from fastapi import APIRouter, HTTPException, Request

from mako_capsule.config import GeneratorConfig
from mako_capsule.models.capsule import GenerationResult
from mako_capsule.models.request import CapsuleRequest
from mako_capsule.routers.delivery import capsule_response, limiter, request_config
from mako_capsule.services.browser_fetcher import fetch_url_with_browser
from mako_capsule.services.fetcher import FetchedPage, fetch_url
from mako_capsule.services.generator import generate
from mako_capsule.services.metadata import source_from_html

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/capsule", response_model=GenerationResult, summary="Fetch a page and generate its capsule")
@limiter.limit("10/minute")
async def capsule(request: Request, body: CapsuleRequest):
    """Fetch *url*, read its metadata and generate the capsule.

    The ``render_mode`` field controls how the page is fetched:

    * ``"auto"`` – Plain HTTP first; headless-browser retry when the HTTP
      response yields no capsule (typically a client-rendered shell).
    * ``"http"`` – Plain HTTP only.
    * ``"browser"`` – Always use a headless Chromium browser.
    """
    url = str(body.url)
    logger.info("Capsule request received", extra={"url": url, "render_mode": body.render_mode})
    config = request_config(body.max_tokens)

    # ── Step 1: fetch HTML ────────────────────────────────────────────────────
    if body.render_mode == "browser":
        page = await _fetch_with_browser(url)
    else:
        page = await _fetch_with_http(url)
    if page.url != url:
        logger.info("Fetched %s from final URL %s", url, page.url)

    # ── Step 2: generate ──────────────────────────────────────────────────────
    result = _generate(page, body, config)

    # ── Step 3: browser retry (auto mode only) ────────────────────────────────
    if result is None and body.render_mode == "auto":
        logger.info("No capsule from HTTP response for %s – retrying with browser rendering", url)
        try:
            page = await _fetch_with_browser(url)
            result = _generate(page, body, config)
        except HTTPException as exc:
            logger.warning("Browser rendering failed for %s (%s)", url, exc.detail)

    if result is None:
        raise HTTPException(status_code=422, detail="The page has no usable content.")

    return capsule_response(request, result)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _generate(page: FetchedPage, body: CapsuleRequest, config: GeneratorConfig) -> Optional[GenerationResult]:
    # relative links and the site URL resolve against the page actually served
    source = source_from_html(
        page.html,
        page.url,
        modified=page.last_modified,
        title=body.title,
        post_type=body.post_type,
        tags=body.tags,
        categories=body.categories,
        language=body.language,
    )
    return generate(source, config)


async def _fetch_with_http(url: str) -> FetchedPage:
    """Fetch *url* via plain HTTP and propagate errors as HTTP exceptions."""
    try:
        return await fetch_url(url)
    except ValueError as exc:
        logger.warning("Invalid or blocked URL: %s – %s", url, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except httpx.TimeoutException:
        logger.error("Timeout fetching URL: %s", url)
        raise HTTPException(status_code=504, detail="The target URL timed out.")
    except httpx.HTTPStatusError as exc:
        logger.error("HTTP error fetching URL %s: %s", url, exc)
        raise HTTPException(
            status_code=502, detail=f"Target URL returned HTTP {exc.response.status_code}."
        )
    except (httpx.RequestError, RuntimeError) as exc:
        logger.error("Error fetching URL %s: %s", url, exc)
        raise HTTPException(status_code=502, detail=str(exc))


async def _fetch_with_browser(url: str) -> FetchedPage:
    """Fetch *url* with a headless browser and return the rendered page."""
    try:
        return await fetch_url_with_browser(url)
    except ValueError as exc:
        logger.warning("Invalid or blocked URL (browser): %s – %s", url, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except RuntimeError as exc:
        logger.error("Browser rendering error for %s: %s", url, exc)
        raise HTTPException(status_code=502, detail=str(exc))
    except Exception as exc:
        logger.error("Unexpected browser error for %s: %s", url, exc)
        raise HTTPException(status_code=502, detail="Browser rendering failed.")
