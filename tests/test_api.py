"""Tests for the HTTP API.

Network access and the Playwright browser are replaced with AsyncMock
patches on the capsule router, so the tests run offline.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

from mako_capsule.main import app
from mako_capsule.services.fetcher import FetchedPage

client = TestClient(app)

CAPSULE_ACCEPT = {"Accept": "text/mako+markdown"}


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Clear the slowapi in-memory counter before every test."""
    app.state.limiter._storage.reset()
    yield


_ARTICLE_HTML = """
<!DOCTYPE html>
<html lang="en">
<head>
  <title>Brewing Better Coffee | Bean Blog</title>
  <meta name="description" content="How to brew better coffee at home.">
  <link rel="canonical" href="https://blog.example.com/brewing-better-coffee/">
</head>
<body>
  <main>
    <h1>Brewing Better Coffee</h1>
    <p>Great coffee starts with fresh beans, clean water and a grinder you trust every morning.</p>
    <h2>Grind size</h2>
    <p>Match the grind to your brewer and taste as you go.</p>
    <button>Subscribe</button>
  </main>
</body>
</html>
"""

# What a client-side rendered app returns before JavaScript runs
_SHELL_HTML = '<html><head><title>App</title></head><body><div id="root"></div></body></html>'

_VALID_CAPSULE = """---
mako: "1.0"
type: article
entity: "Brewing Better Coffee"
updated: 2024-05-01
tokens: 12
language: en
---

# Brewing Better Coffee

Fresh beans matter.
"""


def _page(html, url="https://blog.example.com/brewing-better-coffee", last_modified=None):
    return FetchedPage(html=html, url=url, last_modified=last_modified)


def _generate_payload(**overrides):
    payload = {
        "html": _ARTICLE_HTML,
        "url": "https://blog.example.com/brewing-better-coffee",
        "title": "Brewing Better Coffee | Bean Blog",
        "post_type": "post",
        "modified": "2024-05-01T09:30:00Z",
    }
    payload.update(overrides)
    return payload


# ── Health check ─────────────────────────────────────────────────────────────

class TestRoot:
    def test_health_check(self):
        resp = client.get("/")
        assert resp.status_code == 200
        data = resp.json()
        assert data["message"] == "MAKO capsule generator is running"
        assert data["version"] == "0.1.0"


# ── /generate ────────────────────────────────────────────────────────────────

class TestGenerate:
    def test_json_response(self):
        resp = client.post("/generate", json=_generate_payload())
        assert resp.status_code == 200
        data = resp.json()
        assert data["capsule"]["mako"] == "1.0"
        assert data["capsule"]["type"] == "article"
        assert data["capsule"]["entity"] == "Brewing Better Coffee"
        assert data["capsule"]["updated"] == "2024-05-01"
        assert data["content"].startswith('---\nmako: "1.0"\n')
        assert data["validation"]["valid"] is True
        assert data["etag"].startswith('"mako-')

    def test_capsule_response_with_accept_header(self):
        resp = client.post("/generate", json=_generate_payload(), headers=CAPSULE_ACCEPT)
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "text/mako+markdown; charset=utf-8"
        assert resp.headers["x-mako-type"] == "article"
        assert resp.headers["x-mako-actions"] == "subscribe"
        assert resp.headers["vary"] == "Accept"
        assert resp.headers["etag"].startswith('"mako-')
        assert resp.text.startswith("---\nmako:")
        assert "# Brewing Better Coffee" in resp.text

    def test_ai_crawler_gets_capsule_text(self):
        resp = client.post(
            "/generate", json=_generate_payload(), headers={"User-Agent": "Mozilla/5.0 (compatible; GPTBot/1.0)"}
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "text/mako+markdown; charset=utf-8"
        assert resp.headers["vary"] == "Accept, User-Agent"
        assert resp.text.startswith("---\nmako:")

    def test_regular_browser_gets_json(self):
        resp = client.post("/generate", json=_generate_payload(), headers={"User-Agent": "Firefox/125.0"})
        assert resp.headers["content-type"] == "application/json"

    def test_not_modified(self):
        first = client.post("/generate", json=_generate_payload(), headers=CAPSULE_ACCEPT)
        etag = first.headers["etag"]
        resp = client.post(
            "/generate",
            json=_generate_payload(),
            headers={**CAPSULE_ACCEPT, "If-None-Match": etag},
        )
        assert resp.status_code == 304
        assert resp.headers["etag"] == etag
        assert resp.content == b""

    def test_max_tokens_override(self):
        resp = client.post("/generate", json=_generate_payload(max_tokens=10))
        assert resp.status_code == 200
        assert resp.json()["capsule"]["tokens"] <= 10

    def test_no_content_returns_422(self):
        resp = client.post("/generate", json=_generate_payload(html="<script>x()</script>"))
        assert resp.status_code == 422
        assert resp.json()["detail"] == "The document has no usable content."

    def test_invalid_max_tokens_rejected(self):
        resp = client.post("/generate", json=_generate_payload(max_tokens=0))
        assert resp.status_code == 422


# ── /capsule ─────────────────────────────────────────────────────────────────

class TestCapsule:
    def test_http_fetch(self):
        with patch("mako_capsule.routers.capsule.fetch_url", new=AsyncMock(return_value=_page(_ARTICLE_HTML))):
            resp = client.post("/capsule", json={"url": "https://blog.example.com/brewing-better-coffee"})
        assert resp.status_code == 200
        capsule = resp.json()["capsule"]
        assert capsule["entity"] == "Brewing Better Coffee"
        assert capsule["canonical"] == "https://blog.example.com/brewing-better-coffee/"
        assert capsule["summary"] == "How to brew better coffee at home."
        assert capsule["language"] == "en"

    def test_metadata_overrides(self):
        payload = {
            "url": "https://blog.example.com/brewing-better-coffee",
            "post_type": "post",
            "tags": ["Coffee"],
            "language": "pt_BR",
        }
        with patch("mako_capsule.routers.capsule.fetch_url", new=AsyncMock(return_value=_page(_ARTICLE_HTML))):
            resp = client.post("/capsule", json=payload)
        capsule = resp.json()["capsule"]
        assert capsule["type"] == "article"
        assert capsule["tags"] == ["coffee"]
        assert capsule["language"] == "pt"

    def test_final_url_and_last_modified_used(self):
        html = (
            "<html><head><title>Coffee Guide</title></head><body><main>"
            "<h1>Coffee Guide</h1><p>Everything about brewing coffee at home, from beans to cups.</p>"
            '<p>See <a href="https://new.example.com/beans">our bean range</a> today.</p>'
            "</main></body></html>"
        )
        page = _page(
            html,
            url="https://new.example.com/coffee-guide",
            last_modified=datetime(2024, 3, 2, 8, 0, tzinfo=timezone.utc),
        )
        with patch("mako_capsule.routers.capsule.fetch_url", new=AsyncMock(return_value=page)):
            resp = client.post("/capsule", json={"url": "https://old.example.com/coffee-guide"})
        assert resp.status_code == 200
        capsule = resp.json()["capsule"]
        assert capsule["canonical"] == "https://new.example.com/coffee-guide"
        assert capsule["updated"] == "2024-03-02"
        assert capsule["links"]["internal"] == [{"url": "/beans", "context": "our bean range", "type": None}]
        assert capsule["links"]["external"] == []

    def test_auto_mode_retries_with_browser(self):
        http_mock = AsyncMock(return_value=_page(_SHELL_HTML))
        browser_mock = AsyncMock(return_value=_page(_ARTICLE_HTML))
        with patch("mako_capsule.routers.capsule.fetch_url", new=http_mock), patch(
            "mako_capsule.routers.capsule.fetch_url_with_browser", new=browser_mock
        ):
            resp = client.post("/capsule", json={"url": "https://app.example.com/"})
        assert resp.status_code == 200
        http_mock.assert_awaited_once()
        browser_mock.assert_awaited_once()

    def test_http_mode_never_uses_browser(self):
        browser_mock = AsyncMock(return_value=_page(_ARTICLE_HTML))
        with patch("mako_capsule.routers.capsule.fetch_url", new=AsyncMock(return_value=_page(_SHELL_HTML))), patch(
            "mako_capsule.routers.capsule.fetch_url_with_browser", new=browser_mock
        ):
            resp = client.post("/capsule", json={"url": "https://app.example.com/", "render_mode": "http"})
        assert resp.status_code == 422
        browser_mock.assert_not_awaited()

    def test_browser_mode(self):
        http_mock = AsyncMock(return_value=_page(_SHELL_HTML))
        with patch("mako_capsule.routers.capsule.fetch_url", new=http_mock), patch(
            "mako_capsule.routers.capsule.fetch_url_with_browser", new=AsyncMock(return_value=_page(_ARTICLE_HTML))
        ):
            resp = client.post("/capsule", json={"url": "https://app.example.com/", "render_mode": "browser"})
        assert resp.status_code == 200
        http_mock.assert_not_awaited()

    def test_auto_mode_browser_failure_returns_422(self):
        with patch("mako_capsule.routers.capsule.fetch_url", new=AsyncMock(return_value=_page(_SHELL_HTML))), patch(
            "mako_capsule.routers.capsule.fetch_url_with_browser",
            new=AsyncMock(side_effect=RuntimeError("Chromium missing")),
        ):
            resp = client.post("/capsule", json={"url": "https://app.example.com/"})
        assert resp.status_code == 422

    def test_blocked_url_returns_400(self):
        with patch(
            "mako_capsule.routers.capsule.fetch_url",
            new=AsyncMock(side_effect=ValueError("Requests to private addresses are not allowed.")),
        ):
            resp = client.post("/capsule", json={"url": "http://10.0.0.1/"})
        assert resp.status_code == 400

    def test_timeout_returns_504(self):
        with patch(
            "mako_capsule.routers.capsule.fetch_url",
            new=AsyncMock(side_effect=httpx.TimeoutException("timed out")),
        ):
            resp = client.post("/capsule", json={"url": "https://slow.example.com/"})
        assert resp.status_code == 504

    def test_upstream_status_returns_502(self):
        request = httpx.Request("GET", "https://down.example.com/")
        error = httpx.HTTPStatusError(
            "Service Unavailable", request=request, response=httpx.Response(503, request=request)
        )
        with patch("mako_capsule.routers.capsule.fetch_url", new=AsyncMock(side_effect=error)):
            resp = client.post("/capsule", json={"url": "https://down.example.com/"})
        assert resp.status_code == 502
        assert resp.json()["detail"] == "Target URL returned HTTP 503."

    def test_browser_error_returns_502(self):
        with patch(
            "mako_capsule.routers.capsule.fetch_url_with_browser",
            new=AsyncMock(side_effect=RuntimeError("Chromium missing")),
        ):
            resp = client.post("/capsule", json={"url": "https://app.example.com/", "render_mode": "browser"})
        assert resp.status_code == 502

    def test_invalid_url_rejected(self):
        resp = client.post("/capsule", json={"url": "not a url"})
        assert resp.status_code == 422


# ── /validate ────────────────────────────────────────────────────────────────

class TestValidate:
    def test_valid_capsule(self):
        resp = client.post("/validate", json={"content": _VALID_CAPSULE})
        assert resp.status_code == 200
        data = resp.json()
        assert data["validation"]["valid"] is True
        assert data["frontmatter"]["type"] == "article"
        assert data["body_tokens"] > 0

    def test_errors_reported(self):
        content = _VALID_CAPSULE.replace("type: article", "type: blogpost")
        data = client.post("/validate", json={"content": content}).json()
        assert data["validation"]["valid"] is False
        assert data["validation"]["errors"][0].startswith('Invalid content type: "blogpost"')

    def test_budget_warning(self):
        data = client.post("/validate", json={"content": _VALID_CAPSULE, "max_tokens": 5}).json()
        assert data["validation"]["warnings"] == ["Token count exceeds recommended maximum of 5 (12)"]

    def test_missing_frontmatter_returns_400(self):
        resp = client.post("/validate", json={"content": "# Just markdown"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "No frontmatter block found."

    def test_scalar_action_list_reported(self):
        content = _VALID_CAPSULE.replace("language: en\n", "language: en\nactions:\n  - buy\n")
        resp = client.post("/validate", json={"content": content})
        assert resp.status_code == 200
        assert "actions must be a list of mappings" in resp.json()["validation"]["errors"]

    def test_links_as_list_reported(self):
        content = _VALID_CAPSULE.replace("language: en\n", "language: en\nlinks:\n  - /about\n")
        resp = client.post("/validate", json={"content": content})
        assert resp.status_code == 200
        assert resp.json()["validation"]["valid"] is False

    def test_invalid_yaml_returns_400(self):
        content = _VALID_CAPSULE.replace("type: article", "type: [article")
        resp = client.post("/validate", json={"content": content})
        assert resp.status_code == 400
        assert resp.json()["detail"].startswith("Frontmatter is not valid YAML")


# ── /sitemap ─────────────────────────────────────────────────────────────────

class TestSitemap:
    def test_feed(self):
        second = _VALID_CAPSULE.replace(
            "language: en\n", 'language: en\ncanonical: "https://blog.example.com/brewing"\n'
        )
        resp = client.post(
            "/sitemap",
            json={"site_url": "https://blog.example.com", "capsules": [second, "# no frontmatter"]},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["site"] == "https://blog.example.com"
        assert data["mako"] == "1.0"
        assert data["pages"] == [
            {
                "url": "/brewing",
                "type": "article",
                "tokens": 12,
                "updated": "2024-05-01",
                "entity": "Brewing Better Coffee",
            }
        ]

    def test_malformed_capsule_skipped(self):
        broken = _VALID_CAPSULE.replace("updated: 2024-05-01", "updated: someday")
        resp = client.post("/sitemap", json={"site_url": "https://blog.example.com", "capsules": [broken]})
        assert resp.status_code == 200
        assert resp.json()["pages"] == []

    def test_invalid_yaml_skipped(self):
        broken = _VALID_CAPSULE.replace("type: article", "type: [article")
        resp = client.post("/sitemap", json={"site_url": "https://blog.example.com", "capsules": [broken]})
        assert resp.status_code == 200
        assert resp.json()["pages"] == []
