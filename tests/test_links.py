"""Tests for mako_capsule.services.links."""

from mako_capsule.services.links import MAX_EXTERNAL, MAX_INTERNAL, extract_links, normalize_url

SITE = "https://example.com"


def _internal(html: str):
    return extract_links(html, SITE).internal


def _external(html: str):
    return extract_links(html, SITE).external


class TestContext:
    def test_visible_text_wins_over_aria_label(self):
        links = _internal('<a href="/about" aria-label="Learn about us">Click here</a>')
        assert len(links) == 1
        assert links[0].url == "/about"
        assert links[0].context == "Click here"

    def test_aria_label_for_icon_links(self):
        links = _internal('<a href="/shop" aria-label="Open the shop"><img src="i.png"></a>')
        assert links[0].context == "Open the shop"

    def test_title_attribute_fallback(self):
        links = _internal('<a href="/help" title="Help centre">?</a>')
        assert links[0].context == "Help centre"

    def test_overlong_text_is_truncated(self):
        links = _internal(f'<a href="/long">{"word " * 40}</a>')
        assert len(links[0].context) == 120
        assert links[0].context.endswith("...")

    def test_links_without_context_are_dropped(self):
        assert _internal('<a href="/x">»</a><a href="/y"></a>') == []


class TestFiltering:
    def test_skips_non_navigable_targets(self):
        html = (
            '<a href="#top">Top</a>'
            '<a href="javascript:void(0)">Run</a>'
            '<a href="mailto:a@example.com">Mail</a>'
            '<a href="tel:+123">Call</a>'
            '<a href="data:text/plain,hi">Data</a>'
        )
        links = extract_links(html, SITE)
        assert links.internal == []
        assert links.external == []

    def test_skips_denylisted_pages(self):
        html = (
            '<a href="/privacy-policy">Privacy</a>'
            '<a href="/wp-admin/">Admin</a>'
            '<a href="/cart/">Cart</a>'
            '<a href="/checkout">Checkout</a>'
            '<a href="/feed/">Feed</a>'
            '<a href="/my-account">Account</a>'
            '<a href="/terms-of-use">Terms</a>'
            '<a href="/blog">Blog</a>'
        )
        assert [link.url for link in _internal(html)] == ["/blog"]

    def test_denylist_ignores_host(self):
        links = _external('<a href="https://legal-news.org/story">Story</a>')
        assert [link.url for link in links] == ["https://legal-news.org/story"]


class TestClassificationAndNormalization:
    def test_internal_links_are_host_relative(self):
        links = _internal('<a href="https://example.com/shop/?page=2#grid">Shop page two</a>')
        assert links[0].url == "/shop?page=2"

    def test_www_prefix_counts_as_internal(self):
        links = extract_links('<a href="https://www.example.com/team">Team</a>', SITE)
        assert [link.url for link in links.internal] == ["/team"]
        assert links.external == []

    def test_external_links_stay_absolute(self):
        links = _external('<a href="https://other.org/page/?q=1#frag">Other page</a>')
        assert links[0].url == "https://other.org/page?q=1"

    def test_root_link(self):
        assert _internal('<a href="https://example.com/">Home</a>')[0].url == "/"

    def test_normalize_url(self):
        assert normalize_url("https://Other.org/a/b/?x=1#y") == "https://other.org/a/b?x=1"


class TestDedupAndCaps:
    def test_internal_variants_collapse(self):
        html = (
            '<a href="/about">About</a>'
            '<a href="/about/">About again</a>'
            '<a href="https://example.com/about#team">About team</a>'
            '<a href="https://www.example.com/about">About www</a>'
        )
        links = _internal(html)
        assert len(links) == 1
        assert links[0].context == "About"

    def test_external_variants_collapse(self):
        html = '<a href="https://Other.org/a">First</a><a href="https://other.org/a/">Second</a>'
        assert len(_external(html)) == 1

    def test_caps(self):
        internal = "".join(f'<a href="/page-{i}">Page {i}</a>' for i in range(15))
        external = "".join(f'<a href="https://site{i}.org/">Site {i}</a>' for i in range(8))
        links = extract_links(internal + external, SITE)
        assert len(links.internal) == MAX_INTERNAL
        assert len(links.external) == MAX_EXTERNAL
        assert links.internal[0].url == "/page-0"

    def test_no_duplicate_normalized_urls(self):
        html = "".join(f'<a href="/p/{i % 3}/">Page {i}</a>' for i in range(12))
        urls = [link.url for link in _internal(html)]
        assert len(urls) == len(set(urls)) == 3

    def test_empty_html(self):
        links = extract_links("", SITE)
        assert links.internal == []
        assert links.external == []
