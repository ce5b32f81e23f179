"""Tests for mako_capsule.services.classifier."""

from mako_capsule.models.source import SourceDocument
from mako_capsule.services.classifier import classify, native_type

PROSE = "Plain landing page copy without any special structure."


def _page(slug: str = "home", title: str = "Welcome") -> SourceDocument:
    return SourceDocument(post_type="page", slug=slug, title=title)


class TestNativeType:
    def test_known_types(self):
        assert native_type("post") == "article"
        assert native_type("page") == "landing"
        assert native_type("product") == "product"
        assert native_type("tribe_events") == "event"
        assert native_type("recipe") == "recipe"
        assert native_type("knowledgebase") == "docs"

    def test_unknown_type_is_custom(self):
        assert native_type("portfolio") == "custom"


class TestClassify:
    def test_post_is_article(self):
        assert classify(SourceDocument(post_type="post"), PROSE) == "article"

    def test_plain_page_is_landing(self):
        assert classify(_page(), PROSE) == "landing"

    def test_docs_keyword_in_slug(self):
        assert classify(_page(slug="api-reference"), PROSE) == "docs"

    def test_docs_keyword_in_title(self):
        assert classify(_page(title="Installation Guide"), PROSE) == "docs"

    def test_three_code_blocks_make_docs(self):
        markdown = "\n\n".join(f"```\nstep {i}\n```" for i in range(3))
        assert classify(_page(slug="setup"), markdown) == "docs"

    def test_two_code_blocks_do_not(self):
        markdown = "\n\n".join(f"```\nstep {i}\n```" for i in range(2))
        assert classify(_page(slug="setup"), markdown) == "landing"

    def test_faq_needs_questions_and_keyword(self):
        questions = "\n\n".join(f"Question number {i}?" for i in range(5))
        assert classify(_page(slug="faq"), questions) == "faq"
        assert classify(_page(slug="help"), questions) == "landing"
        assert classify(_page(slug="faq"), "Only one question?") == "landing"

    def test_profile_requires_exact_slug(self):
        assert classify(_page(slug="about-us", title="About Us"), PROSE) == "profile"
        assert classify(_page(slug="about-our-products"), PROSE) == "landing"

    def test_listing_needs_items_and_keyword(self):
        items = "\n".join(f"- Resource {i}" for i in range(10))
        assert classify(_page(slug="resources"), items) == "listing"
        assert classify(_page(slug="resources"), "\n".join(items.split("\n")[:5])) == "landing"
        assert classify(_page(slug="things"), items) == "landing"

    def test_override_wins(self):
        assert classify(SourceDocument(post_type="post"), PROSE, override="product") == "product"

    def test_unknown_override_ignored(self):
        assert classify(SourceDocument(post_type="post"), PROSE, override="banana") == "article"

    def test_empty_markdown_is_not_refined(self):
        assert classify(_page(slug="docs"), "") == "landing"

    def test_slug_derived_from_url(self):
        source = SourceDocument(post_type="page", url="https://example.com/help/faq/")
        questions = " ".join("Why?" for _ in range(5))
        assert classify(source, questions) == "faq"
