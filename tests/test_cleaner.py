"""Tests for mako_capsule.services.cleaner.clean_markdown."""

from mako_capsule.services.cleaner import clean_markdown


class TestCleanMarkdownEmailObfuscation:
    def test_removes_cloudflare_email_placeholder(self):
        text = "Contact us at [email\u00a0protected] for support."
        result = clean_markdown(text)
        assert "[email" not in result
        assert "protected]" not in result

    def test_removes_html_entity_email_variant(self):
        result = clean_markdown("Write to [email&#160;protected] today.")
        assert "protected" not in result

    def test_preserves_surrounding_text(self):
        result = clean_markdown("Call us or email [email protected] or visit our office.")
        assert "Call us or email" in result
        assert "or visit our office" in result


class TestCleanMarkdownBoilerplate:
    def test_strips_copyright_line(self):
        assert clean_markdown("Real content\n\n© 2024 Example Inc.") == "Real content"

    def test_strips_ascii_copyright(self):
        assert clean_markdown("Text\n(c) 2023 Someone") == "Text"

    def test_strips_all_rights_reserved(self):
        assert "reserved" not in clean_markdown("Body\n\nAll rights reserved.")

    def test_strips_cookie_notice(self):
        result = clean_markdown("Intro\n\nThis site uses cookies to improve your experience.")
        assert "cookies" not in result
        assert "Intro" in result

    def test_strips_powered_by(self):
        assert clean_markdown("Article\n\nPowered by WordPress") == "Article"

    def test_strips_privacy_and_terms(self):
        result = clean_markdown("Para\n\nPrivacy Policy\n\nTerms of Service")
        assert result == "Para"


class TestCleanMarkdownWhitespace:
    def test_normalizes_line_endings(self):
        assert clean_markdown("a\r\nb\rc") == "a\nb\nc"

    def test_replaces_unicode_spaces(self):
        assert clean_markdown("a\u00a0b\u2009c") == "a b c"

    def test_removes_zero_width_characters(self):
        assert clean_markdown("Hello\u200bWorld\ufeff") == "HelloWorld"

    def test_trims_every_line(self):
        assert clean_markdown("  first  \n   second ") == "first\nsecond"

    def test_collapses_consecutive_duplicate_lines(self):
        assert clean_markdown("Line\nLine\nOther") == "Line\nOther"

    def test_keeps_non_consecutive_duplicates(self):
        assert clean_markdown("A\nB\nA") == "A\nB\nA"

    def test_collapses_blank_runs(self):
        assert clean_markdown("A\n\n\n\n\nB") == "A\n\nB"

    def test_empty_input(self):
        assert clean_markdown("") == ""

    def test_drops_heading_markers_without_text(self):
        assert clean_markdown("## \n\nText\n\n#") == "Text"

    def test_keeps_hashtag_words(self):
        assert clean_markdown("#release notes") == "#release notes"


class TestCleanMarkdownLinks:
    def test_removes_empty_links(self):
        assert clean_markdown("Icons: [](https://example.com/x) done") == "Icons:  done"
        assert "[](" not in clean_markdown("Icons: [](https://example.com/x) done")

    def test_keeps_images_without_alt(self):
        assert clean_markdown("![](https://example.com/a.png)") == "![](https://example.com/a.png)"
