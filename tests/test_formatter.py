"""Tests for content formatting."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pagepull.conversion import MIN_CONTENT_LENGTH, ContentFormatter, HtmlToMarkdown, MainContentExtractor
from pagepull.models import FetchOptions, PageSnapshot

BASE_URL = "https://example.com/post"

ARTICLE_HTML = """<html><head><title>Post</title></head><body>
    <nav><a href="/">Home</a><a href="/about">About</a></nav>
    <article>
        <h1>Understanding Widgets</h1>
        <p>Widgets are small components that do one job well. This paragraph explains
        how they are assembled, tested and shipped to production every single week.</p>
        <p>A second paragraph adds more detail about <a href="/docs/widgets">the widget docs</a>
        and keeps the article long enough to be picked as the main content.</p>
    </article>
    <footer>Copyright</footer>
    <script>track()</script>
</body></html>"""


class TestRender:
    """Tests for the synchronous render tail."""

    def test_html_output_is_cleaned_html(self):
        """Test that html format returns the cleaned markup."""
        formatter = ContentFormatter(FetchOptions(output_format="html"))

        assert formatter.render("<p>raw</p>", "<p>cleaned</p>", BASE_URL) == "<p>cleaned</p>"

    def test_truncates_to_max_length(self):
        """Test hard truncation."""
        formatter = ContentFormatter(FetchOptions(output_format="html", max_length=10))
        cleaned = "<p>" + "x" * 50 + "</p>"

        result = formatter.render(cleaned, cleaned, BASE_URL)

        assert len(result) == 10
        assert result == cleaned[:10]

    def test_short_content_not_truncated(self):
        """Test that output shorter than max_length is untouched."""
        formatter = ContentFormatter(FetchOptions(output_format="html", max_length=1000))

        assert formatter.render("<p>a</p>", "<p>a</p>", BASE_URL) == "<p>a</p>"

    def test_zero_max_length_means_unlimited(self):
        """Test that max_length=0 never truncates."""
        formatter = ContentFormatter(FetchOptions(output_format="html", max_length=0))
        cleaned = "y" * 10_000

        assert formatter.render(cleaned, cleaned, BASE_URL) == cleaned

    def test_markdown_uses_extracted_article(self):
        """Test that the extractor output is converted."""
        extractor = MagicMock()
        extractor.extract.return_value = "<h1>Article</h1>"
        converter = MagicMock()
        converter.convert.return_value = "# Article"
        formatter = ContentFormatter(FetchOptions(), extractor=extractor, converter=converter)

        result = formatter.render("<html>original</html>", "<p>cleaned</p>", BASE_URL)

        assert result == "# Article"
        extractor.extract.assert_called_once_with("<html>original</html>", BASE_URL)
        converter.convert.assert_called_once_with("<h1>Article</h1>", BASE_URL)

    def test_markdown_falls_back_to_cleaned_html(self):
        """Test the fallback when no main content is found."""
        extractor = MagicMock()
        extractor.extract.return_value = ""
        converter = MagicMock()
        converter.convert.return_value = "cleaned"
        formatter = ContentFormatter(FetchOptions(), extractor=extractor, converter=converter)

        formatter.render("<html>original</html>", "<p>cleaned</p>", BASE_URL)

        converter.convert.assert_called_once_with("<p>cleaned</p>", BASE_URL)

    def test_search_filters_markdown_lines(self):
        """Test case-insensitive line filtering."""
        converter = MagicMock()
        converter.convert.return_value = "Price: $10\nShipping info\nPRICE drop\nReviews"
        extractor = MagicMock()
        extractor.extract.return_value = "<p>x</p>"
        formatter = ContentFormatter(FetchOptions(search="price"), extractor=extractor, converter=converter)

        result = formatter.render("", "", BASE_URL)

        assert result == "Price: $10\nPRICE drop"

    def test_search_ignored_for_html(self):
        """Test that line filtering only applies to Markdown."""
        formatter = ContentFormatter(FetchOptions(output_format="html", search="nothing-matches"))

        assert formatter.render("<p>a</p>", "<p>a</p>", BASE_URL) == "<p>a</p>"

    def test_filter_then_truncate(self):
        """Test that truncation applies after filtering."""
        converter = MagicMock()
        converter.convert.return_value = "keep this line\ndrop\nkeep another"
        extractor = MagicMock()
        extractor.extract.return_value = "<p>x</p>"
        formatter = ContentFormatter(
            FetchOptions(search="keep", max_length=9), extractor=extractor, converter=converter
        )

        assert formatter.render("", "", BASE_URL) == "keep this"

    def test_filter_lines_helper(self):
        """Test filter_lines directly."""
        formatter = ContentFormatter(FetchOptions())

        assert formatter.filter_lines("a1\nb2\nA3", "^a") == "a1\nA3"
        assert formatter.filter_lines("a\nb", "zzz") == ""


class TestFormat:
    """Tests for the async format entry point."""

    @pytest.mark.asyncio
    async def test_markdown_from_real_page(self):
        """Test the full sanitize, extract and convert path."""
        formatter = ContentFormatter(FetchOptions())

        result = await formatter.format(ARTICLE_HTML, BASE_URL)

        assert "Widgets are small components" in result
        assert "track()" not in result
        assert "https://example.com/docs/widgets" in result

    @pytest.mark.asyncio
    async def test_html_output_is_sanitized(self):
        """Test html format end to end."""
        formatter = ContentFormatter(FetchOptions(output_format="html"))

        result = await formatter.format(ARTICLE_HTML, BASE_URL)

        assert "<article>" in result
        assert "<nav>" not in result
        assert "Copyright" not in result

    @pytest.mark.asyncio
    async def test_main_content_only_disabled_keeps_raw_html(self):
        """Test that sanitizing is skipped when main_content_only is off."""
        formatter = ContentFormatter(FetchOptions(output_format="html", main_content_only=False))

        result = await formatter.format(ARTICLE_HTML, BASE_URL)

        assert result == ARTICLE_HTML

    @pytest.mark.asyncio
    async def test_small_content_triggers_modal_retry(self):
        """Test that nearly empty output dismisses modals and re-reads the page."""
        full_html = "<html><body><p>" + "Real content behind the modal. " * 10 + "</p></body></html>"
        stabilizer = MagicMock()
        stabilizer.dismiss_modals = AsyncMock()
        stabilizer.snapshot = AsyncMock(return_value=PageSnapshot(title="T", html=full_html))
        formatter = ContentFormatter(FetchOptions(output_format="html"))

        result = await formatter.format("<html><body><p>Hi</p></body></html>", BASE_URL, stabilizer)

        stabilizer.dismiss_modals.assert_awaited_once()
        stabilizer.snapshot.assert_awaited_once()
        assert "Real content behind the modal." in result

    @pytest.mark.asyncio
    async def test_modal_retry_with_empty_snapshot_keeps_first_result(self):
        """Test that an empty re-read does not replace the content."""
        stabilizer = MagicMock()
        stabilizer.dismiss_modals = AsyncMock()
        stabilizer.snapshot = AsyncMock(return_value=PageSnapshot())
        formatter = ContentFormatter(FetchOptions(output_format="html"))

        result = await formatter.format("<html><body><p>Hi</p></body></html>", BASE_URL, stabilizer)

        assert result == "<p>Hi</p>"

    @pytest.mark.asyncio
    async def test_no_retry_for_long_content(self):
        """Test that content above the threshold skips modal dismissal."""
        stabilizer = MagicMock()
        stabilizer.dismiss_modals = AsyncMock()
        html = "<html><body><p>" + "z" * (MIN_CONTENT_LENGTH + 10) + "</p></body></html>"
        formatter = ContentFormatter(FetchOptions(output_format="html"))

        await formatter.format(html, BASE_URL, stabilizer)

        stabilizer.dismiss_modals.assert_not_awaited()


class TestMainContentExtractor:
    """Tests for MainContentExtractor."""

    def test_extracts_article_and_resolves_links(self):
        """Test extraction from a page with chrome."""
        result = MainContentExtractor().extract(ARTICLE_HTML, BASE_URL)

        assert "Widgets are small components" in result
        assert "https://example.com/docs/widgets" in result

    def test_empty_input_returns_empty(self):
        """Test that blank HTML yields nothing."""
        assert MainContentExtractor().extract("   ", BASE_URL) == ""


class TestHtmlToMarkdown:
    """Tests for HtmlToMarkdown."""

    def test_converts_headings_and_links(self):
        """Test basic conversion without wrapping."""
        converter = HtmlToMarkdown()

        result = converter.convert('<h1>Title</h1><p>See <a href="/next">next page</a></p>', BASE_URL)

        assert "# Title" in result
        assert "[next page](https://example.com/next)" in result

    def test_long_paragraph_stays_on_one_line(self):
        """Test that body_width=0 disables wrapping."""
        text = "word " * 100
        result = HtmlToMarkdown().convert(f"<p>{text}</p>", BASE_URL)

        assert "\n" not in result
