"""Tests for selector-based field extraction."""

import re

import pytest

from pagepull.extraction import FieldExtractor, apply_regex, compile_field_regex, first_srcset_url
from pagepull.models import FieldSpec

BASE_URL = "https://shop.example.com/products/42"

PRODUCT_HTML = """<html><body>
    <h1 class="title">  Deluxe Widget  </h1>
    <img class="main" src="/images/widget.jpg" alt="Widget">
    <a class="more" href="/products/43">Next product</a>
    <a class="anchor-only">Just text</a>
    <span class="price">Price: $19.99 (was $24.99)</span>
    <ul>
        <li class="tag">blue</li>
        <li class="tag">  </li>
        <li class="tag">steel</li>
    </ul>
    <video class="clip"><source src="/media/clip.mp4" type="video/mp4"></video>
    <audio class="sound" src="sound.mp3"></audio>
</body></html>"""


@pytest.fixture
def extractor():
    return FieldExtractor()


class TestAutoDetection:
    """Tests for value auto-detection by element type."""

    def test_text_is_trimmed(self, extractor):
        """Test plain text extraction."""
        result = extractor.extract(PRODUCT_HTML, BASE_URL, {"title": {"selector": "h1.title"}})

        assert result == {"title": "Deluxe Widget"}

    def test_image_source_is_absolute(self, extractor):
        """Test that img src is resolved against the page URL."""
        result = extractor.extract(PRODUCT_HTML, BASE_URL, {"image": {"selector": "img.main"}})

        assert result["image"] == "https://shop.example.com/images/widget.jpg"

    def test_link_href_is_absolute(self, extractor):
        """Test that anchors give their resolved href."""
        result = extractor.extract(PRODUCT_HTML, BASE_URL, {"next": {"selector": "a.more"}})

        assert result["next"] == "https://shop.example.com/products/43"

    def test_anchor_without_href_gives_text(self, extractor):
        """Test the fallback for anchors without href."""
        result = extractor.extract(PRODUCT_HTML, BASE_URL, {"label": {"selector": "a.anchor-only"}})

        assert result["label"] == "Just text"

    def test_media_sources(self, extractor):
        """Test video with a source child and audio with src."""
        result = extractor.extract(
            PRODUCT_HTML,
            BASE_URL,
            {"video": {"selector": "video.clip"}, "audio": {"selector": "audio.sound"}},
        )

        assert result["video"] == "https://shop.example.com/media/clip.mp4"
        assert result["audio"] == "https://shop.example.com/products/sound.mp3"

    def test_data_uri_image_falls_back_to_srcset(self, extractor):
        """Test the srcset fallback in auto-detection."""
        html = '<img class="lazy" src="data:image/gif;base64,R0lGOD" srcset="/big.jpg 2x, /small.jpg 1x">'

        result = extractor.extract(html, BASE_URL, {"image": {"selector": "img.lazy"}})

        assert result["image"] == "https://shop.example.com/big.jpg"

    def test_data_uri_image_without_srcset_is_none(self, extractor):
        """Test that a placeholder image without srcset has no value."""
        html = '<img class="lazy" src="data:image/gif;base64,R0lGOD">'

        result = extractor.extract(html, BASE_URL, {"image": {"selector": "img.lazy"}})

        assert result["image"] is None


class TestAttributeMode:
    """Tests for explicit attribute extraction."""

    def test_srcset_fallback_for_data_uri_src(self, extractor):
        """Test a placeholder src with the real URL in srcset."""
        html = '<img class="main" src="data:image/png;base64,AAA" srcset="https://x/y.jpg 100w">'

        result = extractor.extract(html, BASE_URL, {"image": {"selector": "img.main", "attr": "src"}})

        assert result["image"] == "https://x/y.jpg"

    def test_attribute_is_verbatim(self, extractor):
        """Test that attribute values are not resolved."""
        result = extractor.extract(PRODUCT_HTML, BASE_URL, {"href": {"selector": "a.more", "attr": "href"}})

        assert result["href"] == "/products/43"

    def test_missing_attribute_is_none(self, extractor):
        """Test that an absent attribute gives null."""
        result = extractor.extract(PRODUCT_HTML, BASE_URL, {"x": {"selector": "h1.title", "attr": "data-id"}})

        assert result["x"] is None

    def test_class_attribute_is_joined(self, extractor):
        """Test multi-valued attributes."""
        html = '<div class="card featured">x</div>'

        result = extractor.extract(html, BASE_URL, {"cls": {"selector": "div", "attr": "class"}})

        assert result["cls"] == "card featured"


class TestMultiplicity:
    """Tests for first-match and all-matches modes."""

    def test_first_non_null_match_wins(self, extractor):
        """Test that empty leading matches are skipped."""
        html = '<div class="p"></div><div class="p">Second</div><div class="p">Third</div>'

        result = extractor.extract(html, BASE_URL, {"p": {"selector": ".p"}})

        assert result["p"] == "Second"

    def test_unmatched_elements_do_not_change_result(self, extractor):
        """Test that unrelated elements before the match do not matter."""
        spec = {"p": {"selector": ".p"}}
        plain = '<div class="p">Primary</div><div class="p">Related</div>'
        noisy = '<span>noise</span><div class="q">other</div>' + plain

        assert extractor.extract(plain, BASE_URL, spec) == extractor.extract(noisy, BASE_URL, spec)

    def test_all_matches_skips_empty_values(self, extractor):
        """Test collecting every non-null value in order."""
        result = extractor.extract(PRODUCT_HTML, BASE_URL, {"tags": {"selector": "li.tag", "allMatches": True}})

        assert result["tags"] == ["blue", "steel"]

    def test_all_matches_with_no_values_is_none(self, extractor):
        """Test that an all-empty match list gives null."""
        html = '<li class="tag"> </li><li class="tag"></li>'

        result = extractor.extract(html, BASE_URL, {"tags": {"selector": "li.tag", "all_matches": True}})

        assert result["tags"] is None

    def test_no_match_is_none(self, extractor):
        """Test a selector that matches nothing."""
        result = extractor.extract(PRODUCT_HTML, BASE_URL, {"missing": {"selector": ".does-not-exist"}})

        assert result["missing"] is None


class TestRegex:
    """Tests for regex post-processing."""

    def test_first_capture_group(self, extractor):
        """Test that the first group is returned."""
        spec = {"price": {"selector": ".price", "regex": r"\$(\d+\.\d+)"}}

        assert extractor.extract(PRODUCT_HTML, BASE_URL, spec)["price"] == "19.99"

    def test_full_match_without_groups(self, extractor):
        """Test that the whole match is returned without groups."""
        spec = {"price": {"selector": ".price", "regex": r"\$\d+\.\d+"}}

        assert extractor.extract(PRODUCT_HTML, BASE_URL, spec)["price"] == "$19.99"

    def test_flags(self, extractor):
        """Test JavaScript-style flag letters."""
        spec = {"label": {"selector": ".price", "regex": r"^PRICE", "regexFlags": "gi"}}

        assert extractor.extract(PRODUCT_HTML, BASE_URL, spec)["label"] == "Price"

    def test_no_regex_match_is_none(self, extractor):
        """Test a regex that does not match."""
        spec = {"sku": {"selector": ".price", "regex": r"SKU-\d+"}}

        assert extractor.extract(PRODUCT_HTML, BASE_URL, spec)["sku"] is None

    def test_regex_applies_to_resolved_url(self, extractor):
        """Test regex on auto-detected URLs."""
        spec = {"id": {"selector": "a.more", "regex": r"/products/(\d+)"}}

        assert extractor.extract(PRODUCT_HTML, BASE_URL, spec)["id"] == "43"

    def test_invalid_regex_only_nulls_its_field(self, extractor):
        """Test field independence on regex errors."""
        fields = {
            "broken": {"selector": ".price", "regex": "(unclosed"},
            "title": {"selector": "h1.title"},
        }

        result = extractor.extract(PRODUCT_HTML, BASE_URL, fields)

        assert result == {"broken": None, "title": "Deluxe Widget"}

    def test_unknown_flag_nulls_field(self, extractor):
        """Test that unknown flag letters are rejected."""
        spec = {"price": {"selector": ".price", "regex": r"\d+", "regexFlags": "z"}}

        assert extractor.extract(PRODUCT_HTML, BASE_URL, spec)["price"] is None

    def test_compile_field_regex(self):
        """Test flag mapping."""
        regex = compile_field_regex("a.b", "ims")

        assert regex.flags & re.IGNORECASE
        assert regex.flags & re.MULTILINE
        assert regex.flags & re.DOTALL

    def test_apply_regex_optional_group(self):
        """Test that an unmatched optional group falls back to the full match."""
        regex = re.compile(r"id(-(\d+))?")

        assert apply_regex("id", regex) == "id"
        assert apply_regex("id-7", regex) == "-7"


class TestInvalidInput:
    """Tests for per-field failure isolation."""

    def test_invalid_selector_only_nulls_its_field(self, extractor):
        """Test that a selector syntax error does not break other fields."""
        fields = {"bad": {"selector": "div["}, "title": {"selector": "h1.title"}}

        result = extractor.extract(PRODUCT_HTML, BASE_URL, fields)

        assert result == {"bad": None, "title": "Deluxe Widget"}

    def test_invalid_spec_objects(self, extractor):
        """Test specs that are not objects or lack a selector."""
        fields = {
            "not_object": "h1",
            "no_selector": {"attr": "src"},
            "title": {"selector": "h1.title"},
        }

        result = extractor.extract(PRODUCT_HTML, BASE_URL, fields)

        assert result == {"not_object": None, "no_selector": None, "title": "Deluxe Widget"}

    def test_unknown_keys_are_ignored(self, extractor):
        """Test that annotation keys next to the selector do not null the field."""
        fields = {"title": {"selector": "h1.title", "description": "page title"}}

        assert extractor.extract(PRODUCT_HTML, BASE_URL, fields) == {"title": "Deluxe Widget"}

    def test_non_boolean_all_matches_is_unset(self, extractor):
        """Test that a string allMatches falls back to the first match."""
        fields = {"tag": {"selector": "li.tag", "allMatches": "yes"}}

        assert extractor.extract(PRODUCT_HTML, BASE_URL, fields) == {"tag": "blue"}

    def test_accepts_field_spec_models(self, extractor):
        """Test passing FieldSpec instances directly."""
        result = extractor.extract(PRODUCT_HTML, BASE_URL, {"title": FieldSpec(selector="h1.title")})

        assert result["title"] == "Deluxe Widget"

    def test_result_keeps_field_order(self, extractor):
        """Test that result keys follow the request."""
        fields = {"z": {"selector": "h1"}, "a": {"selector": ".price"}, "m": {"selector": "img"}}

        assert list(extractor.extract(PRODUCT_HTML, BASE_URL, fields)) == ["z", "a", "m"]


class TestSrcset:
    """Tests for srcset parsing."""

    def test_first_candidate(self):
        """Test picking the first candidate URL."""
        assert first_srcset_url("https://x/a.jpg 1x, https://x/b.jpg 2x") == "https://x/a.jpg"

    def test_empty_srcset(self):
        """Test blank input."""
        assert first_srcset_url("") is None
        assert first_srcset_url("  ") is None
