"""Tests for terminal and HTML highlighting."""

import pytest

from diff_reviewer.diff_engine import DiffSpan, compute_diff
from diff_reviewer.highlighter import (
    ADDED_STYLE,
    REMOVED_STYLE,
    DiffTooLargeError,
    bounded_diff,
    render_html,
    render_rich,
    render_split_html,
    render_unified_html,
    side_segments,
)


@pytest.fixture
def cat_dog_spans():
    return compute_diff("The cat sat", "The dog sat")


class TestSideSegments:
    """Tests for projecting spans onto one side."""

    def test_original_side_hides_additions(self, cat_dog_spans):
        assert side_segments(cat_dog_spans, "original") == [
            ("The ", False),
            ("cat", True),
            (" sat", False),
        ]

    def test_modified_side_hides_removals(self, cat_dog_spans):
        assert side_segments(cat_dog_spans, "modified") == [
            ("The ", False),
            ("dog", True),
            (" sat", False),
        ]

    def test_sides_rebuild_inputs(self, sample_texts):
        original, modified = sample_texts
        spans = compute_diff(original, modified)

        assert "".join(t for t, _ in side_segments(spans, "original")) == original
        assert "".join(t for t, _ in side_segments(spans, "modified")) == modified

    def test_does_not_modify_spans(self, cat_dog_spans):
        before = list(cat_dog_spans)
        side_segments(cat_dog_spans, "original")
        assert cat_dog_spans == before


class TestHtmlRendering:
    """Tests for HTML output."""

    def test_unified_marks_both_changes(self, cat_dog_spans):
        html = render_unified_html(cat_dog_spans)

        assert '<del class="diff-removed">cat</del>' in html
        assert '<ins class="diff-added">dog</ins>' in html
        assert "<span>The </span>" in html

    def test_unified_escapes_text(self):
        html = render_unified_html(compute_diff("a < b", "a > b"))

        assert '<del class="diff-removed">&lt;</del>' in html
        assert '<ins class="diff-added">&gt;</ins>' in html

    def test_split_has_two_panels(self, cat_dog_spans):
        html = render_split_html(cat_dog_spans)

        assert "<h4>Original</h4>" in html
        assert "<h4>Modified</h4>" in html
        original_panel, modified_panel = html.split("<h4>Modified</h4>")
        assert "cat" in original_panel and "dog" not in original_panel
        assert "dog" in modified_panel and "cat" not in modified_panel

    def test_render_html_single_side(self, cat_dog_spans):
        html = render_html(cat_dog_spans, "modified")

        assert html.startswith('<div class="diff-modified">')
        assert '<ins class="diff-added">dog</ins>' in html
        assert "cat" not in html

    def test_render_html_defaults_to_unified(self, cat_dog_spans):
        assert render_html(cat_dog_spans) == render_unified_html(cat_dog_spans)

    def test_empty_spans(self):
        assert render_unified_html([]) == '<div class="diff-unified"></div>'


class TestRichRendering:
    """Tests for terminal output."""

    def test_unified_plain_text_contains_both_sides(self, cat_dog_spans):
        text = render_rich(cat_dog_spans)
        assert text.plain == "The catdog sat"

    def test_unified_styles(self, cat_dog_spans):
        text = render_rich(cat_dog_spans)
        styles = {(text.plain[s.start:s.end], str(s.style)) for s in text.spans}

        assert ("cat", REMOVED_STYLE) in styles
        assert ("dog", ADDED_STYLE) in styles

    def test_original_view(self, cat_dog_spans):
        text = render_rich(cat_dog_spans, "original")

        assert text.plain == "The cat sat"
        assert [text.plain[s.start:s.end] for s in text.spans] == ["cat"]

    def test_modified_view(self, cat_dog_spans):
        text = render_rich(cat_dog_spans, "modified")
        assert text.plain == "The dog sat"

    def test_split_view_not_supported(self, cat_dog_spans):
        with pytest.raises(ValueError):
            render_rich(cat_dog_spans, "split")


class TestBoundedDiff:
    """Tests for the caller-side size guard."""

    def test_within_limit(self):
        assert bounded_diff("a b", "a c", max_tokens=3) == compute_diff("a b", "a c")

    def test_rejects_large_original(self):
        with pytest.raises(DiffTooLargeError) as exc_info:
            bounded_diff("a b c", "a", max_tokens=3)

        assert exc_info.value.old_tokens == 5
        assert exc_info.value.new_tokens == 1
        assert "limit 3" in str(exc_info.value)

    def test_rejects_large_modified(self):
        with pytest.raises(DiffTooLargeError):
            bounded_diff("", "你好世界", max_tokens=3)

    def test_none_disables_guard(self):
        text = "word " * 100
        assert bounded_diff(text, text, max_tokens=None) == [DiffSpan(text)]
