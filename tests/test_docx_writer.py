"""Tests for Word document export."""

from pathlib import Path

from docx import Document
from docx.enum.text import WD_COLOR_INDEX

from diff_reviewer.diff_engine import compute_diff
from diff_reviewer.docx_writer import (
    ReviewDocxWriter,
    sanitize_for_xml,
    write_review_docx,
)
from diff_reviewer.models import ChatMessage


def _body_runs(doc):
    """All runs after the 'Changes' heading and before any review heading."""
    runs = []
    in_body = False
    for paragraph in doc.paragraphs:
        if paragraph.text == "Changes":
            in_body = True
            continue
        if paragraph.text.startswith("AI Review"):
            break
        if in_body:
            runs.extend(paragraph.runs)
    return runs


class TestSanitizeForXml:
    def test_removes_control_characters(self):
        assert sanitize_for_xml("a\x00b\x0bc\x1fd") == "abcd"

    def test_keeps_tabs_and_newlines(self):
        assert sanitize_for_xml("a\tb\nc") == "a\tb\nc"

    def test_empty(self):
        assert sanitize_for_xml("") == ""


class TestReviewDocxWriter:
    """Tests for ReviewDocxWriter."""

    def test_write_creates_file(self, tmp_path: Path):
        output = write_review_docx(compute_diff("The cat sat", "The dog sat"), tmp_path / "review.docx")

        assert output.exists()
        assert output.suffix == ".docx"

    def test_forces_docx_suffix(self, tmp_path: Path):
        output = write_review_docx(compute_diff("a", "b"), tmp_path / "review.txt")
        assert output == tmp_path / "review.docx"
        assert output.exists()

    def test_title_is_first_heading(self, tmp_path: Path):
        output = write_review_docx(compute_diff("a", "b"), tmp_path / "out.docx", title="Cover Letter")
        doc = Document(str(output))
        assert doc.paragraphs[0].text == "Cover Letter"

    def test_removed_and_added_formatting(self, tmp_path: Path):
        output = write_review_docx(compute_diff("The cat sat", "The dog sat"), tmp_path / "out.docx")
        runs = {run.text: run for run in _body_runs(Document(str(output)))}

        assert runs["cat"].font.strike is True
        assert runs["dog"].font.highlight_color == WD_COLOR_INDEX.BRIGHT_GREEN
        assert runs["dog"].font.underline is True
        assert not runs["The "].font.strike
        assert runs["The "].font.highlight_color is None

    def test_newlines_start_new_paragraphs(self, tmp_path: Path):
        spans = compute_diff("line one\nline two", "line one\nline 2")
        output = write_review_docx(spans, tmp_path / "out.docx")
        doc = Document(str(output))

        texts = [p.text for p in doc.paragraphs]
        body = texts[texts.index("Changes") + 1:]
        assert body == ["line one", "line two2"]

    def test_review_section(self, tmp_path: Path):
        messages = [
            ChatMessage.create("model", "The new version is tighter."),
            ChatMessage.create("user", "Is the tone better?"),
            ChatMessage.create("model", "Error generating response.", is_error=True),
        ]
        output = write_review_docx(
            compute_diff("a", "b"),
            tmp_path / "out.docx",
            messages=messages,
            persona_name="Academic Editor",
        )
        texts = [p.text for p in Document(str(output)).paragraphs]

        assert "AI Review (Academic Editor)" in texts
        assert "Reviewer: The new version is tighter." in texts
        assert "You: Is the tone better?" in texts

    def test_no_review_section_without_messages(self, tmp_path: Path):
        writer = ReviewDocxWriter()
        output = writer.write(compute_diff("a", "b"), tmp_path / "out.docx")
        texts = [p.text for p in Document(str(output)).paragraphs]

        assert not any(t.startswith("AI Review") for t in texts)

    def test_cjk_text(self, tmp_path: Path):
        output = write_review_docx(compute_diff("你好世界", "你们好世界"), tmp_path / "out.docx")
        runs = {run.text: run for run in _body_runs(Document(str(output)))}

        assert runs["们"].font.highlight_color == WD_COLOR_INDEX.BRIGHT_GREEN
        assert "好世界" in runs
