"""
Word document writer for review exports.

This module generates a "track changes" style .docx with:
- Reading guide explaining the highlight convention
- The unified comparison, one paragraph per line of text
- Removed text in red strike-through, added text highlighted green
- Optional AI review conversation
"""

import re
from pathlib import Path
from typing import Optional, Union

from docx import Document
from docx.enum.text import WD_COLOR_INDEX
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor
from docx.text.paragraph import Paragraph

from .diff_engine import DiffSpan
from .models import ChatMessage


FONT_NAME = "Calibri"
REMOVED_COLOR = RGBColor(0xC0, 0x00, 0x00)

# Valid XML 1.0 chars: #x9 | #xA | #xD | [#x20-#xD7FF] | [#xE000-#xFFFD] | [#x10000-#x10FFFF]
_INVALID_XML_CHARS_RE = re.compile(
    r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]"
)


def sanitize_for_xml(text: str) -> str:
    """
    Remove characters XML 1.0 does not allow.

    Args:
        text: Input text that may contain control characters.

    Returns:
        Text safe for a DOCX run.
    """
    if not text:
        return text
    return _INVALID_XML_CHARS_RE.sub("", text)


def add_span_run(paragraph: Paragraph, span: DiffSpan, text: Optional[str] = None) -> None:
    """
    Append one run to `paragraph` styled by the span's tag.

    Args:
        paragraph: Target paragraph.
        span: Span supplying the tag.
        text: Text to write instead of span.value (used for line pieces).
    """
    value = sanitize_for_xml(span.value if text is None else text)
    if not value:
        return

    run = paragraph.add_run(value)
    run.font.name = FONT_NAME
    if span.removed:
        run.font.strike = True
        run.font.color.rgb = REMOVED_COLOR
    elif span.added:
        run.font.underline = True
        run.font.highlight_color = WD_COLOR_INDEX.BRIGHT_GREEN


class ReviewDocxWriter:
    """
    Writes a comparison and its review to a Word document.
    """

    def __init__(self):
        self.doc = Document()
        self._setup_styles()

    def _setup_styles(self) -> None:
        normal_style = self.doc.styles["Normal"]
        normal_style.font.name = FONT_NAME
        normal_style.font.size = Pt(11)
        normal_style.paragraph_format.space_before = Pt(0)
        normal_style.paragraph_format.space_after = Pt(4)
        normal_style.paragraph_format.line_spacing = 1.15

        # East Asian fallback so CJK text uses the same font
        normal_style.element.get_or_add_rPr().get_or_add_rFonts().set(qn("w:eastAsia"), FONT_NAME)

    def write(
        self,
        spans: list[DiffSpan],
        output_path: Union[str, Path],
        title: str = "Text Comparison",
        messages: Optional[list[ChatMessage]] = None,
        persona_name: Optional[str] = None,
    ) -> Path:
        """
        Write the comparison to a Word document.

        Args:
            spans: Result of compute_diff.
            output_path: Path for the output .docx file.
            title: Document heading.
            messages: Optional review conversation to append.
            persona_name: Reviewer persona shown above the conversation.

        Returns:
            Path to the created document.
        """
        output_path = Path(output_path)
        if output_path.suffix.lower() != ".docx":
            output_path = output_path.with_suffix(".docx")

        self.doc.add_heading(sanitize_for_xml(title), level=1)
        self._add_reading_guide()
        self._add_comparison(spans)

        if messages:
            self._add_review(messages, persona_name)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.doc.save(str(output_path))
        return output_path

    def _add_reading_guide(self) -> None:
        guide = self.doc.add_paragraph()
        guide.add_run("Reading guide: ").bold = True
        add_span_run(guide, DiffSpan("removed text", removed=True))
        guide.add_run(" was deleted from the original; ")
        add_span_run(guide, DiffSpan("highlighted text", added=True))
        guide.add_run(" was added in the modified version.")

    def _add_comparison(self, spans: list[DiffSpan]) -> None:
        self.doc.add_heading("Changes", level=2)
        paragraph = self.doc.add_paragraph()

        for span in spans:
            lines = span.value.split("\n")
            for index, line in enumerate(lines):
                if index > 0:
                    paragraph = self.doc.add_paragraph()
                add_span_run(paragraph, span, line)

    def _add_review(self, messages: list[ChatMessage], persona_name: Optional[str]) -> None:
        heading = "AI Review" if not persona_name else f"AI Review ({persona_name})"
        self.doc.add_heading(sanitize_for_xml(heading), level=2)

        for message in messages:
            paragraph = self.doc.add_paragraph()
            label = "You" if message.role == "user" else "Reviewer"
            paragraph.add_run(f"{label}: ").bold = True
            run = paragraph.add_run(sanitize_for_xml(message.text))
            if message.is_error:
                run.font.color.rgb = REMOVED_COLOR


def write_review_docx(
    spans: list[DiffSpan],
    output_path: Union[str, Path],
    title: str = "Text Comparison",
    messages: Optional[list[ChatMessage]] = None,
    persona_name: Optional[str] = None,
) -> Path:
    """Convenience function to write a comparison to docx."""
    writer = ReviewDocxWriter()
    return writer.write(spans, output_path, title=title, messages=messages, persona_name=persona_name)
