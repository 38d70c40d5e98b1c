"""
Diff highlighting for terminal and HTML output.

Renderers consume the span list from diff_engine read-only:
- Original side hides added spans and marks removed ones
- Modified side hides removed spans and marks added ones
- Unified ("review") view shows both, removed struck through, added underlined
"""

import html
import logging
from typing import Literal, Optional

from rich.text import Text

from .diff_engine import DiffSpan, compute_diff, tokenize

logger = logging.getLogger(__name__)


ViewSide = Literal["original", "modified"]
ViewMode = Literal["unified", "split", "original", "modified"]

REMOVED_STYLE = "strike red"
ADDED_STYLE = "underline bold green"


class DiffTooLargeError(Exception):
    """Raised when a comparison exceeds the configured token limit."""

    def __init__(self, old_tokens: int, new_tokens: int, max_tokens: int):
        self.old_tokens = old_tokens
        self.new_tokens = new_tokens
        self.max_tokens = max_tokens
        super().__init__(
            f"Texts too large to compare: {old_tokens} and {new_tokens} tokens "
            f"(limit {max_tokens} per side)"
        )


def bounded_diff(old_text: str, new_text: str, max_tokens: Optional[int]) -> list[DiffSpan]:
    """
    Compute a diff after checking the inputs against a size limit.

    The LCS table grows with the product of both token counts, so each
    side is capped before compute_diff is called.

    Args:
        old_text: Original text.
        new_text: Modified text.
        max_tokens: Maximum tokens per side. None disables the check.

    Returns:
        Spans from compute_diff.

    Raises:
        DiffTooLargeError: If either side has more than max_tokens tokens.
    """
    if max_tokens is not None:
        old_count = len(tokenize(old_text))
        new_count = len(tokenize(new_text))
        if old_count > max_tokens or new_count > max_tokens:
            logger.warning(f"Refusing diff of {old_count}x{new_count} tokens")
            raise DiffTooLargeError(old_count, new_count, max_tokens)

    return compute_diff(old_text, new_text)


def side_segments(spans: list[DiffSpan], side: ViewSide) -> list[tuple[str, bool]]:
    """
    Project spans onto one side of the comparison.

    Args:
        spans: Result of compute_diff.
        side: "original" or "modified".

    Returns:
        List of (text, is_highlighted) tuples whose texts join to that side.
    """
    segments = []
    for span in spans:
        if side == "original":
            if span.added:
                continue
            segments.append((span.value, span.removed))
        else:
            if span.removed:
                continue
            segments.append((span.value, span.added))
    return segments


def render_unified_html(spans: list[DiffSpan]) -> str:
    """
    Generate review-mode HTML with removed and added text inline.

    Args:
        spans: Result of compute_diff.

    Returns:
        HTML fragment.
    """
    parts = []
    for span in spans:
        text = html.escape(span.value)
        if span.removed:
            parts.append(f'<del class="diff-removed">{text}</del>')
        elif span.added:
            parts.append(f'<ins class="diff-added">{text}</ins>')
        else:
            parts.append(f"<span>{text}</span>")

    return f'<div class="diff-unified">{"".join(parts)}</div>'


def _render_side_html(spans: list[DiffSpan], side: ViewSide) -> str:
    tag, css_class = ("del", "diff-removed") if side == "original" else ("ins", "diff-added")
    parts = []
    for text, highlighted in side_segments(spans, side):
        escaped = html.escape(text)
        if highlighted:
            parts.append(f'<{tag} class="{css_class}">{escaped}</{tag}>')
        else:
            parts.append(f"<span>{escaped}</span>")
    return "".join(parts)


def render_split_html(spans: list[DiffSpan]) -> str:
    """Generate side-by-side HTML with an Original and a Modified panel."""
    original = _render_side_html(spans, "original")
    modified = _render_side_html(spans, "modified")
    return (
        '<div class="diff-split">'
        f'<div class="diff-panel diff-original"><h4>Original</h4><div>{original}</div></div>'
        f'<div class="diff-panel diff-modified"><h4>Modified</h4><div>{modified}</div></div>'
        "</div>"
    )


def render_html(spans: list[DiffSpan], view: ViewMode = "unified") -> str:
    """Render spans as HTML for the given view."""
    if view == "unified":
        return render_unified_html(spans)
    if view == "split":
        return render_split_html(spans)
    return f'<div class="diff-{view}">{_render_side_html(spans, view)}</div>'


def render_rich(spans: list[DiffSpan], view: ViewMode = "unified") -> Text:
    """
    Render spans as a rich Text for terminal output.

    Args:
        spans: Result of compute_diff.
        view: "unified", "original" or "modified". "split" is rendered by
            the CLI as two panels built from the side views.

    Returns:
        Styled rich Text.
    """
    text = Text()

    if view == "unified":
        for span in spans:
            if span.removed:
                text.append(span.value, style=REMOVED_STYLE)
            elif span.added:
                text.append(span.value, style=ADDED_STYLE)
            else:
                text.append(span.value)
        return text

    if view not in ("original", "modified"):
        raise ValueError(f"Unsupported view for rich rendering: {view}")

    style = REMOVED_STYLE if view == "original" else ADDED_STYLE
    for value, highlighted in side_segments(spans, view):
        text.append(value, style=style if highlighted else None)
    return text
