"""
Token-level diff engine for Text Diff Reviewer.

This module computes the difference between two versions of a text:
- Tokenizes text into words, single CJK characters, whitespace runs and symbol runs
- Aligns the two token streams with a Longest Common Subsequence table
- Decodes the alignment into unchanged/added/removed spans
- Merges adjacent spans that share the same tag

The engine is pure: no I/O, no shared state, every call is independent.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator


# CJK Unified Ideographs, restricted range. Extended blocks are NOT included.
CJK_START = 0x4E00
CJK_END = 0x9FA5

_WORD_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyz"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "0123456789_"
)

# Same set as the JavaScript \s class: WhiteSpace (including the Zs category) plus LineTerminator
_WHITESPACE_CODEPOINTS = (
    0x0009, 0x000B, 0x000C, 0x0020, 0x00A0, 0xFEFF,
    0x1680, *range(0x2000, 0x200B), 0x202F, 0x205F, 0x3000,
    0x000A, 0x000D, 0x2028, 0x2029,
)
_WHITESPACE_CHARS = frozenset(map(chr, _WHITESPACE_CODEPOINTS))


class TokenClass(Enum):
    """Character classes recognised by the tokenizer."""
    WORD = "word"
    CJK = "cjk"
    WHITESPACE = "whitespace"
    SYMBOL = "symbol"


@dataclass(frozen=True)
class DiffSpan:
    """A run of text with a single change tag."""
    value: str
    added: bool = False
    removed: bool = False

    @property
    def is_unchanged(self) -> bool:
        return not self.added and not self.removed

    def to_dict(self) -> dict:
        return {"value": self.value, "added": self.added, "removed": self.removed}


def classify_char(ch: str) -> TokenClass:
    """
    Classify a single character.

    Args:
        ch: A one-character string.

    Returns:
        The TokenClass the character belongs to.
    """
    if ch in _WORD_CHARS:
        return TokenClass.WORD
    if CJK_START <= ord(ch) <= CJK_END:
        return TokenClass.CJK
    if ch in _WHITESPACE_CHARS:
        return TokenClass.WHITESPACE
    return TokenClass.SYMBOL


def iter_tokens(text: str) -> Iterator[str]:
    """
    Lazily split text into tokens.

    Scans left to right, extending the current token while the next
    character has the same class. CJK characters never extend a token.
    Concatenating the yielded tokens reproduces `text` exactly.

    Args:
        text: Any string, possibly empty.

    Yields:
        Token strings in document order.
    """
    start = 0
    length = len(text)

    while start < length:
        token_class = classify_char(text[start])
        end = start + 1

        if token_class is not TokenClass.CJK:
            while end < length and classify_char(text[end]) is token_class:
                end += 1

        yield text[start:end]
        start = end


def tokenize(text: str) -> list[str]:
    """Split text into a list of tokens (see iter_tokens)."""
    return list(iter_tokens(text))


def _build_lcs_table(old_tokens: list[str], new_tokens: list[str]) -> list[list[int]]:
    """Fill the (N+1) x (M+1) table of LCS lengths."""
    n = len(old_tokens)
    m = len(new_tokens)
    table = [[0] * (m + 1) for _ in range(n + 1)]

    for i in range(1, n + 1):
        old_token = old_tokens[i - 1]
        row = table[i]
        prev_row = table[i - 1]
        for j in range(1, m + 1):
            if old_token == new_tokens[j - 1]:
                row[j] = prev_row[j - 1] + 1
            else:
                row[j] = max(prev_row[j], row[j - 1])

    return table


def _backtrace(
    table: list[list[int]],
    old_tokens: list[str],
    new_tokens: list[str],
) -> list[DiffSpan]:
    """
    Walk the LCS table from the final cell to the origin.

    On equal scores the step left (an addition) wins over the step up
    (a removal).

    Returns:
        One span per token, in document order.
    """
    i = len(old_tokens)
    j = len(new_tokens)
    parts = []

    while i > 0 or j > 0:
        if i > 0 and j > 0 and old_tokens[i - 1] == new_tokens[j - 1]:
            parts.append(DiffSpan(old_tokens[i - 1]))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or table[i][j - 1] >= table[i - 1][j]):
            parts.append(DiffSpan(new_tokens[j - 1], added=True))
            j -= 1
        else:
            parts.append(DiffSpan(old_tokens[i - 1], removed=True))
            i -= 1

    parts.reverse()
    return parts


def merge_spans(spans: Iterable[DiffSpan]) -> list[DiffSpan]:
    """
    Combine consecutive spans that carry the same (added, removed) tags.

    Running this on an already merged list returns an equal list.

    Args:
        spans: Spans in document order.

    Returns:
        New list of merged spans.
    """
    merged: list[DiffSpan] = []
    values: list[str] = []
    current = None

    for span in spans:
        if current is not None and (span.added, span.removed) == (current.added, current.removed):
            values.append(span.value)
            continue
        if current is not None:
            merged.append(DiffSpan("".join(values), current.added, current.removed))
        current = span
        values = [span.value]

    if current is not None:
        merged.append(DiffSpan("".join(values), current.added, current.removed))

    return merged


def compute_diff(old_text: str, new_text: str) -> list[DiffSpan]:
    """
    Compute a merged token-level diff between two texts.

    Args:
        old_text: Original text.
        new_text: Modified text.

    Returns:
        Ordered list of DiffSpan. Empty when both texts are empty.
    """
    old_tokens = tokenize(old_text)
    new_tokens = tokenize(new_text)

    table = _build_lcs_table(old_tokens, new_tokens)
    return merge_spans(_backtrace(table, old_tokens, new_tokens))


def original_text(spans: Iterable[DiffSpan]) -> str:
    """Rebuild the original text (every span that was not added)."""
    return "".join(span.value for span in spans if not span.added)


def modified_text(spans: Iterable[DiffSpan]) -> str:
    """Rebuild the modified text (every span that was not removed)."""
    return "".join(span.value for span in spans if not span.removed)


def get_changes_summary(spans: list[DiffSpan]) -> dict:
    """
    Generate a summary of changes from a span list.

    Args:
        spans: Result of compute_diff.

    Returns:
        Dictionary with change summary.
    """
    added = [s for s in spans if s.added]
    removed = [s for s in spans if s.removed]
    unchanged = [s for s in spans if s.is_unchanged]

    return {
        "total_changes": len(added) + len(removed),
        "additions": len(added),
        "removals": len(removed),
        "unchanged": len(unchanged),
        "added_chars": sum(len(s.value) for s in added),
        "removed_chars": sum(len(s.value) for s in removed),
        "unchanged_chars": sum(len(s.value) for s in unchanged),
        "added_texts": [s.value for s in added],
        "removed_texts": [s.value for s in removed],
    }
