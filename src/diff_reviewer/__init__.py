"""
Text Diff Reviewer

Compare two versions of a text and review the changes with an AI persona:
- Word-level diff for Latin text, character-level for CJK
- Highlighted output for the terminal, HTML and Word
- Multi-provider review conversations with saved history
"""

__version__ = "1.0.0"
__author__ = "Text Diff Reviewer Team"

from .config import ReviewConfig

from .diff_engine import (
    DiffSpan,
    TokenClass,
    classify_char,
    compute_diff,
    get_changes_summary,
    iter_tokens,
    merge_spans,
    modified_text,
    original_text,
    tokenize,
)

from .highlighter import (
    DiffTooLargeError,
    bounded_diff,
    render_html,
    render_rich,
    side_segments,
)

from .models import (
    ChatMessage,
    HistoryItem,
    Persona,
    Provider,
    StoredKey,
)

from .llm_client import (
    LLMClientError,
    MissingAPIKeyError,
    generate_persona_prompt,
    send_message_to_ai,
)

from .session import ReviewSession

__all__ = [
    "ReviewConfig",
    "DiffSpan",
    "TokenClass",
    "classify_char",
    "compute_diff",
    "get_changes_summary",
    "iter_tokens",
    "merge_spans",
    "modified_text",
    "original_text",
    "tokenize",
    "DiffTooLargeError",
    "bounded_diff",
    "render_html",
    "render_rich",
    "side_segments",
    "ChatMessage",
    "HistoryItem",
    "Persona",
    "Provider",
    "StoredKey",
    "LLMClientError",
    "MissingAPIKeyError",
    "generate_persona_prompt",
    "send_message_to_ai",
    "ReviewSession",
]
