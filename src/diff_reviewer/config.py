# -*- coding: utf-8 -*-
"""
Centralized configuration for Text Diff Reviewer.

This module provides a unified configuration dataclass that controls
where data is stored, which model is used for reviews, and how large a
comparison may get before it is rejected.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


DEFAULT_DATA_DIR = Path.home() / ".diff_reviewer"
DEFAULT_MODEL = "gemini-2.5-flash"

# Selectable models per provider (provider value -> model ids)
AVAILABLE_MODELS = {
    "google": ["gemini-2.5-flash", "gemini-3-pro-preview"],
    "openai": ["gpt-4o-mini", "gpt-4o"],
    "deepseek": ["deepseek-chat", "deepseek-reasoner"],
    "anthropic": ["claude-sonnet-4-20250514"],
}


@dataclass
class ReviewConfig:
    """
    Central configuration for diffing and AI review behavior.

    Attributes:
        data_dir: Directory holding api_keys.json, history.json and
            custom_personas.json.
        model: Model identifier used for review requests.
        temperature: Sampling temperature sent to every provider.
        history_limit: Maximum number of saved review sessions. Older
            entries are dropped first.
        max_diff_tokens: Upper bound on tokens per side before a diff is
            refused. None disables the guard.
        response_language: Language the reviewer is asked to answer in.
        request_timeout: Seconds before a provider HTTP call is abandoned.
        max_output_tokens: Response cap for providers that require one.
    """

    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)
    model: str = DEFAULT_MODEL
    temperature: float = 0.4
    history_limit: int = 50
    max_diff_tokens: Optional[int] = 4000
    response_language: str = "Chinese"
    request_timeout: float = 60.0
    max_output_tokens: int = 4096

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir).expanduser()
        if self.history_limit < 1:
            raise ValueError("history_limit must be at least 1")

    @property
    def keys_path(self) -> Path:
        return self.data_dir / "api_keys.json"

    @property
    def history_path(self) -> Path:
        return self.data_dir / "history.json"

    @property
    def personas_path(self) -> Path:
        return self.data_dir / "custom_personas.json"

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ReviewConfig":
        """
        Build a config from environment variables.

        Recognised variables: DIFF_REVIEW_HOME, DIFF_REVIEW_MODEL,
        DIFF_REVIEW_MAX_TOKENS (0 disables the size guard) and
        DIFF_REVIEW_LANGUAGE.

        Args:
            environ: Mapping to read instead of os.environ.

        Returns:
            ReviewConfig with defaults for unset variables.
        """
        env = os.environ if environ is None else environ
        kwargs = {}

        if env.get("DIFF_REVIEW_HOME"):
            kwargs["data_dir"] = Path(env["DIFF_REVIEW_HOME"])
        if env.get("DIFF_REVIEW_MODEL"):
            kwargs["model"] = env["DIFF_REVIEW_MODEL"]
        if env.get("DIFF_REVIEW_LANGUAGE"):
            kwargs["response_language"] = env["DIFF_REVIEW_LANGUAGE"]
        if env.get("DIFF_REVIEW_MAX_TOKENS"):
            try:
                max_tokens = int(env["DIFF_REVIEW_MAX_TOKENS"])
            except ValueError:
                raise ValueError(
                    f"DIFF_REVIEW_MAX_TOKENS must be an integer, got {env['DIFF_REVIEW_MAX_TOKENS']!r}"
                )
            kwargs["max_diff_tokens"] = max_tokens if max_tokens > 0 else None

        return cls(**kwargs)
