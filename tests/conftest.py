"""
Pytest fixtures and configuration for Text Diff Reviewer tests.
"""

import pytest
from pathlib import Path

from diff_reviewer.config import ReviewConfig
from diff_reviewer.llm_client import LLMClientError
from diff_reviewer.models import Provider, StoredKey


class FakeProvider:
    """Stands in for a provider client; records every call."""

    provider_name = "fake"

    def __init__(self, replies=None, error=None, generated=" Be strict and concise. "):
        self.replies = list(replies or ["The modified version is clearer."])
        self.error = error
        self.generated = generated
        self.calls = []

    def send(self, messages, context=None):
        self.calls.append((list(messages), context))
        if self.error is not None:
            raise self.error
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]

    def generate(self, prompt):
        self.calls.append(([], prompt))
        if self.error is not None:
            raise self.error
        return self.generated.strip()


@pytest.fixture
def config(tmp_path: Path) -> ReviewConfig:
    """Config whose data directory lives in a temp dir."""
    return ReviewConfig(data_dir=tmp_path / "data")


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def failing_provider() -> FakeProvider:
    return FakeProvider(error=LLMClientError("quota exceeded"))


@pytest.fixture
def provider_factory():
    """Build FakeProviders with custom replies or errors."""
    return FakeProvider


@pytest.fixture
def openai_key() -> StoredKey:
    return StoredKey(
        id="key-1",
        label="OpenAI",
        provider=Provider.OPENAI,
        value="sk-test-abcd1234",
        is_active=True,
    )


@pytest.fixture
def sample_texts() -> tuple[str, str]:
    """Original and modified texts used across tests."""
    original = (
        "Google Gemini is a family of multimodal AI models developed by Google DeepMind. "
        "It is designed to understand and generate text, code, and images seamlessly."
    )
    modified = (
        "Google Gemini is a powerful family of multimodal AI models created by Google DeepMind. "
        "It is engineered to interpret and generate text, code, audio, and images with high accuracy."
    )
    return original, modified
