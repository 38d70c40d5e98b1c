"""
LLM client abstraction for AI text review.

This module routes a review conversation to the provider that owns the
active API key:
- Google Gemini (google-genai SDK)
- OpenAI and DeepSeek (OpenAI-compatible chat completions over httpx)
- Anthropic Claude (anthropic SDK)

Calls are stateless. The review context (persona, question and both texts)
is rebuilt and replayed as the first user turn on every request.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

try:
    import anthropic
except ImportError:
    anthropic = None  # type: ignore

try:
    from google import genai
    from google.genai import types as genai_types
except ImportError:
    genai = None  # type: ignore
    genai_types = None  # type: ignore

from .config import ReviewConfig
from .models import ChatMessage, Provider, StoredKey
from .prompts import build_persona_generation_prompt, construct_system_prompt

logger = logging.getLogger(__name__)


OPENAI_BASE_URL = "https://api.openai.com/v1"
DEEPSEEK_BASE_URL = "https://api.deepseek.com"


class LLMClientError(Exception):
    """Raised when LLM operations fail."""
    pass


class MissingAPIKeyError(LLMClientError):
    """Raised when no usable API key is configured."""
    pass


class InvalidHistoryError(LLMClientError):
    """Raised when the message history cannot be replayed."""
    pass


def _split_history(
    messages: list[ChatMessage],
    context: Optional[str],
) -> tuple[list[ChatMessage], str]:
    """
    Separate prior turns from the message that should be answered now.

    With no messages the context itself is the message to send.

    Returns:
        Tuple of (prior turns, text to send).

    Raises:
        InvalidHistoryError: If the last message is not from the user.
    """
    if not messages:
        if context:
            return [], context
        raise InvalidHistoryError("Invalid message history state: nothing to send.")

    *history, last = messages
    if last.role != "user":
        raise InvalidHistoryError("Invalid message history state: last message must come from the user.")
    return history, last.text


class ChatProvider(ABC):
    """Base class for provider clients."""

    provider_name = "base"

    def __init__(self, key: StoredKey, model: str, config: Optional[ReviewConfig] = None):
        if not key.value:
            raise MissingAPIKeyError(f"No API key value stored for {key.label or key.provider.value}.")
        self.key = key
        self.model = model
        self.config = config or ReviewConfig()

    @abstractmethod
    def send(self, messages: list[ChatMessage], context: Optional[str] = None) -> str:
        """
        Request a reply to the conversation.

        Args:
            messages: Visible chat history including the latest user message.
            context: Review prompt replayed as the first user turn.

        Returns:
            Reply text ("" when the provider returns nothing).
        """

    def generate(self, prompt: str) -> str:
        """Single-shot completion for a standalone prompt."""
        return self.send([ChatMessage.create("user", prompt)]).strip()


class GoogleProvider(ChatProvider):
    """Gemini models through the google-genai SDK."""

    provider_name = "google"

    def __init__(self, key: StoredKey, model: str, config: Optional[ReviewConfig] = None):
        super().__init__(key, model, config)
        if genai is None:
            raise LLMClientError(
                "google-genai package not installed. Run: pip install google-genai"
            )
        self.client = genai.Client(api_key=key.value)

    def _content(self, role: str, text: str):
        return genai_types.Content(role=role, parts=[genai_types.Part(text=text)])

    def send(self, messages: list[ChatMessage], context: Optional[str] = None) -> str:
        history, outgoing = _split_history(messages, context)

        sdk_history = []
        if context and messages:
            sdk_history.append(self._content("user", context))
        sdk_history.extend(self._content(m.role, m.text) for m in history)

        try:
            chat = self.client.chats.create(
                model=self.model,
                history=sdk_history,
                config=genai_types.GenerateContentConfig(temperature=self.config.temperature),
            )
            response = chat.send_message(outgoing)
        except Exception as e:
            logger.error(f"Gemini request failed: {e}")
            raise LLMClientError(f"Gemini API call failed: {e}")

        return response.text or ""

    def generate(self, prompt: str) -> str:
        try:
            response = self.client.models.generate_content(model=self.model, contents=prompt)
        except Exception as e:
            logger.error(f"Gemini request failed: {e}")
            raise LLMClientError(f"Gemini API call failed: {e}")
        return (response.text or "").strip()


class OpenAICompatibleProvider(ChatProvider):
    """OpenAI, DeepSeek or any endpoint speaking the chat completions API."""

    provider_name = "openai"

    def __init__(
        self,
        key: StoredKey,
        model: str,
        config: Optional[ReviewConfig] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        super().__init__(key, model, config)
        self.http_client = http_client or httpx.Client(
            timeout=httpx.Timeout(self.config.request_timeout, connect=30.0),
            follow_redirects=True,
        )

    @property
    def base_url(self) -> str:
        if self.key.base_url:
            return self.key.base_url.rstrip("/")
        if self.key.provider == Provider.DEEPSEEK:
            return DEEPSEEK_BASE_URL
        return OPENAI_BASE_URL

    def send(self, messages: list[ChatMessage], context: Optional[str] = None) -> str:
        _split_history(messages, context)

        api_messages = []
        if context:
            api_messages.append({"role": "user", "content": context})
        for message in messages:
            role = "assistant" if message.role == "model" else "user"
            api_messages.append({"role": role, "content": message.text})

        try:
            response = self.http_client.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.key.value}",
                },
                json={
                    "model": self.model,
                    "messages": api_messages,
                    "temperature": self.config.temperature,
                    "stream": False,
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Chat completion request failed: {e}")
            raise LLMClientError(f"LLM API call failed: {e}")

        if response.is_error:
            raise LLMClientError(self._error_message(response))

        try:
            data = response.json()
        except ValueError:
            raise LLMClientError("LLM API returned a non-JSON response.")

        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = {}
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        return f"API Error: {response.reason_phrase}"


class AnthropicProvider(ChatProvider):
    """Claude models through the anthropic SDK."""

    provider_name = "anthropic"

    def __init__(self, key: StoredKey, model: str, config: Optional[ReviewConfig] = None):
        super().__init__(key, model, config)
        if anthropic is None:
            raise LLMClientError(
                "anthropic package not installed. Run: pip install anthropic"
            )
        http_client = httpx.Client(
            timeout=httpx.Timeout(self.config.request_timeout, connect=30.0),
            follow_redirects=True,
        )
        self.client = anthropic.Anthropic(
            api_key=key.value,
            http_client=http_client,
        )

    def send(self, messages: list[ChatMessage], context: Optional[str] = None) -> str:
        _split_history(messages, context)

        api_messages = []
        if context:
            api_messages.append({"role": "user", "content": context})
        for message in messages:
            role = "assistant" if message.role == "model" else "user"
            api_messages.append({"role": role, "content": message.text})

        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.config.max_output_tokens,
                temperature=self.config.temperature,
                messages=api_messages,
            )
        except Exception as e:
            logger.error(f"Claude request failed: {e}")
            raise LLMClientError(f"LLM API call failed: {e}")

        if not response.content:
            return ""
        return response.content[0].text


def create_provider(
    key: Optional[StoredKey],
    model: str,
    config: Optional[ReviewConfig] = None,
) -> ChatProvider:
    """
    Factory function to create the provider client for a stored key.

    Args:
        key: The key to authenticate with.
        model: Model identifier to use.
        config: Optional configuration.

    Returns:
        Configured ChatProvider instance.
    """
    if key is None:
        raise MissingAPIKeyError("No active API key. Add one with: diff-review keys add")

    if key.provider == Provider.GOOGLE:
        return GoogleProvider(key, model, config)
    if key.provider == Provider.ANTHROPIC:
        return AnthropicProvider(key, model, config)
    return OpenAICompatibleProvider(key, model, config)


def send_message_to_ai(
    key: Optional[StoredKey],
    model: str,
    messages: list[ChatMessage],
    original: str,
    modified: str,
    persona_instruction: str,
    question: Optional[str] = None,
    config: Optional[ReviewConfig] = None,
    provider: Optional[ChatProvider] = None,
) -> str:
    """
    Ask the reviewer persona for its next reply.

    Args:
        key: Active API key.
        model: Model identifier.
        messages: History including the latest user message; empty for the
            opening analysis.
        original: Original text.
        modified: Modified text.
        persona_instruction: Persona description.
        question: Optional question to answer.
        config: Optional configuration.
        provider: Pre-built provider (skips create_provider).

    Returns:
        Reply text.
    """
    config = config or ReviewConfig()
    context = construct_system_prompt(
        original,
        modified,
        persona_instruction,
        question,
        language=config.response_language,
    )
    provider = provider or create_provider(key, model, config)

    reply = provider.send(messages, context)
    logger.info(f"{provider.provider_name} reply received ({len(reply)} chars)")
    return reply


def generate_persona_prompt(
    key: Optional[StoredKey],
    model: str,
    persona_name: str,
    config: Optional[ReviewConfig] = None,
    provider: Optional[ChatProvider] = None,
) -> str:
    """
    Draft a persona instruction for a named role.

    Args:
        key: Active API key.
        model: Model identifier.
        persona_name: Name of the role, e.g. "Grant Reviewer".

    Returns:
        Generated instruction text, stripped.
    """
    provider = provider or create_provider(key, model, config)
    return provider.generate(build_persona_generation_prompt(persona_name))
