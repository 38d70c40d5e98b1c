"""
Review session orchestration.

A ReviewSession holds one comparison (two texts, a persona and an optional
question) and the conversation with the reviewer about it. Provider
failures are recorded in the conversation as error messages rather than
raised, so a failed request never loses the chat so far.
"""

import logging
from typing import Optional

from .config import ReviewConfig
from .diff_engine import DiffSpan
from .highlighter import bounded_diff
from .llm_client import ChatProvider, LLMClientError, MissingAPIKeyError, send_message_to_ai
from .models import ChatMessage, HistoryItem, Persona
from .personas import PersonaRegistry
from .store import HistoryStore, KeyStore, open_stores

logger = logging.getLogger(__name__)


class ReviewSession:
    """State and actions for reviewing one pair of texts."""

    def __init__(
        self,
        config: Optional[ReviewConfig] = None,
        keys: Optional[KeyStore] = None,
        history: Optional[HistoryStore] = None,
        personas: Optional[PersonaRegistry] = None,
        provider: Optional[ChatProvider] = None,
    ):
        """
        Initialize a session.

        Args:
            config: Configuration; defaults to ReviewConfig().
            keys: Key store; defaults to one under config.data_dir.
            history: History store; defaults to one under config.data_dir.
            personas: Persona registry; defaults to one under config.data_dir.
            provider: Provider override, mainly for tests and embedding.
        """
        self.config = config or ReviewConfig()
        default_keys, default_history, default_personas = open_stores(self.config)
        self.keys = keys or default_keys
        self.history = history or default_history
        self.personas = personas or PersonaRegistry(default_personas)
        self.provider = provider

        self.model = self.config.model
        self.original_text = ""
        self.modified_text = ""
        self.persona: Persona = self.personas.get(None)
        self.question = ""
        self.messages: list[ChatMessage] = []
        self.history_id: Optional[str] = None

    @property
    def has_content(self) -> bool:
        return len(self.original_text) > 0 and len(self.modified_text) > 0

    def set_texts(self, original: str, modified: str) -> None:
        self.original_text = original
        self.modified_text = modified

    def select_persona(self, persona_id: Optional[str]) -> Persona:
        self.persona = self.personas.get(persona_id)
        return self.persona

    def diff(self) -> list[DiffSpan]:
        """Spans for the current texts, bounded by config.max_diff_tokens."""
        return bounded_diff(self.original_text, self.modified_text, self.config.max_diff_tokens)

    def _ask(self, messages: list[ChatMessage]) -> str:
        return send_message_to_ai(
            self.keys.active(),
            self.model,
            messages,
            self.original_text,
            self.modified_text,
            self.persona.description,
            self.question or None,
            config=self.config,
            provider=self.provider,
        )

    def start_analysis(self) -> Optional[ChatMessage]:
        """
        Run the opening analysis and save the session to history.

        Returns:
            The reviewer's first message (an error message if the request
            failed), or None when either text is blank.

        Raises:
            MissingAPIKeyError: If there is no active key and no provider.
        """
        if self.provider is None and self.keys.active() is None:
            raise MissingAPIKeyError("No active API key. Add one with: diff-review keys add")

        if not self.original_text.strip() or not self.modified_text.strip():
            return None

        self.messages = []
        self.history_id = None

        try:
            reply = self._ask([])
        except LLMClientError as e:
            logger.error(f"Analysis failed: {e}")
            message = ChatMessage.create("model", f"Error: {str(e) or 'Failed to start analysis.'}", is_error=True)
            self.messages = [message]
            return message

        message = ChatMessage.create("model", reply)
        self.messages = [message]

        item = HistoryItem.create(
            self.original_text,
            self.modified_text,
            self.persona,
            question=self.question,
            messages=self.messages,
        )
        self.history.add(item)
        self.history_id = item.id
        logger.info(f"Analysis saved to history: {item.id}")
        return message

    def send_message(self, text: str) -> Optional[ChatMessage]:
        """
        Ask a follow-up question.

        Returns:
            The reviewer's reply, an error message on failure, or None when
            there is no conversation to continue.
        """
        if not self.messages or not text.strip():
            return None

        user_message = ChatMessage.create("user", text)
        self.messages = self.messages + [user_message]

        try:
            reply = self._ask(self.messages)
        except LLMClientError as e:
            logger.error(f"Follow-up failed: {e}")
            message = ChatMessage.create("model", "Error generating response.", is_error=True)
            self.messages = self.messages + [message]
            return message

        message = ChatMessage.create("model", reply)
        self.messages = self.messages + [message]
        self._update_history()
        return message

    def _update_history(self) -> None:
        if self.history_id is None:
            return
        item = self.history.get(self.history_id)
        if item is None:
            return
        item.messages = list(self.messages)
        self.history.update(item)

    def load_history(self, item: HistoryItem) -> None:
        """Restore a saved session so the conversation can continue."""
        self.original_text = item.original_text
        self.modified_text = item.modified_text
        self.persona = self.personas.ensure(item.persona)
        self.question = item.question
        self.messages = list(item.messages)
        self.history_id = item.id

    def clear(self) -> None:
        self.original_text = ""
        self.modified_text = ""
        self.messages = []
        self.question = ""
        self.history_id = None
