"""
Data models for Text Diff Reviewer.

This module defines the records that are stored between runs: API keys,
review personas, chat messages and saved review sessions.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional


ChatRole = Literal["user", "model"]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return str(uuid.uuid4())


class Provider(Enum):
    """AI providers a stored key can belong to."""
    GOOGLE = "google"
    OPENAI = "openai"
    DEEPSEEK = "deepseek"
    ANTHROPIC = "anthropic"


@dataclass
class StoredKey:
    """An API key saved by the user."""
    id: str
    label: str
    provider: Provider
    value: str
    base_url: Optional[str] = None
    is_active: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.provider, str):
            self.provider = Provider(self.provider)

    @property
    def masked(self) -> str:
        """Key value safe for display (last four characters only)."""
        if len(self.value) <= 4:
            return "*" * len(self.value)
        return "*" * 8 + self.value[-4:]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "provider": self.provider.value,
            "value": self.value,
            "base_url": self.base_url,
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StoredKey":
        return cls(
            id=data.get("id") or _new_id(),
            label=data.get("label", ""),
            provider=Provider(data.get("provider", "google")),
            value=data["value"],
            base_url=data.get("base_url"),
            is_active=bool(data.get("is_active", False)),
        )


@dataclass
class Persona:
    """A reviewer role; `description` is the instruction sent to the model."""
    id: str
    name: str
    description: str
    is_custom: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "is_custom": self.is_custom,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Persona":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            description=data.get("description", ""),
            is_custom=bool(data.get("is_custom", False)),
        )


@dataclass
class ChatMessage:
    """One turn of a review conversation."""
    id: str
    role: ChatRole
    text: str
    timestamp: int
    is_error: bool = False

    @classmethod
    def create(cls, role: ChatRole, text: str, is_error: bool = False) -> "ChatMessage":
        """Create a message with a fresh id and the current timestamp."""
        return cls(id=_new_id(), role=role, text=text, timestamp=_now_ms(), is_error=is_error)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role,
            "text": self.text,
            "timestamp": self.timestamp,
            "is_error": self.is_error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChatMessage":
        return cls(
            id=data.get("id") or _new_id(),
            role=data["role"],
            text=data.get("text", ""),
            timestamp=int(data.get("timestamp", 0)),
            is_error=bool(data.get("is_error", False)),
        )


@dataclass
class HistoryItem:
    """A saved comparison together with its review conversation."""
    id: str
    timestamp: int
    original_text: str
    modified_text: str
    persona: Persona
    question: str = ""
    messages: list[ChatMessage] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        original_text: str,
        modified_text: str,
        persona: Persona,
        question: str = "",
        messages: Optional[list[ChatMessage]] = None,
    ) -> "HistoryItem":
        return cls(
            id=_new_id(),
            timestamp=_now_ms(),
            original_text=original_text,
            modified_text=modified_text,
            persona=persona,
            question=question,
            messages=list(messages or []),
        )

    @property
    def preview(self) -> str:
        """Short label for history listings."""
        return f"{self.original_text[:60]}..."

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "original_text": self.original_text,
            "modified_text": self.modified_text,
            "persona": self.persona.to_dict(),
            "question": self.question,
            "messages": [m.to_dict() for m in self.messages],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryItem":
        return cls(
            id=data.get("id") or _new_id(),
            timestamp=int(data.get("timestamp", 0)),
            original_text=data.get("original_text", ""),
            modified_text=data.get("modified_text", ""),
            persona=Persona.from_dict(data["persona"]),
            question=data.get("question") or "",
            messages=[ChatMessage.from_dict(m) for m in data.get("messages", [])],
        )
