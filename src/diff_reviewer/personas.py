"""
Persona registry: built-in reviewer roles plus user-created ones.
"""

import logging
import uuid
from typing import Optional

from .config import ReviewConfig
from .llm_client import ChatProvider, generate_persona_prompt
from .models import Persona, StoredKey
from .prompts import DEFAULT_PERSONAS
from .store import PersonaStore

logger = logging.getLogger(__name__)


class PersonaRegistry:
    """Lookup and creation of personas."""

    def __init__(self, store: PersonaStore):
        self.store = store

    def all(self) -> list[Persona]:
        """Default personas first, then custom ones in creation order."""
        defaults = {p.id for p in DEFAULT_PERSONAS}
        custom = [p for p in self.store.list() if p.id not in defaults]
        return list(DEFAULT_PERSONAS) + custom

    def get(self, persona_id: Optional[str]) -> Persona:
        """Find a persona by id, falling back to the first default."""
        for persona in self.all():
            if persona.id == persona_id:
                return persona
        return DEFAULT_PERSONAS[0]

    def exists(self, persona_id: str) -> bool:
        return any(p.id == persona_id for p in self.all())

    def create(self, name: str, description: str) -> Persona:
        """
        Save a custom persona.

        Args:
            name: Display name.
            description: Instruction sent to the model.

        Returns:
            The new persona.

        Raises:
            ValueError: If name or description is blank.
        """
        if not name.strip():
            raise ValueError("Persona name must not be empty")
        if not description.strip():
            raise ValueError("Persona description must not be empty")

        persona = Persona(
            id=str(uuid.uuid4()),
            name=name.strip(),
            description=description.strip(),
            is_custom=True,
        )
        self.store.add(persona)
        logger.info(f"Created persona: {persona.name}")
        return persona

    def create_generated(
        self,
        name: str,
        key: Optional[StoredKey],
        model: str,
        config: Optional[ReviewConfig] = None,
        provider: Optional[ChatProvider] = None,
    ) -> Persona:
        """Create a persona whose instruction is drafted by the model."""
        if not name.strip():
            raise ValueError("Persona name must not be empty")
        description = generate_persona_prompt(key, model, name.strip(), config=config, provider=provider)
        return self.create(name, description)

    def ensure(self, persona: Persona) -> Persona:
        """Re-register a custom persona restored from history if it is missing."""
        if persona.is_custom and not self.exists(persona.id):
            self.store.add(persona)
        return persona

    def delete(self, persona_id: str) -> bool:
        return self.store.delete(persona_id)
