"""Tests for the persona registry."""

import pytest

from diff_reviewer.llm_client import LLMClientError
from diff_reviewer.models import Persona
from diff_reviewer.personas import PersonaRegistry
from diff_reviewer.prompts import DEFAULT_PERSONAS
from diff_reviewer.store import PersonaStore


@pytest.fixture
def registry(config) -> PersonaRegistry:
    return PersonaRegistry(PersonaStore(config.personas_path))


class TestPersonaRegistry:
    def test_defaults_listed_first(self, registry):
        registry.create("Grant Reviewer", "Judge feasibility.")
        personas = registry.all()

        assert personas[:4] == DEFAULT_PERSONAS
        assert personas[4].name == "Grant Reviewer"

    def test_get_known(self, registry):
        assert registry.get("academic").name == "Academic Editor"

    @pytest.mark.parametrize("persona_id", ["missing", None])
    def test_get_falls_back_to_general(self, registry, persona_id):
        assert registry.get(persona_id) == DEFAULT_PERSONAS[0]

    def test_create_persists(self, registry, config):
        persona = registry.create("  Copy Chief ", " Cut every spare word. ")

        assert persona.is_custom
        assert persona.name == "Copy Chief"
        assert persona.description == "Cut every spare word."
        reloaded = PersonaRegistry(PersonaStore(config.personas_path))
        assert reloaded.get(persona.id) == persona

    @pytest.mark.parametrize("name, description", [("", "desc"), ("Name", "   ")])
    def test_create_rejects_blank_fields(self, registry, name, description):
        with pytest.raises(ValueError):
            registry.create(name, description)

    def test_create_generated(self, registry, fake_provider):
        persona = registry.create_generated("Grant Reviewer", None, "m", provider=fake_provider)

        assert persona.description == "Be strict and concise."
        assert registry.exists(persona.id)

    def test_create_generated_failure_saves_nothing(self, registry, failing_provider):
        with pytest.raises(LLMClientError):
            registry.create_generated("Grant Reviewer", None, "m", provider=failing_provider)
        assert len(registry.all()) == len(DEFAULT_PERSONAS)

    def test_ensure_restores_missing_custom_persona(self, registry):
        persona = Persona("old-id", "Old Persona", "Restored.", is_custom=True)

        assert registry.ensure(persona) is persona
        assert registry.exists("old-id")

    def test_ensure_ignores_defaults(self, registry, config):
        registry.ensure(DEFAULT_PERSONAS[1])
        assert not config.personas_path.exists()

    def test_delete(self, registry):
        persona = registry.create("Temp", "Temporary.")

        assert registry.delete(persona.id) is True
        assert not registry.exists(persona.id)
