"""
JSON-file persistence for keys, review history and custom personas.

Each store owns one JSON file holding a list of records. Unreadable or
malformed files are treated as empty so a corrupt file never blocks the
tool; writes replace the file atomically.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from .config import ReviewConfig
from .models import HistoryItem, Persona, StoredKey

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a store file cannot be written."""
    pass


class JSONStore:
    """A list of JSON records kept in a single file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> List:
        """
        Read all records.

        Returns:
            The stored list, or [] when the file is missing or malformed.
        """
        if not self.path.exists():
            return []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to parse {self.path.name}: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Ignoring {self.path.name}: expected a list, got {type(data).__name__}")
            return []
        return data

    def save(self, records: List) -> None:
        """Replace the stored records."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(records, fh, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StoreError(f"Failed to write {self.path}: {e}")

    def clear(self) -> None:
        """Remove the backing file."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StoreError(f"Failed to remove {self.path}: {e}")


def _parse_records(raw: List, factory, kind: str) -> List:
    items = []
    for record in raw:
        try:
            items.append(factory(record))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed {kind} record: {e}")
    return items


class KeyStore:
    """Saved API keys; at most one is active."""

    def __init__(self, path: Union[str, Path]):
        self._store = JSONStore(path)

    def list(self) -> List[StoredKey]:
        return _parse_records(self._store.load(), StoredKey.from_dict, "key")

    def _save(self, keys: List[StoredKey]) -> None:
        self._store.save([k.to_dict() for k in keys])

    def add(self, key: StoredKey) -> StoredKey:
        """Add a key. The first key saved, or one flagged active, becomes active."""
        keys = self.list()
        if not keys:
            key.is_active = True
        if key.is_active:
            for existing in keys:
                existing.is_active = False
        keys.append(key)
        self._save(keys)
        return key

    def remove(self, key_id: str) -> bool:
        keys = self.list()
        remaining = [k for k in keys if k.id != key_id]
        if len(remaining) == len(keys):
            return False
        self._save(remaining)
        return True

    def activate(self, key_id: str) -> StoredKey:
        keys = self.list()
        if not any(k.id == key_id for k in keys):
            raise KeyError(key_id)
        for key in keys:
            key.is_active = key.id == key_id
        self._save(keys)
        return next(k for k in keys if k.is_active)

    def active(self) -> Optional[StoredKey]:
        return next((k for k in self.list() if k.is_active), None)


class HistoryStore:
    """Saved review sessions, newest first."""

    def __init__(self, path: Union[str, Path], limit: int = 50):
        self._store = JSONStore(path)
        self.limit = limit

    def list(self) -> List[HistoryItem]:
        return _parse_records(self._store.load(), HistoryItem.from_dict, "history")

    def _save(self, items: List[HistoryItem]) -> None:
        self._store.save([item.to_dict() for item in items])

    def add(self, item: HistoryItem) -> None:
        """Insert at the front, dropping the oldest entries past the limit."""
        items = [item] + self.list()
        self._save(items[:self.limit])

    def update(self, item: HistoryItem) -> None:
        """Replace a saved entry in place; unknown ids are added."""
        items = self.list()
        for index, existing in enumerate(items):
            if existing.id == item.id:
                items[index] = item
                self._save(items)
                return
        self.add(item)

    def get(self, item_id: str) -> Optional[HistoryItem]:
        return next((item for item in self.list() if item.id == item_id), None)

    def delete(self, item_id: str) -> bool:
        items = self.list()
        remaining = [item for item in items if item.id != item_id]
        if len(remaining) == len(items):
            return False
        self._save(remaining)
        return True

    def clear(self) -> None:
        self._store.clear()


class PersonaStore:
    """User-created personas (defaults are never stored)."""

    def __init__(self, path: Union[str, Path]):
        self._store = JSONStore(path)

    def list(self) -> List[Persona]:
        return _parse_records(self._store.load(), Persona.from_dict, "persona")

    def add(self, persona: Persona) -> None:
        personas = [p for p in self.list() if p.id != persona.id]
        personas.append(persona)
        self._store.save([p.to_dict() for p in personas if p.is_custom])

    def delete(self, persona_id: str) -> bool:
        personas = self.list()
        remaining = [p for p in personas if p.id != persona_id]
        if len(remaining) == len(personas):
            return False
        self._store.save([p.to_dict() for p in remaining])
        return True


def open_stores(config: ReviewConfig) -> tuple[KeyStore, HistoryStore, PersonaStore]:
    """Create the three stores rooted at config.data_dir."""
    return (
        KeyStore(config.keys_path),
        HistoryStore(config.history_path, limit=config.history_limit),
        PersonaStore(config.personas_path),
    )
