"""Object store for entries and alarm rules.

Changes are staged with ``insert``/``delete`` and only become visible to
``get``/``query`` once ``save`` succeeds. A failed save leaves the committed
state untouched; callers ``rollback`` to drop the staged changes.
"""

import json
import os
import tempfile
from typing import Dict, List, Optional, Tuple, Type, TypeVar
from uuid import UUID

from loguru import logger
from pydantic import BaseModel, ValidationError

from .errors import StorageError
from .models import AlarmRule, DreamEntry

Entity = TypeVar("Entity", bound=BaseModel)

# Entity types the JSON store knows how to load back
MODELS: Dict[str, Type[BaseModel]] = {
    "DreamEntry": DreamEntry,
    "AlarmRule": AlarmRule,
}


class ObjectStore:
    """In-memory store; subclasses persist the committed state in ``_write``."""

    def __init__(self):
        self._committed: Dict[str, Dict[UUID, BaseModel]] = {}
        self._pending: List[Tuple[str, BaseModel]] = []

    def insert(self, entity: BaseModel) -> None:
        """Stage an insert, or an update when the id already exists."""
        self._pending.append(("insert", entity.model_copy(deep=True)))

    def delete(self, entity: BaseModel) -> None:
        self._pending.append(("delete", entity.model_copy(deep=True)))

    def save(self) -> None:
        if not self._pending:
            return

        state = {kind: dict(items) for kind, items in self._committed.items()}
        for op, entity in self._pending:
            items = state.setdefault(type(entity).__name__, {})
            if op == "insert":
                items[entity.id] = entity
            else:
                items.pop(entity.id, None)

        try:
            self._write(state)
        except OSError as exc:
            raise StorageError(f"Failed to save changes: {exc}") from exc

        self._committed = state
        self._pending.clear()

    def rollback(self) -> None:
        if self._pending:
            logger.debug(f"Discarding {len(self._pending)} staged change(s)")
        self._pending.clear()

    def get(self, model: Type[Entity], identifier: UUID) -> Optional[Entity]:
        entity = self._committed.get(model.__name__, {}).get(identifier)
        return entity.model_copy(deep=True) if entity is not None else None

    def query(self, model: Type[Entity], sort_by: str, descending: bool = False) -> List[Entity]:
        items = self._committed.get(model.__name__, {}).values()
        ordered = sorted(items, key=lambda entity: getattr(entity, sort_by), reverse=descending)
        return [entity.model_copy(deep=True) for entity in ordered]

    def _write(self, state: Dict[str, Dict[UUID, BaseModel]]) -> None:
        pass


class MemoryStore(ObjectStore):
    """Keeps everything for the lifetime of the process."""


class JsonFileStore(ObjectStore):
    """Persists the whole committed state as one JSON document."""

    def __init__(self, path: str):
        super().__init__()
        self.path = path
        self._committed = self._load()

    def _load(self) -> Dict[str, Dict[UUID, BaseModel]]:
        if not os.path.exists(self.path):
            logger.info(f"No store at {self.path}, starting empty")
            return {}

        try:
            with open(self.path, "r", encoding="utf8") as f:
                raw = json.load(f)
            state = {}
            for kind, items in raw.items():
                model = MODELS[kind]
                state[kind] = {UUID(key): model.model_validate(value) for key, value in items.items()}
        except (OSError, ValueError, KeyError, ValidationError) as exc:
            raise StorageError(f"Could not load store {self.path}: {exc}") from exc

        counts = ", ".join(f"{len(items)} {kind}" for kind, items in state.items())
        logger.info(f"Loaded store {self.path} ({counts or 'empty'})")
        return state

    def _write(self, state: Dict[str, Dict[UUID, BaseModel]]) -> None:
        document = {
            kind: {str(key): entity.model_dump(mode="json") for key, entity in items.items()}
            for kind, items in state.items()
        }

        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf8") as f:
                json.dump(document, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
