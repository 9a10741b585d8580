from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from threading import RLock
from typing import Dict, List

from .errors import ConfigError, TodoNotFound
from .models import Todo
from .settings import BACKEND_MEMORY, BACKEND_RELATIONAL, Settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for todo storage backends."""

    @abstractmethod
    def create(self, todo: Todo) -> Todo:
        """Store a new Todo and return it."""

    @abstractmethod
    def get(self, todo_id: uuid.UUID) -> Todo:
        """Return the Todo with this id. Raises TodoNotFound."""

    @abstractmethod
    def list_by_user(self, user_id: uuid.UUID) -> List[Todo]:
        """Return the user's todos, newest first. Empty list if none."""

    @abstractmethod
    def update(self, todo: Todo) -> Todo:
        """Replace the stored Todo with the same id. Raises TodoNotFound."""

    @abstractmethod
    def delete(self, todo_id: uuid.UUID) -> None:
        """Remove a Todo. Raises TodoNotFound."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[uuid.UUID, Todo] = {}

    def create(self, todo: Todo) -> Todo:
        stored = todo.copy()
        with self._lock:
            self._items[stored.id] = stored
        return stored.copy()

    def get(self, todo_id: uuid.UUID) -> Todo:
        with self._lock:
            item = self._items.get(todo_id)
            if item is None:
                raise TodoNotFound()
            return item.copy()

    def list_by_user(self, user_id: uuid.UUID) -> List[Todo]:
        with self._lock:
            items = [t.copy() for t in self._items.values() if t.user_id == user_id]
        return sorted(items, key=lambda t: t.created_at, reverse=True)

    def update(self, todo: Todo) -> Todo:
        with self._lock:
            if todo.id not in self._items:
                raise TodoNotFound()
            self._items[todo.id] = todo.copy()
        return todo.copy()

    def delete(self, todo_id: uuid.UUID) -> None:
        with self._lock:
            if self._items.pop(todo_id, None) is None:
                raise TodoNotFound()


# PUBLIC_INTERFACE
def get_repository(settings: Settings) -> Repository:
    """
    Factory to return the configured repository based on settings.
    - memory: InMemoryRepository
    - relational: SQLRepository over settings.database_url

    Raises:
        ConfigError for an unknown backend or a missing DATABASE_URL.
    """
    settings.validate()
    if settings.persistence_backend == BACKEND_RELATIONAL:
        from .db import SQLRepository

        logger.info("Using relational todo repository")
        return SQLRepository(settings.database_url)  # type: ignore[arg-type]
    if settings.persistence_backend == BACKEND_MEMORY:
        logger.info("Using in-memory todo repository")
        return InMemoryRepository()
    raise ConfigError(f"unsupported persistence backend: {settings.persistence_backend!r}")
