from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional, Union

from .errors import PermissionDenied, ValidationError
from .models import Todo, parse_uuid, utcnow
from .repositories import Repository

logger = logging.getLogger(__name__)

TodoID = Union[str, uuid.UUID]


def _clean_title(title: Optional[str]) -> str:
    s = (title or "").strip()
    if not s:
        raise ValidationError("title cannot be empty")
    return s


# PUBLIC_INTERFACE
class TodoService:
    """
    Business rules for todos on top of a Repository.

    Every call that addresses a single todo checks that the requesting user
    owns it before reading or mutating. Errors from the repository
    (TodoNotFound) propagate unchanged.
    """

    def __init__(self, repo: Repository, clock: Callable[[], datetime] = utcnow) -> None:
        self._repo = repo
        self._clock = clock

    def _owned(self, todo_id: TodoID, user_id: uuid.UUID) -> Todo:
        todo = self._repo.get(parse_uuid(todo_id))
        if todo.user_id != user_id:
            logger.warning("User %s denied access to todo %s", user_id, todo.id)
            raise PermissionDenied()
        return todo

    def list_user_todos(self, user_id: uuid.UUID) -> List[Todo]:
        if user_id is None:
            raise ValidationError("user ID cannot be empty")
        return self._repo.list_by_user(user_id)

    def create_todo(self, user_id: uuid.UUID, title: str, description: str = "") -> Todo:
        """Create an incomplete todo for user_id. Blank titles raise ValidationError."""
        if user_id is None:
            raise ValidationError("user ID cannot be empty")
        todo = Todo.new(user_id, _clean_title(title), description or "", now=self._clock())
        return self._repo.create(todo)

    def get_todo(self, todo_id: TodoID, user_id: uuid.UUID) -> Todo:
        return self._owned(todo_id, user_id)

    def update_todo(
        self, todo_id: TodoID, user_id: uuid.UUID, title: str, description: str = ""
    ) -> Todo:
        """Replace title and description of an owned todo."""
        clean = _clean_title(title)
        todo = self._owned(todo_id, user_id)
        todo.update(clean, description or "", now=self._clock())
        return self._repo.update(todo)

    def set_completed(self, todo_id: TodoID, user_id: uuid.UUID, completed: bool) -> Todo:
        todo = self._owned(todo_id, user_id)
        if completed:
            todo.mark_complete(now=self._clock())
        else:
            todo.mark_incomplete(now=self._clock())
        return self._repo.update(todo)

    def complete_todo(self, todo_id: TodoID, user_id: uuid.UUID) -> Todo:
        return self.set_completed(todo_id, user_id, True)

    def incomplete_todo(self, todo_id: TodoID, user_id: uuid.UUID) -> Todo:
        return self.set_completed(todo_id, user_id, False)

    def delete_todo(self, todo_id: TodoID, user_id: uuid.UUID) -> None:
        todo = self._owned(todo_id, user_id)
        self._repo.delete(todo.id)
