from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response, status

from ..auth import get_current_user, get_todo_service
from ..models import User
from ..schemas import TodoIn, TodoOut
from ..services import TodoService

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)

_NOT_FOUND = {404: {"description": "Todo not found"}}
_FORBIDDEN = {403: {"description": "Todo belongs to another user"}}
_BAD_ID = {400: {"description": "Malformed todo id"}}


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description="List the authenticated user's todos, newest first.",
)
def list_todos(
    user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
) -> List[TodoOut]:
    return [TodoOut.from_todo(t) for t in service.list_user_todos(user.id)]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item owned by the authenticated user.",
    responses={
        201: {"description": "Todo created successfully"},
        422: {"description": "Validation error (e.g. blank title)"},
    },
)
def create_todo(
    payload: TodoIn,
    user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
) -> TodoOut:
    created = service.create_todo(user.id, payload.title, payload.description)
    return TodoOut.from_todo(created)


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={**_NOT_FOUND, **_FORBIDDEN, **_BAD_ID},
)
def get_todo(
    todo_id: str,
    user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
) -> TodoOut:
    return TodoOut.from_todo(service.get_todo(todo_id, user.id))


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Replace Todo",
    description="Replace the title and description of a Todo item.",
    responses={**_NOT_FOUND, **_FORBIDDEN, **_BAD_ID},
)
def put_todo(
    todo_id: str,
    payload: TodoIn,
    user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
) -> TodoOut:
    updated = service.update_todo(todo_id, user.id, payload.title, payload.description)
    return TodoOut.from_todo(updated)


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}/complete",
    response_model=TodoOut,
    summary="Complete Todo",
    responses={**_NOT_FOUND, **_FORBIDDEN, **_BAD_ID},
)
def complete_todo(
    todo_id: str,
    user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
) -> TodoOut:
    return TodoOut.from_todo(service.complete_todo(todo_id, user.id))


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}/incomplete",
    response_model=TodoOut,
    summary="Reopen Todo",
    responses={**_NOT_FOUND, **_FORBIDDEN, **_BAD_ID},
)
def incomplete_todo(
    todo_id: str,
    user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
) -> TodoOut:
    return TodoOut.from_todo(service.incomplete_todo(todo_id, user.id))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        204: {"description": "Todo deleted"},
        **_NOT_FOUND,
        **_FORBIDDEN,
        **_BAD_ID,
    },
)
def delete_todo(
    todo_id: str,
    user: User = Depends(get_current_user),
    service: TodoService = Depends(get_todo_service),
) -> Response:
    service.delete_todo(todo_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
