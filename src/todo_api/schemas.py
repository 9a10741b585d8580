from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .models import Session, Todo, User


# PUBLIC_INTERFACE
class Credentials(BaseModel):
    """
    Email/password pair used by both register and login.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "alice@mail.com", "password": "s3cret-pass"}}
    )

    email: EmailStr = Field(..., description="Account email address")
    password: str = Field(..., description="Plain-text password", max_length=72)


# PUBLIC_INTERFACE
class UserOut(BaseModel):
    """Public view of a user; the password hash is never exposed."""

    id: UUID = Field(..., description="User id")
    email: str = Field(..., description="Account email address")
    created_at: datetime = Field(..., description="Registration timestamp")

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(id=user.id, email=user.email, created_at=user.created_at)


# PUBLIC_INTERFACE
class SessionOut(BaseModel):
    """Session issued by login. The token is also set as the auth_token cookie."""

    token: str = Field(..., description="Opaque bearer token")
    user_id: UUID = Field(..., description="Owner of the session")
    expires_at: datetime = Field(..., description="Expiry timestamp (24h after login)")

    @classmethod
    def from_session(cls, session: Session) -> "SessionOut":
        return cls(token=session.token, user_id=session.user_id, expires_at=session.expires_at)


# PUBLIC_INTERFACE
class TodoIn(BaseModel):
    """
    Schema for creating or replacing a Todo item.

    Title emptiness is checked by the service, which answers with a 422
    ValidationError body.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"title": "Buy milk", "description": "2%"}}
    )

    title: str = Field(..., description="Short title for the todo item")
    description: str = Field(default="", description="Optional detailed description")


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "9b2f3f0e-6d1f-4d1b-9a53-0e6c2b8f4e11",
                "user_id": "1c0c6f49-5f6a-4a39-9d2a-3c1f0b1d2e33",
                "title": "Buy milk",
                "description": "2%",
                "completed": False,
                "created_at": "2025-01-25T10:15:30.123456Z",
                "updated_at": "2025-01-26T09:00:00.000001Z",
            }
        }
    )

    id: UUID = Field(..., description="Unique identifier of the todo item")
    user_id: UUID = Field(..., description="Owner of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: str = Field(default="", description="Detailed description")
    completed: bool = Field(..., description="Completion status flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    @classmethod
    def from_todo(cls, todo: Todo) -> "TodoOut":
        return cls(
            id=todo.id,
            user_id=todo.user_id,
            title=todo.title,
            description=todo.description,
            completed=todo.completed,
            created_at=todo.created_at,
            updated_at=todo.updated_at,
        )
