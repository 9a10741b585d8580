from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Union

from .errors import InvalidUUID


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
def parse_uuid(value: Union[str, uuid.UUID]) -> uuid.UUID:
    """
    Return value as a UUID.

    Raises:
        InvalidUUID if value is not a well-formed UUID string.
    """
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (ValueError, AttributeError, TypeError) as e:
        raise InvalidUUID(f"Invalid UUID: {value!r}") from e


# PUBLIC_INTERFACE
def is_valid_uuid(value: Union[str, uuid.UUID]) -> bool:
    """Return True if value parses as a UUID."""
    try:
        parse_uuid(value)
    except InvalidUUID:
        return False
    return True


# PUBLIC_INTERFACE
@dataclass
class Todo:
    """
    A todo item owned by a single user.

    Fields:
    - id: Unique identifier
    - user_id: Owning user's id
    - title: Short title (never blank once validated by the service)
    - description: Free text, empty string when not provided
    - completed: Completion flag
    - created_at: UTC creation timestamp
    - updated_at: UTC timestamp of the last mutation
    """

    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: str = ""
    completed: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def new(
        cls,
        user_id: uuid.UUID,
        title: str,
        description: str = "",
        now: Optional[datetime] = None,
    ) -> "Todo":
        """Create an incomplete todo with a fresh id."""
        ts = now or utcnow()
        return cls(
            id=uuid.uuid4(),
            user_id=user_id,
            title=title,
            description=description,
            completed=False,
            created_at=ts,
            updated_at=ts,
        )

    def mark_complete(self, now: Optional[datetime] = None) -> None:
        self.completed = True
        self.updated_at = now or utcnow()

    def mark_incomplete(self, now: Optional[datetime] = None) -> None:
        self.completed = False
        self.updated_at = now or utcnow()

    def update(self, title: str, description: str, now: Optional[datetime] = None) -> None:
        self.title = title
        self.description = description
        self.updated_at = now or utcnow()

    def copy(self) -> "Todo":
        return replace(self)


# PUBLIC_INTERFACE
@dataclass
class User:
    """A registered account. OAuth-created users have no password hash."""

    id: uuid.UUID
    email: str
    password_hash: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Session:
    """An authenticated session identified by an opaque bearer token."""

    token: str
    user_id: uuid.UUID
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        # Valid up to and including expires_at.
        return now > self.expires_at


@dataclass(frozen=True)
class OAuthState:
    state: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at
