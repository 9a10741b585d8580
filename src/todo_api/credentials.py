from __future__ import annotations

import uuid
from threading import RLock
from typing import Dict, Optional

from .errors import AlreadyExists
from .models import OAuthState, Session, User


# PUBLIC_INTERFACE
class CredentialStore:
    """
    In-memory maps for users, sessions and pending OAuth states.

    Each map has its own lock; nothing here is atomic across maps. All state is
    lost when the process exits.
    """

    def __init__(self) -> None:
        self._users_lock = RLock()
        self._users: Dict[str, User] = {}  # email -> user
        self._sessions_lock = RLock()
        self._sessions: Dict[str, Session] = {}  # token -> session
        self._states_lock = RLock()
        self._states: Dict[str, OAuthState] = {}  # state -> OAuthState

    # users

    def add_user(self, user: User) -> User:
        """Insert a user keyed by email. Raises AlreadyExists; never overwrites."""
        with self._users_lock:
            if user.email in self._users:
                raise AlreadyExists()
            self._users[user.email] = user
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._users_lock:
            return self._users.get(email)

    def find_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        with self._users_lock:
            for user in self._users.values():
                if user.id == user_id:
                    return user
        return None

    # sessions

    def put_session(self, session: Session) -> None:
        with self._sessions_lock:
            self._sessions[session.token] = session

    def get_session(self, token: str) -> Optional[Session]:
        with self._sessions_lock:
            return self._sessions.get(token)

    def delete_session(self, token: str) -> bool:
        with self._sessions_lock:
            return self._sessions.pop(token, None) is not None

    # oauth states

    def put_state(self, state: OAuthState) -> None:
        with self._states_lock:
            self._states[state.state] = state

    def pop_state(self, state: str) -> Optional[OAuthState]:
        """Remove and return a state; None if it was never stored or already used."""
        with self._states_lock:
            return self._states.pop(state, None)
