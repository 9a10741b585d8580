from __future__ import annotations

import logging
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Callable, Tuple

import bcrypt

from .credentials import CredentialStore
from .errors import (
    AlreadyExists,
    InvalidCredentials,
    InvalidState,
    SessionNotFound,
    UserNotFound,
    ValidationError,
)
from .github import GitHubOAuthClient
from .models import OAuthState, Session, User, utcnow

logger = logging.getLogger(__name__)

SESSION_TTL = timedelta(hours=24)
OAUTH_STATE_TTL = timedelta(minutes=15)

# bcrypt only looks at the first 72 bytes of a password.
_BCRYPT_MAX_BYTES = 72

# Compared against when the email is unknown so that both failure paths cost a hash check.
_DUMMY_HASH = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt()).decode()


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _hash(pw: str) -> str:
    return bcrypt.hashpw(pw.encode(), bcrypt.gensalt()).decode()


def _verify(pw: str, ph: str) -> bool:
    try:
        return bcrypt.checkpw(pw.encode(), ph.encode())
    except ValueError:
        return False


# PUBLIC_INTERFACE
class AuthService:
    """
    Registration, password login, session lifecycle and the GitHub OAuth flow.

    Sessions are opaque uuid4 tokens with a fixed 24 hour lifetime; expiry is
    only checked on lookup.
    """

    def __init__(
        self,
        store: CredentialStore,
        github: GitHubOAuthClient,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._github = github
        self._clock = clock

    @property
    def github(self) -> GitHubOAuthClient:
        return self._github

    def _new_session(self, user: User) -> Session:
        session = Session(
            token=str(uuid.uuid4()),
            user_id=user.id,
            expires_at=self._clock() + SESSION_TTL,
        )
        self._store.put_session(session)
        return session

    # password auth

    def register(self, email: str, password: str) -> User:
        """
        Create a password user.

        Raises:
            ValidationError for a blank email/password or a password over 72 bytes.
            AlreadyExists if the email is taken; the existing user is untouched.
        """
        key = normalize_email(email)
        if not key:
            raise ValidationError("email is required")
        if not password:
            raise ValidationError("password is required")
        if len(password.encode()) > _BCRYPT_MAX_BYTES:
            raise ValidationError("password must be at most 72 bytes")

        user = User(
            id=uuid.uuid4(),
            email=key,
            password_hash=_hash(password),
            created_at=self._clock(),
        )
        self._store.add_user(user)
        logger.info("Registered user %s", user.id)
        return user

    def login(self, email: str, password: str) -> Session:
        """
        Check credentials and open a session.

        Raises:
            InvalidCredentials for an unknown email, a wrong password or an OAuth-only account.
        """
        user = self._store.get_user_by_email(normalize_email(email))
        if user is None or not user.password_hash:
            _verify(password or "", _DUMMY_HASH)
            logger.info("Login failed for email %s", email)
            raise InvalidCredentials()
        if not _verify(password or "", user.password_hash):
            logger.info("Login failed for email %s", email)
            raise InvalidCredentials()
        return self._new_session(user)

    # sessions

    def verify_token(self, token: str) -> bool:
        session = self._store.get_session(token)
        return session is not None and not session.is_expired(self._clock())

    def get_user(self, token: str) -> User:
        """
        Resolve the user behind a session token.

        An expired session is deleted before SessionNotFound is raised.
        """
        session = self._store.get_session(token)
        if session is None:
            raise SessionNotFound()
        if session.is_expired(self._clock()):
            self._store.delete_session(token)
            raise SessionNotFound()

        user = self._store.find_user_by_id(session.user_id)
        if user is None:
            raise UserNotFound()
        return user

    def logout(self, token: str) -> None:
        if not self._store.delete_session(token):
            raise SessionNotFound("session not found")
        logger.info("Session closed")

    # github oauth

    def generate_oauth_state(self) -> str:
        state = secrets.token_hex(16)
        now = self._clock()
        self._store.put_state(
            OAuthState(state=state, created_at=now, expires_at=now + OAUTH_STATE_TTL)
        )
        return state

    def verify_oauth_state(self, state: str) -> bool:
        """Consume a state. The stored entry is gone after this call whatever the outcome."""
        entry = self._store.pop_state(state)
        return entry is not None and not entry.is_expired(self._clock())

    def get_github_auth_url(self) -> Tuple[str, str]:
        """Return (authorization_url, state)."""
        state = self.generate_oauth_state()
        return self._github.get_auth_code_url(state), state

    def handle_github_callback(self, code: str, state: str) -> Session:
        """
        Finish the GitHub web flow and open a session.

        Raises:
            InvalidState, OAuthExchangeError, ProfileFetchError
        """
        if not self.verify_oauth_state(state):
            logger.warning("Rejected GitHub callback with invalid OAuth state")
            raise InvalidState()

        access_token = self._github.exchange_code_for_token(code)
        gh_user = self._github.get_user(access_token)
        return self._session_for_github_user(gh_user.email)

    def _session_for_github_user(self, email: str) -> Session:
        key = normalize_email(email)
        user = self._store.get_user_by_email(key)
        if user is None:
            candidate = User(id=uuid.uuid4(), email=key, password_hash=None, created_at=self._clock())
            try:
                user = self._store.add_user(candidate)
                logger.info("Created user %s from GitHub login", user.id)
            except AlreadyExists:
                # Registered concurrently between the lookup and the insert.
                user = self._store.get_user_by_email(key) or candidate
        return self._new_session(user)
