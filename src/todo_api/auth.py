from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyCookie, HTTPAuthorizationCredentials, HTTPBearer

from .auth_service import AuthService
from .errors import NotFound
from .models import User
from .services import TodoService

AUTH_COOKIE = "auth_token"
OAUTH_STATE_COOKIE = "oauth_state"

_cookie = APIKeyCookie(name=AUTH_COOKIE, auto_error=False)
_bearer = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# PUBLIC_INTERFACE
def get_auth_service(request: Request) -> AuthService:
    """Return the AuthService built for this application instance."""
    return request.app.state.auth_service


# PUBLIC_INTERFACE
def get_todo_service(request: Request) -> TodoService:
    """Return the TodoService built for this application instance."""
    return request.app.state.todo_service


# PUBLIC_INTERFACE
def get_token(
    cookie_token: Optional[str] = Depends(_cookie),
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[str]:
    """Session token from the auth_token cookie, else from an Authorization: Bearer header."""
    if cookie_token:
        return cookie_token
    if creds is not None and creds.credentials:
        return creds.credentials
    return None


# PUBLIC_INTERFACE
def get_current_user(
    token: Optional[str] = Depends(get_token),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    """
    FastAPI dependency resolving the authenticated user.

    Raises:
        HTTPException(401) if the token is missing, unknown, expired, or points
        at a user that no longer exists.
    """
    if not token:
        raise _unauthorized("Not authenticated")
    try:
        return auth.get_user(token)
    except NotFound as e:
        raise _unauthorized("Invalid or expired session") from e
