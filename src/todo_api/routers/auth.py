from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse

from ..auth import (
    AUTH_COOKIE,
    OAUTH_STATE_COOKIE,
    get_auth_service,
    get_current_user,
    get_token,
)
from ..auth_service import AuthService
from ..errors import InvalidState, SessionNotFound, TodoAppError
from ..models import Session, User, utcnow
from ..schemas import Credentials, SessionOut, UserOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

OAUTH_STATE_COOKIE_TTL = timedelta(minutes=10)


def _secure(request: Request) -> bool:
    return request.app.state.settings.cookie_secure


def _set_auth_cookie(request: Request, response: Response, session: Session) -> None:
    response.set_cookie(
        AUTH_COOKIE,
        session.token,
        expires=session.expires_at,
        path="/",
        httponly=True,
        samesite="strict",
        secure=_secure(request),
    )


def _clear_cookie(request: Request, response: Response, name: str) -> None:
    response.delete_cookie(name, path="/", httponly=True, samesite="strict", secure=_secure(request))


def _error_response(request: Request, exc: TodoAppError) -> Response:
    # Failed callbacks drop the state cookie too.
    response = JSONResponse(status_code=exc.status_code, content={"error": exc.code, "message": exc.message})
    _clear_cookie(request, response, OAUTH_STATE_COOKIE)
    return response


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    responses={409: {"description": "Email already registered"}},
)
def register(payload: Credentials, auth: AuthService = Depends(get_auth_service)) -> UserOut:
    return UserOut.from_user(auth.register(payload.email, payload.password))


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=SessionOut,
    summary="Log in",
    description="Check email/password, open a 24h session and set the auth_token cookie.",
    responses={401: {"description": "Invalid credentials"}},
)
def login(
    payload: Credentials,
    request: Request,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
) -> SessionOut:
    session = auth.login(payload.email, payload.password)
    _set_auth_cookie(request, response, session)
    return SessionOut.from_session(session)


# PUBLIC_INTERFACE
@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Log out")
def logout(
    request: Request,
    token: Optional[str] = Depends(get_token),
    auth: AuthService = Depends(get_auth_service),
) -> Response:
    """Close the session if there is one. The cookie is cleared either way."""
    if token:
        try:
            auth.logout(token)
        except SessionNotFound:
            logger.info("Logout with unknown or already closed session")
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    _clear_cookie(request, response, AUTH_COOKIE)
    return response


# PUBLIC_INTERFACE
@router.get("/me", response_model=UserOut, summary="Current user")
def me(user: User = Depends(get_current_user)) -> UserOut:
    return UserOut.from_user(user)


# PUBLIC_INTERFACE
@router.get(
    "/github",
    status_code=status.HTTP_302_FOUND,
    summary="Start GitHub login",
    response_class=RedirectResponse,
)
def github_login(request: Request, auth: AuthService = Depends(get_auth_service)) -> Response:
    url, state = auth.get_github_auth_url()
    response = RedirectResponse(url, status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        state,
        expires=utcnow() + OAUTH_STATE_COOKIE_TTL,
        path="/",
        httponly=True,
        samesite="strict",
        secure=_secure(request),
    )
    return response


# PUBLIC_INTERFACE
@router.get(
    "/github/callback",
    status_code=status.HTTP_302_FOUND,
    summary="GitHub OAuth callback",
    response_class=RedirectResponse,
    responses={400: {"description": "Invalid OAuth state"}, 502: {"description": "GitHub call failed"}},
)
def github_callback(
    request: Request,
    code: str = Query(..., description="Authorization code from GitHub"),
    state: str = Query(..., description="State echoed back by GitHub"),
    oauth_state: Optional[str] = Cookie(default=None),
    auth: AuthService = Depends(get_auth_service),
) -> Response:
    if not oauth_state or oauth_state != state:
        logger.warning("GitHub callback state does not match the oauth_state cookie")
        if oauth_state:
            # Consume the state this browser was issued.
            auth.verify_oauth_state(oauth_state)
        return _error_response(request, InvalidState())

    try:
        session = auth.handle_github_callback(code, state)
    except TodoAppError as e:
        if e.status_code >= 500:
            logger.error("GitHub callback failed: %s", e)
        return _error_response(request, e)

    response = RedirectResponse(
        request.app.state.settings.login_redirect_path, status_code=status.HTTP_302_FOUND
    )
    _clear_cookie(request, response, OAUTH_STATE_COOKIE)
    _set_auth_cookie(request, response, session)
    return response
