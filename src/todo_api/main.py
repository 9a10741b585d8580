from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth_service import AuthService
from .credentials import CredentialStore
from .errors import TodoAppError
from .github import GitHubOAuthClient
from .repositories import get_repository
from .routers import auth as auth_router
from .routers import todos as todos_router
from .services import TodoService
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s: %(message)s"

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "auth", "description": "Registration, password login, sessions and GitHub OAuth."},
    {"name": "todos", "description": "CRUD operations on the authenticated user's todos."},
]


def configure_logging(level: str) -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("todo_api").setLevel(level)


def _jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances that JSONResponse cannot serialise
    errors = []
    for err in exc.errors():
        item = dict(err)
        if "ctx" in item:
            item["ctx"] = {k: str(v) for k, v in item["ctx"].items()}
        errors.append(item)
    return errors


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    *,
    http_client: Optional[httpx.Client] = None,
) -> FastAPI:
    """
    Build the FastAPI application and everything it depends on.

    Stores and services are created once here and attached to app.state;
    route dependencies read them from there.

    Args:
        settings: Explicit settings; defaults to get_settings() (environment).
        http_client: httpx client used for GitHub calls (tests pass a mock transport).
            The caller owns it; a client built here is closed on shutdown.

    Raises:
        ConfigError if the settings cannot start the service.
    """
    settings = (settings or get_settings()).validate()
    configure_logging(settings.log_level)

    repo = get_repository(settings)
    github = GitHubOAuthClient(
        client_id=settings.github_client_id,
        client_secret=settings.github_client_secret,
        redirect_url=settings.github_redirect_url,
        http_client=http_client,
        timeout=settings.github_http_timeout,
    )
    owns_http_client = http_client is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_http_client:
            github.close()

    app = FastAPI(
        title="Todo Backend",
        description="Multi-user todo API with password and GitHub sign-in.",
        version="0.2.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.github = github
    app.state.todo_service = TodoService(repo)
    app.state.credential_store = CredentialStore()
    app.state.auth_service = AuthService(app.state.credential_store, github)

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "detail": [... pydantic/fastapi error details ...],
                "message": "Request validation failed"
            }
        """
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": _jsonable_errors(exc),
            },
        )

    @app.exception_handler(TodoAppError)
    async def domain_exception_handler(request: Request, exc: TodoAppError) -> JSONResponse:
        """Translate service errors into {"error": code, "message": text}."""
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.code, "message": exc.message},
        )

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(auth_router.router)
    app.include_router(todos_router.router)
    return app


app = create_app()
