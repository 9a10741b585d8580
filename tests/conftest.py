from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from todo_api.auth_service import AuthService
from todo_api.credentials import CredentialStore
from todo_api.db import SQLRepository
from todo_api.github import GitHubOAuthClient
from todo_api.main import create_app
from todo_api.repositories import InMemoryRepository
from todo_api.settings import Settings


class FakeClock:
    """Deterministic clock; each call returns the current time then moves forward by step."""

    def __init__(
        self,
        start: datetime = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc),
        step: timedelta = timedelta(0),
    ) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class FakeGitHub:
    """
    Stand-in for the three GitHub endpoints, served through httpx.MockTransport.

    Tweak the attributes to simulate failures; every request is recorded in calls.
    """

    def __init__(self) -> None:
        self.token_status = 200
        self.token_payload: Dict = {"access_token": "gho_test", "token_type": "bearer"}
        self.user_status = 200
        self.user_payload: Dict = {"id": 42, "login": "octocat", "name": "Octo Cat", "email": "octo@mail.com"}
        self.emails_status = 200
        self.emails_payload: List[Dict] = [
            {"email": "old@mail.com", "primary": False, "verified": True},
            {"email": "primary@mail.com", "primary": True, "verified": True},
        ]
        self.calls: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        url = str(request.url)
        if url.startswith("https://github.com/login/oauth/access_token"):
            return httpx.Response(self.token_status, json=self.token_payload)
        if url == "https://api.github.com/user":
            return httpx.Response(self.user_status, json=self.user_payload)
        if url == "https://api.github.com/user/emails":
            return httpx.Response(self.emails_status, json=self.emails_payload)
        return httpx.Response(404, content=json.dumps({"message": "Not Found"}))

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def paths(self) -> List[str]:
        return [r.url.path for r in self.calls]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ticking_clock() -> FakeClock:
    return FakeClock(step=timedelta(seconds=1))


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def github_client(fake_github: FakeGitHub) -> GitHubOAuthClient:
    return GitHubOAuthClient(
        client_id="client-123",
        client_secret="secret-456",
        redirect_url="http://localhost:8080/auth/github/callback",
        http_client=fake_github.client(),
    )


@pytest.fixture
def credential_store() -> CredentialStore:
    return CredentialStore()


@pytest.fixture
def auth_service(credential_store: CredentialStore, github_client: GitHubOAuthClient, clock: FakeClock) -> AuthService:
    return AuthService(credential_store, github_client, clock=clock)


@pytest.fixture(params=["memory", "sql"])
def repo(request, tmp_path):
    """Both repository implementations, so contract tests run against each."""
    if request.param == "memory":
        yield InMemoryRepository()
    else:
        sql = SQLRepository(f"sqlite:///{tmp_path / 'todos.db'}")
        yield sql
        sql.engine.dispose()


@pytest.fixture
def make_client(fake_github: FakeGitHub) -> Callable[..., TestClient]:
    def _make(settings: Optional[Settings] = None) -> TestClient:
        settings = settings or Settings(
            github_client_id="client-123",
            github_client_secret="secret-456",
            github_redirect_url="http://testserver/auth/github/callback",
        )
        return TestClient(create_app(settings, http_client=fake_github.client()))

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
