"""
GitHub OAuth web-flow client.

Builds the authorization URL, exchanges the callback code for an access token
and reads the signed-in account's profile. Network and response failures are
reported as OAuthExchangeError (token step) or ProfileFetchError (profile step).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional
from urllib.parse import urlencode

import httpx

from .errors import OAuthExchangeError, ProfileFetchError

logger = logging.getLogger(__name__)

GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_API_URL = "https://api.github.com"
DEFAULT_SCOPES = ("user:email",)


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class GitHubUser:
    id: int
    login: str
    email: str
    name: str = ""
    avatar_url: str = ""


# PUBLIC_INTERFACE
class GitHubOAuthClient:
    """
    Thin httpx wrapper around the three GitHub calls of the OAuth web flow.

    Pass http_client to share a connection pool or to inject a mock transport.
    timeout=None keeps httpx's default timeout.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_url: str,
        scopes: Optional[List[str]] = None,
        authorize_url: str = GITHUB_AUTHORIZE_URL,
        token_url: str = GITHUB_TOKEN_URL,
        api_url: str = GITHUB_API_URL,
        http_client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_url = redirect_url
        self.scopes = list(scopes or DEFAULT_SCOPES)
        self.authorize_url = authorize_url
        self.token_url = token_url
        self.api_url = api_url.rstrip("/")
        if http_client is None:
            http_client = httpx.Client(timeout=timeout) if timeout is not None else httpx.Client()
        self._http = http_client

    def close(self) -> None:
        self._http.close()

    @property
    def closed(self) -> bool:
        return self._http.is_closed

    @property
    def scope_string(self) -> str:
        return " ".join(self.scopes)

    def get_auth_code_url(self, state: str) -> str:
        """Return the URL to send the browser to for authorization."""
        query = urlencode(
            {
                "client_id": self.client_id,
                "redirect_uri": self.redirect_url,
                "scope": self.scope_string,
                "state": state,
            }
        )
        return f"{self.authorize_url}?{query}"

    def exchange_code_for_token(self, code: str) -> str:
        """
        Exchange an authorization code for an access token.

        Raises:
            OAuthExchangeError on transport failure, non-2xx status, an error
            payload or a response without access_token.
        """
        try:
            resp = self._http.post(
                self.token_url,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "redirect_uri": self.redirect_url,
                },
                headers={"Accept": "application/json"},
            )
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as e:
            raise OAuthExchangeError(f"error sending token request: {e}") from e
        except ValueError as e:
            raise OAuthExchangeError("error parsing token response") from e

        if not isinstance(payload, dict):
            raise OAuthExchangeError("unexpected token response")
        if payload.get("error"):
            raise OAuthExchangeError(f"error from GitHub: {payload['error']}")
        token = payload.get("access_token")
        if not token:
            raise OAuthExchangeError("token response has no access_token")
        return str(token)

    def _get_json(self, path: str, access_token: str) -> Any:
        try:
            resp = self._http.get(
                f"{self.api_url}{path}",
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/vnd.github+json",
                },
            )
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            raise ProfileFetchError(f"GitHub API error on {path}: {e}") from e
        except ValueError as e:
            raise ProfileFetchError(f"error decoding {path} response") from e

    def get_primary_email(self, access_token: str) -> str:
        """Return the account's primary verified email."""
        emails = self._get_json("/user/emails", access_token)
        if isinstance(emails, list):
            for entry in emails:
                if isinstance(entry, dict) and entry.get("primary") and entry.get("verified"):
                    email = entry.get("email")
                    if email:
                        return str(email)
        raise ProfileFetchError("no primary verified email found")

    def get_user(self, access_token: str) -> GitHubUser:
        """
        Fetch the signed-in user's profile.

        Falls back to /user/emails when the profile has no public email.
        """
        data = self._get_json("/user", access_token)
        if not isinstance(data, dict):
            raise ProfileFetchError("unexpected /user response")

        email = data.get("email") or ""
        if not email:
            email = self.get_primary_email(access_token)

        return GitHubUser(
            id=int(data.get("id") or 0),
            login=str(data.get("login") or ""),
            email=str(email),
            name=str(data.get("name") or ""),
            avatar_url=str(data.get("avatar_url") or ""),
        )
