import httpx
import pytest

from todo_api.errors import OAuthExchangeError, ProfileFetchError
from todo_api.github import GitHubOAuthClient


class TestTokenExchange:
    def test_sends_credentials_and_code(self, github_client, fake_github):
        assert github_client.exchange_code_for_token("the-code") == "gho_test"

        request = fake_github.calls[0]
        assert request.method == "POST"
        assert request.headers["accept"] == "application/json"
        form = dict(httpx.QueryParams(request.content.decode()))
        assert form == {
            "client_id": "client-123",
            "client_secret": "secret-456",
            "code": "the-code",
            "redirect_uri": "http://localhost:8080/auth/github/callback",
        }

    @pytest.mark.parametrize(
        "status,payload",
        [
            (200, {"error": "bad_verification_code"}),
            (200, {"token_type": "bearer"}),
            (200, ["not", "a", "dict"]),
            (401, {"message": "Bad credentials"}),
        ],
    )
    def test_failures(self, github_client, fake_github, status, payload):
        fake_github.token_status = status
        fake_github.token_payload = payload
        with pytest.raises(OAuthExchangeError):
            github_client.exchange_code_for_token("code")

    def test_transport_error(self):
        def boom(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = GitHubOAuthClient(
            "id", "secret", "http://cb", http_client=httpx.Client(transport=httpx.MockTransport(boom))
        )
        with pytest.raises(OAuthExchangeError):
            client.exchange_code_for_token("code")
        with pytest.raises(ProfileFetchError):
            client.get_user("token")


class TestProfile:
    def test_public_email(self, github_client, fake_github):
        user = github_client.get_user("gho_test")
        assert user.email == "octo@mail.com"
        assert user.login == "octocat"
        assert fake_github.calls[0].headers["authorization"] == "Bearer gho_test"
        assert len(fake_github.calls) == 1

    def test_primary_verified_email(self, github_client, fake_github):
        fake_github.user_payload["email"] = None
        assert github_client.get_user("gho_test").email == "primary@mail.com"

    def test_emails_endpoint_failure(self, github_client, fake_github):
        fake_github.user_payload["email"] = None
        fake_github.emails_status = 403
        with pytest.raises(ProfileFetchError):
            github_client.get_user("gho_test")

    def test_custom_api_url(self, fake_github):
        client = GitHubOAuthClient(
            "id", "secret", "http://cb", api_url="https://api.github.com/", http_client=fake_github.client()
        )
        assert client.get_user("t").id == 42
