"""Tests for the authorization URL builder and token exchange."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from setlistfm_mcp.config import SPOTIFY_AUTHORIZE_ENDPOINT, SPOTIFY_SCOPES, SPOTIFY_TOKEN_ENDPOINT
from setlistfm_mcp.oauth.flow import (
    TokenExchangeError,
    build_authorization_url,
    exchange_code_for_tokens,
)


def _build(**overrides) -> str:
    kwargs = {
        "authorize_endpoint": SPOTIFY_AUTHORIZE_ENDPOINT,
        "client_id": "test_client",
        "redirect_uri": "http://localhost:8888/callback",
        "scopes": ["playlist-modify-public", "user-read-email"],
        "state": "test_state",
        "code_challenge": "test_challenge",
    }
    kwargs.update(overrides)
    return build_authorization_url(**kwargs)


class TestBuildAuthorizationUrl:
    """Tests for build_authorization_url function."""

    def test_builds_url_with_required_params(self) -> None:
        """Test that URL contains all required OAuth parameters."""
        url = _build()

        assert url.startswith("https://accounts.spotify.com/authorize?")
        assert "response_type=code" in url
        assert "client_id=test_client" in url
        assert "code_challenge=test_challenge" in url
        assert "code_challenge_method=S256" in url
        assert "state=test_state" in url

    @pytest.mark.parametrize(
        "param", ["client_id=", "redirect_uri=", "code_challenge=", "state=", "code_challenge_method=S256"]
    )
    def test_each_param_appears_once(self, param: str) -> None:
        """Test that each parameter occurs exactly once in the query."""
        query = urlparse(_build()).query
        names = [pair.split("=", 1)[0] + "=" for pair in query.split("&")]
        if param.endswith("=S256"):
            assert query.split("&").count(param) == 1
        else:
            assert names.count(param) == 1

    def test_scope_space_joined_and_percent_encoded(self) -> None:
        """Test that scopes are joined with spaces encoded as %20."""
        url = _build(scopes=SPOTIFY_SCOPES)

        assert (
            "scope=playlist-modify-public%20playlist-modify-private%20"
            "user-read-private%20user-read-email" in url
        )
        assert "+" not in urlparse(url).query

    def test_redirect_uri_percent_encoded(self) -> None:
        """Test that the redirect URI is fully percent-encoded."""
        url = _build()
        assert "redirect_uri=http%3A%2F%2Flocalhost%3A8888%2Fcallback" in url

    def test_round_trips_through_parser(self) -> None:
        """Test that a URL parser recovers the original values."""
        params = parse_qs(urlparse(_build(client_id="a b&c")).query)

        assert params["client_id"] == ["a b&c"]
        assert params["redirect_uri"] == ["http://localhost:8888/callback"]
        assert params["scope"] == ["playlist-modify-public user-read-email"]

    def test_empty_scope_list(self) -> None:
        """Test that an empty scope list yields an empty scope parameter."""
        assert "scope=&" in _build(scopes=[])


class TestExchangeCodeForTokens:
    """Tests for exchange_code_for_tokens function."""

    @pytest.mark.asyncio
    async def test_successful_token_exchange(self, mock_http, json_handler) -> None:
        """Test that the POST is form-encoded with every PKCE field."""
        client, transport = mock_http(
            json_handler({"access_token": "A", "refresh_token": "B", "token_type": "Bearer"})
        )

        result = await exchange_code_for_tokens(
            SPOTIFY_TOKEN_ENDPOINT,
            "test_client",
            "test_secret",
            "test_code",
            "http://localhost:8888/callback",
            "test_verifier",
            http_client=client,
        )

        assert result["access_token"] == "A"
        assert result["refresh_token"] == "B"

        assert len(transport.requests) == 1
        request = transport.requests[0]
        assert request.method == "POST"
        assert str(request.url) == SPOTIFY_TOKEN_ENDPOINT
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        form = parse_qs(request.content.decode())
        assert form == {
            "grant_type": ["authorization_code"],
            "code": ["test_code"],
            "redirect_uri": ["http://localhost:8888/callback"],
            "client_id": ["test_client"],
            "code_verifier": ["test_verifier"],
            "client_secret": ["test_secret"],
        }

    @pytest.mark.asyncio
    async def test_error_status_raises(self, mock_http, json_handler) -> None:
        """Test that a non-200 status raises with the OAuth error fields."""
        client, _ = mock_http(
            json_handler(
                {"error": "invalid_grant", "error_description": "code_verifier was incorrect"},
                status_code=400,
            )
        )

        with pytest.raises(TokenExchangeError) as exc_info:
            await exchange_code_for_tokens(
                SPOTIFY_TOKEN_ENDPOINT, "c", "s", "code", "http://x/cb", "v", http_client=client
            )

        message = str(exc_info.value)
        assert "HTTP 400" in message
        assert "invalid_grant" in message

    @pytest.mark.asyncio
    async def test_error_does_not_leak_raw_body(self, mock_http) -> None:
        """Test that a non-JSON error body is not echoed."""
        client, _ = mock_http(lambda request: httpx.Response(500, text="sensitive_token_data_here"))

        with pytest.raises(TokenExchangeError) as exc_info:
            await exchange_code_for_tokens(
                SPOTIFY_TOKEN_ENDPOINT, "c", "s", "code", "http://x/cb", "v", http_client=client
            )

        assert "sensitive_token_data_here" not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_access_token_raises(self, mock_http, json_handler) -> None:
        """Test that a 200 without access_token is treated as failure."""
        client, _ = mock_http(json_handler({"token_type": "Bearer"}))

        with pytest.raises(TokenExchangeError, match="missing access_token"):
            await exchange_code_for_tokens(
                SPOTIFY_TOKEN_ENDPOINT, "c", "s", "code", "http://x/cb", "v", http_client=client
            )

    @pytest.mark.asyncio
    async def test_network_error_raises(self, mock_http) -> None:
        """Test that transport errors become TokenExchangeError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = mock_http(handler)

        with pytest.raises(TokenExchangeError, match="Network error"):
            await exchange_code_for_tokens(
                SPOTIFY_TOKEN_ENDPOINT, "c", "s", "code", "http://x/cb", "v", http_client=client
            )
