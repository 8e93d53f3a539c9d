"""Spotify authorization code flow with PKCE.

The flow is split across two independent entry points:
1. spotify-get-auth-url builds the authorization URL and persists the verifier
2. The callback listener receives the code and exchanges it for tokens

This module holds the two stateless pieces: URL composition and the
token endpoint request.
"""

import logging
from typing import Any
from urllib.parse import quote, urlencode

import httpx

logger = logging.getLogger(__name__)


class TokenExchangeError(Exception):
    """The token endpoint rejected the authorization code or was unreachable."""

    pass


def build_authorization_url(
    authorize_endpoint: str,
    client_id: str,
    redirect_uri: str,
    scopes: list[str],
    state: str,
    code_challenge: str,
) -> str:
    """Build the authorization URL for browser redirect.

    Args:
        authorize_endpoint: Provider authorize endpoint
        client_id: The client ID
        redirect_uri: The registered callback URI
        scopes: Scopes to request (space-joined into one parameter)
        state: State nonce
        code_challenge: PKCE S256 code challenge

    Returns:
        Complete authorization URL
    """
    params: dict[str, str] = {
        "response_type": "code",
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": " ".join(scopes),
        "state": state,
        "code_challenge_method": "S256",
        "code_challenge": code_challenge,
    }

    # quote (not quote_plus) so spaces become %20 and '/' is escaped too
    return f"{authorize_endpoint}?{urlencode(params, quote_via=quote)}"


def _safe_error_detail(response: httpx.Response) -> str:
    """Extract the OAuth error fields from a failed response, nothing else."""
    try:
        error_data = response.json()
    except ValueError:
        # Don't include raw response body - it might contain secrets
        return ""
    if not isinstance(error_data, dict):
        return ""
    return f": {error_data.get('error', '')} - {error_data.get('error_description', '')}"


async def exchange_code_for_tokens(
    token_endpoint: str,
    client_id: str,
    client_secret: str,
    code: str,
    redirect_uri: str,
    code_verifier: str,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Exchange an authorization code for tokens.

    A single form-encoded POST; no retry.

    Args:
        token_endpoint: Provider token endpoint
        client_id: The client ID
        client_secret: The client secret
        code: Authorization code from callback
        redirect_uri: The redirect URI used in authorization
        code_verifier: PKCE code verifier
        http_client: Optional HTTP client

    Returns:
        Token endpoint response as dictionary

    Raises:
        TokenExchangeError: If token exchange fails
    """
    http = http_client or httpx.AsyncClient()
    should_close = http_client is None

    try:
        token_request: dict[str, str] = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "client_id": client_id,
            "code_verifier": code_verifier,
            "client_secret": client_secret,
        }

        response = await http.post(
            token_endpoint,
            data=token_request,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        if response.status_code != 200:
            raise TokenExchangeError(
                f"Token exchange failed (HTTP {response.status_code}){_safe_error_detail(response)}"
            )

        try:
            result = response.json()
        except ValueError as e:
            raise TokenExchangeError("Token endpoint returned invalid JSON") from e

        if not isinstance(result, dict) or not result.get("access_token"):
            raise TokenExchangeError("Token response missing access_token")

        return result

    except httpx.RequestError as e:
        raise TokenExchangeError(f"Network error during token exchange: {e}") from e
    finally:
        if should_close:
            await http.aclose()
