"""Spotify Web API client (bearer-token authenticated).

The client holds no credentials. Each call takes the token to use, so the
caller decides which session it acts for.
"""

from typing import Any
from urllib.parse import quote

import httpx

from ..config import SPOTIFY_API_BASE
from ..oauth.tokens import TokenSet
from .base import BaseApiClient
from .result import ApiErrorKind, ApiResult


class SpotifyClient(BaseApiClient):
    """Client for https://api.spotify.com/v1."""

    service_name = "Spotify"

    def __init__(
        self,
        base_url: str = SPOTIFY_API_BASE,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url, http_client)

    async def request(
        self,
        endpoint: str,
        token: TokenSet | None,
        method: str = "GET",
        body: Any = None,
        params: dict[str, Any] | None = None,
    ) -> ApiResult:
        """Send an authenticated request.

        Args:
            endpoint: Path such as "/me"
            token: Token to authenticate with; None fails without a network call
            method: HTTP method
            body: Optional JSON body
            params: Optional query parameters

        Returns:
            ApiResult with the decoded JSON body or the failure kind
        """
        if token is None:
            return ApiResult.failure(ApiErrorKind.UNAUTHENTICATED, "Spotify access token not set")

        headers = {
            "Authorization": token.get_auth_header(),
            "Content-Type": "application/json",
        }
        return await self._send(method, endpoint, headers, params=params, body=body)

    async def current_user(self, token: TokenSet | None) -> ApiResult:
        return await self.request("/me", token)

    async def create_playlist(
        self,
        token: TokenSet | None,
        user_id: str,
        name: str,
        description: str = "",
        public: bool = True,
    ) -> ApiResult:
        return await self.request(
            f"/users/{quote(user_id, safe='')}/playlists",
            token,
            method="POST",
            body={"name": name, "description": description, "public": public},
        )

    async def add_tracks(self, token: TokenSet | None, playlist_id: str, uris: list[str]) -> ApiResult:
        return await self.request(
            f"/playlists/{quote(playlist_id, safe='')}/tracks",
            token,
            method="POST",
            body={"uris": uris},
        )

    async def search(
        self,
        token: TokenSet | None,
        query: str,
        search_type: str,
        limit: int,
    ) -> ApiResult:
        """Search the catalog for one item type ("track", "playlist", ...)."""
        return await self.request(
            "/search",
            token,
            params={"type": search_type, "q": query, "limit": limit},
        )
