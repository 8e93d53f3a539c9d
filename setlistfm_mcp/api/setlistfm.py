"""setlist.fm REST API client (API-key authenticated)."""

from typing import Any
from urllib.parse import quote

import httpx

from ..config import SETLISTFM_API_BASE, USER_AGENT
from .base import BaseApiClient
from .result import ApiResult


class SetlistFmClient(BaseApiClient):
    """Client for https://api.setlist.fm/rest/1.0."""

    service_name = "setlist.fm"

    def __init__(
        self,
        api_key: str,
        base_url: str = SETLISTFM_API_BASE,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url, http_client)
        self.api_key = api_key

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

    async def request(self, endpoint: str, params: dict[str, Any] | None = None) -> ApiResult:
        """GET an endpoint relative to the API base.

        Args:
            endpoint: Path such as "/search/artists"
            params: Optional query parameters

        Returns:
            ApiResult with the decoded JSON body or the failure kind
        """
        return await self._send("GET", endpoint, self._headers(), params=params)

    async def search_artists(self, name: str) -> ApiResult:
        """Search artists by name."""
        return await self.request("/search/artists", {"artistName": name})

    async def artist_setlists(self, mbid: str, page: int = 1) -> ApiResult:
        """List an artist's setlists, most recent first."""
        params = {"p": str(page)} if page != 1 else None
        return await self.request(f"/artist/{quote(mbid, safe='')}/setlists", params)
