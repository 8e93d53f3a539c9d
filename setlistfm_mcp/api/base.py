"""Shared request handling for the setlist.fm and Spotify clients."""

import logging
from typing import Any

import httpx

from .result import ApiErrorKind, ApiResult

logger = logging.getLogger(__name__)


class BaseApiClient:
    """JSON-over-HTTP client that turns every outcome into an ApiResult.

    One request per call: no retry, no backoff, and the transport's default
    timeout.
    """

    # Name used in log messages
    service_name = "API"

    def __init__(self, base_url: str, http_client: httpx.AsyncClient | None = None):
        """Initialize client.

        Args:
            base_url: Fixed base that endpoint paths are appended to
            http_client: Optional HTTP client (owned by the caller if given)
        """
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.AsyncClient()
        self._owns_http = http_client is None

    def build_url(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    async def _send(
        self,
        method: str,
        endpoint: str,
        headers: dict[str, str],
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> ApiResult:
        url = self.build_url(endpoint)
        try:
            response = await self._http.request(
                method,
                url,
                headers=headers,
                params=params,
                json=body,
            )
        except httpx.RequestError as e:
            logger.warning(f"Error making {self.service_name} request to {endpoint}: {e}")
            return ApiResult.failure(ApiErrorKind.TRANSPORT_ERROR, str(e))

        if not response.is_success:
            logger.warning(
                f"{self.service_name} request to {endpoint} failed: HTTP {response.status_code}"
            )
            return ApiResult.from_status(
                response.status_code, f"HTTP error! status: {response.status_code}"
            )

        if not response.content:
            return ApiResult.success(None, response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"{self.service_name} returned invalid JSON for {endpoint}: {e}")
            return ApiResult.failure(
                ApiErrorKind.INVALID_RESPONSE, "Response body is not JSON", response.status_code
            )

        return ApiResult.success(data, response.status_code)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "BaseApiClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()
