"""Spotify token pair and its JSON (de)serialization.

Tokens carry no expiry tracking: a stored access token is used until Spotify
rejects it, at which point the user re-runs the authorization step.
"""

import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class TokenSet:
    """Access token plus optional refresh token.

    Attributes:
        access_token: Bearer token sent to the Spotify Web API
        refresh_token: Refresh token returned by the token endpoint, if any
    """

    access_token: str
    refresh_token: str | None = None

    def has_refresh_token(self) -> bool:
        """Check if this token set has a refresh token."""
        return self.refresh_token is not None and len(self.refresh_token) > 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk token file shape.

        The refresh token key is omitted when there is none.
        """
        data: dict[str, Any] = {"access_token": self.access_token}
        if self.refresh_token:
            data["refresh_token"] = self.refresh_token
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TokenSet":
        """Deserialize from the token file.

        Raises:
            KeyError: If access_token is missing
            ValueError: If access_token is empty or not a string
        """
        access_token = data["access_token"]
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("access_token must be a non-empty string")

        refresh_token = data.get("refresh_token")
        if refresh_token is not None and not isinstance(refresh_token, str):
            raise ValueError("refresh_token must be a string")

        return cls(access_token=access_token, refresh_token=refresh_token or None)

    @classmethod
    def from_token_response(cls, response: dict[str, Any]) -> "TokenSet":
        """Create a TokenSet from a token endpoint JSON response."""
        return cls.from_dict(response)

    def get_auth_header(self) -> str:
        """Get the Authorization header value for this token."""
        return f"Bearer {self.access_token}"
