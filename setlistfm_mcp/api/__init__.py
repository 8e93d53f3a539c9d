"""HTTP clients for the setlist.fm and Spotify APIs."""

from .base import BaseApiClient
from .result import ApiErrorKind, ApiResult
from .setlistfm import SetlistFmClient
from .spotify import SpotifyClient

__all__ = [
    "ApiErrorKind",
    "ApiResult",
    "BaseApiClient",
    "SetlistFmClient",
    "SpotifyClient",
]
