"""Settings discovery and loading for setlistfm-mcp."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv


# Spotify endpoints
SPOTIFY_AUTHORIZE_ENDPOINT = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_ENDPOINT = "https://accounts.spotify.com/api/token"
SPOTIFY_API_BASE = "https://api.spotify.com/v1"

# setlist.fm endpoint
SETLISTFM_API_BASE = "https://api.setlist.fm/rest/1.0"

USER_AGENT = "setlistfm-mcp/1.0"

# Scopes needed to create and edit the user's playlists
SPOTIFY_SCOPES = [
    "playlist-modify-public",
    "playlist-modify-private",
    "user-read-private",
    "user-read-email",
]

# Required environment variables, in the order they are reported
REQUIRED_ENV_VARS = [
    "SPOTIFY_CLIENT_ID",
    "SPOTIFY_CLIENT_SECRET",
    "SPOTIFY_REDIRECT_URI",
    "SETLISTFM_API_KEY",
]

STATE_DIR_ENV_VAR = "SETLISTFM_MCP_STATE_DIR"

# Env file search paths in priority order
ENV_SEARCH_PATHS = [
    Path(".env"),
]

DEFAULT_CALLBACK_PATH = "/callback"


class ConfigError(Exception):
    """Required configuration is missing or invalid."""

    pass


@dataclass
class Settings:
    """Complete setlistfm-mcp configuration."""

    spotify_client_id: str
    spotify_client_secret: str
    spotify_redirect_uri: str
    setlistfm_api_key: str
    state_dir: Path = field(default_factory=Path.cwd)
    scopes: list[str] = field(default_factory=lambda: list(SPOTIFY_SCOPES))
    env_path: Path | None = None

    @property
    def callback_host(self) -> str:
        """Host the callback listener binds to, taken from the redirect URI."""
        return urlparse(self.spotify_redirect_uri).hostname or "127.0.0.1"

    @property
    def callback_port(self) -> int:
        """Port the callback listener binds to, taken from the redirect URI."""
        parsed = urlparse(self.spotify_redirect_uri)
        if parsed.port is not None:
            return parsed.port
        return 443 if parsed.scheme == "https" else 80

    @property
    def callback_path(self) -> str:
        """Path the callback listener serves, taken from the redirect URI."""
        return urlparse(self.spotify_redirect_uri).path or DEFAULT_CALLBACK_PATH


def find_env_file(explicit_path: Path | None = None) -> Path | None:
    """Find the .env file to load."""
    if explicit_path:
        if explicit_path.exists():
            return explicit_path
        return None

    for path in ENV_SEARCH_PATHS:
        if path.exists():
            return path
    return None


def _validate_redirect_uri(redirect_uri: str) -> None:
    parsed = urlparse(redirect_uri)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ConfigError(
            f"SPOTIFY_REDIRECT_URI must be an absolute http(s) URL, got {redirect_uri!r}"
        )


def load_settings(env_path: Path | None = None) -> Settings:
    """Load settings from a .env file and the process environment.

    Args:
        env_path: Explicit path to .env file (optional)

    Returns:
        Settings with every required value present

    Raises:
        ConfigError: If any required environment variable is missing or empty
    """
    # Load .env first; real environment variables take precedence
    env_file = find_env_file(env_path)
    if env_file:
        load_dotenv(env_file)

    values = {name: os.environ.get(name, "").strip() for name in REQUIRED_ENV_VARS}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigError(
            f"Missing required environment variable{'s' if len(missing) != 1 else ''}: "
            f"{', '.join(missing)}"
        )

    _validate_redirect_uri(values["SPOTIFY_REDIRECT_URI"])

    state_dir_value = os.environ.get(STATE_DIR_ENV_VAR, "").strip()
    state_dir = Path(state_dir_value).expanduser() if state_dir_value else Path.cwd()

    return Settings(
        spotify_client_id=values["SPOTIFY_CLIENT_ID"],
        spotify_client_secret=values["SPOTIFY_CLIENT_SECRET"],
        spotify_redirect_uri=values["SPOTIFY_REDIRECT_URI"],
        setlistfm_api_key=values["SETLISTFM_API_KEY"],
        state_dir=state_dir,
        env_path=env_file,
    )
