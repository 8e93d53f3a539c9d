"""setlistfm-mcp - MCP tools for setlist.fm and Spotify, with a local Spotify PKCE login."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("setlistfm-mcp")
except PackageNotFoundError:
    __version__ = "0.1.0"  # Fallback for development

__all__ = [
    "__version__",
    "Settings",
    "ConfigError",
    "load_settings",
    "SetlistFmClient",
    "SpotifyClient",
    "ApiResult",
    "ApiErrorKind",
    "create_server",
]

# Lazy imports keep `import setlistfm_mcp` cheap for the CLI
def __getattr__(name: str) -> object:
    """Lazy import module components."""
    if name in ("Settings", "ConfigError", "load_settings"):
        from .config import ConfigError, Settings, load_settings
        return {"Settings": Settings, "ConfigError": ConfigError, "load_settings": load_settings}[name]
    elif name in ("SetlistFmClient", "SpotifyClient", "ApiResult", "ApiErrorKind"):
        from . import api
        return getattr(api, name)
    elif name == "create_server":
        from .server import create_server
        return create_server
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
