"""MCP server wiring: tool registration and the stdio run loop.

One process serves the MCP tools over stdio and, alongside, runs the
callback listener that completes the Spotify login.
"""

import logging
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from . import tools
from .api import SetlistFmClient, SpotifyClient
from .config import Settings
from .oauth.callback import CallbackError, CallbackReceiver
from .oauth.session import SpotifySession
from .oauth.store import CredentialStore

logger = logging.getLogger(__name__)

SERVER_NAME = "setlistfm"


class SetlistMcpServer:
    """Owns the MCP instance, both API clients, the session and the listener."""

    def __init__(
        self,
        settings: Settings,
        setlistfm: SetlistFmClient | None = None,
        spotify: SpotifyClient | None = None,
        store: CredentialStore | None = None,
    ):
        self.settings = settings
        self.store = store or CredentialStore(settings.state_dir)
        self.session = SpotifySession(settings, self.store)
        self.setlistfm = setlistfm or SetlistFmClient(settings.setlistfm_api_key)
        self.spotify = spotify or SpotifyClient()
        self.receiver = CallbackReceiver(
            self.session,
            settings.callback_host,
            settings.callback_port,
            settings.callback_path,
        )

        self.mcp = FastMCP(SERVER_NAME)
        self._register_tools()

    def _register_tools(self) -> None:
        mcp = self.mcp

        @mcp.tool(name="search-artist", description="Search for artists by name")
        async def search_artist(
            name: Annotated[str, Field(description="Artist name to search for")],
        ) -> str:
            return await tools.search_artist(self.setlistfm, name)

        @mcp.tool(name="get-recent-setlists", description="Get recent setlists for an artist")
        async def get_recent_setlists(
            mbid: Annotated[str, Field(description="MusicBrainz ID (mbid) of the artist")],
            limit: Annotated[
                int | None,
                Field(
                    ge=1,
                    le=tools.MAX_SETLIST_LIMIT,
                    description="Max number of setlists to return (default 5)",
                ),
            ] = None,
        ) -> str:
            return await tools.get_recent_setlists(self.setlistfm, mbid, limit)

        @mcp.tool(
            name="spotify-create-playlist",
            description="Create a new Spotify playlist for the authenticated user",
        )
        async def spotify_create_playlist(
            name: Annotated[str, Field(description="Playlist name")],
            description: Annotated[str | None, Field(description="Playlist description")] = None,
            public: Annotated[bool | None, Field(description="Is playlist public?")] = None,
        ) -> str:
            return await tools.create_playlist(
                self.spotify, self.session, name, description, public
            )

        @mcp.tool(name="spotify-add-songs", description="Add songs to a Spotify playlist")
        async def spotify_add_songs(
            playlistId: Annotated[str, Field(description="Spotify playlist ID")],
            uris: Annotated[
                list[str],
                Field(description="Array of Spotify track URIs (e.g. spotify:track:xxxx)"),
            ],
        ) -> str:
            return await tools.add_songs(self.spotify, self.session, playlistId, uris)

        @mcp.tool(
            name="spotify-search-track",
            description="Search for songs on Spotify by query string",
        )
        async def spotify_search_track(
            query: Annotated[str, Field(description="Search query for track name, artist, etc.")],
            limit: Annotated[
                int | None,
                Field(
                    ge=1,
                    le=tools.MAX_SEARCH_LIMIT,
                    description="Max number of tracks to return (default 10)",
                ),
            ] = None,
        ) -> str:
            return await tools.search_tracks(self.spotify, self.session, query, limit)

        @mcp.tool(
            name="spotify-search-playlist",
            description="Search for playlists on Spotify by query string",
        )
        async def spotify_search_playlist(
            query: Annotated[str, Field(description="Search query for playlist name, etc.")],
            limit: Annotated[
                int | None,
                Field(
                    ge=1,
                    le=tools.MAX_SEARCH_LIMIT,
                    description="Max number of playlists to return (default 10)",
                ),
            ] = None,
        ) -> str:
            return await tools.search_playlists(self.spotify, self.session, query, limit)

        @mcp.tool(
            name="spotify-get-auth-url",
            description="Get Spotify authorization URL for OAuth",
        )
        async def spotify_get_auth_url() -> str:
            return tools.get_auth_url(self.session)

    async def start_receiver(self) -> bool:
        """Start the callback listener.

        A port that cannot be bound is logged, not fatal: the setlist.fm
        tools and an already stored token keep working.

        Returns:
            True if the listener is running
        """
        try:
            await self.receiver.start()
        except CallbackError as e:
            logger.error(f"{e}. Spotify authorization callbacks will not be received.")
            return False
        return True

    async def aclose(self) -> None:
        """Stop the listener and close the HTTP clients."""
        await self.receiver.stop()
        await self.setlistfm.aclose()
        await self.spotify.aclose()

    async def run(self) -> None:
        """Serve MCP over stdio until the client disconnects."""
        await self.start_receiver()
        try:
            logger.info("Setlist.fm MCP Server running on stdio")
            await self.mcp.run_stdio_async()
        finally:
            await self.aclose()


def create_server(settings: Settings) -> SetlistMcpServer:
    """Build a server from loaded settings."""
    return SetlistMcpServer(settings)
