"""Tool operations: call the API clients and turn their JSON into short text.

Each operation returns the text the agent sees. Upstream failures never
raise; they arrive as an ApiResult and are phrased here.
"""

import logging
from typing import Any

from .api import ApiErrorKind, ApiResult, SetlistFmClient, SpotifyClient
from .oauth.session import SpotifySession

logger = logging.getLogger(__name__)

DEFAULT_SETLIST_LIMIT = 5
MAX_SETLIST_LIMIT = 10
DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 50

SETLIST_SEPARATOR = "\n---\n"

NOT_AUTHENTICATED_MESSAGE = (
    "Spotify access token not set. Use spotify-get-auth-url to authorize first."
)
TOKEN_REJECTED_MESSAGE = (
    "Spotify rejected the stored access token. Use spotify-get-auth-url to authorize again."
)


def as_list(value: Any) -> list[Any]:
    """Normalize a setlist.fm field that may be a single object or an array."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _upstream_failure(service: str, result: ApiResult) -> str:
    """Describe a failure that is not simply 'nothing found'."""
    if result.error == ApiErrorKind.TRANSPORT_ERROR:
        return f"Could not reach {service}: {result.message}"
    if result.error == ApiErrorKind.INVALID_RESPONSE:
        return f"{service} returned an invalid response."
    if result.status_code is not None:
        return f"{service} request failed (HTTP {result.status_code})."
    return f"{service} request failed: {result.message}"


def _spotify_failure(result: ApiResult) -> str | None:
    """Describe a failed Spotify call, or None when it simply found nothing."""
    if result.ok or result.error == ApiErrorKind.NOT_FOUND:
        return None
    if result.error == ApiErrorKind.UNAUTHENTICATED:
        return NOT_AUTHENTICATED_MESSAGE if result.status_code is None else TOKEN_REJECTED_MESSAGE
    return _upstream_failure("Spotify", result)


# setlist.fm


def format_artist(artist: dict[str, Any]) -> str:
    return f"{artist.get('name', '')} (mbid: {artist.get('mbid') or 'N/A'})"


def format_setlist(setlist: dict[str, Any]) -> str:
    """Format one setlist as Date / Venue / Songs lines."""
    venue = setlist.get("venue") or {}
    city = venue.get("city") or {}
    country = city.get("country") or {}

    sets = as_list((setlist.get("sets") or {}).get("set"))
    songs = [
        song.get("name", "")
        for set_ in sets
        if isinstance(set_, dict)
        for song in as_list(set_.get("song"))
        if isinstance(song, dict)
    ]

    return (
        f"Date: {setlist.get('eventDate') or ''}\n"
        f"Venue: {venue.get('name') or ''}, {city.get('name') or ''}, {country.get('name') or ''}\n"
        f"Songs: {', '.join(songs)}"
    )


async def search_artist(client: SetlistFmClient, name: str) -> str:
    """search-artist: list artists matching a name with their mbids."""
    result = await client.search_artists(name)
    not_found = f"No artists found for '{name}'."

    if not result.ok:
        if result.error == ApiErrorKind.NOT_FOUND:
            return not_found
        return _upstream_failure("setlist.fm", result)

    artists = as_list(result.get("artist"))
    if not artists:
        return not_found

    lines = "\n".join(format_artist(a) for a in artists if isinstance(a, dict))
    return f"Artists found:\n{lines}"


async def get_recent_setlists(client: SetlistFmClient, mbid: str, limit: int | None = None) -> str:
    """get-recent-setlists: the most recent setlists of an artist."""
    result = await client.artist_setlists(mbid)
    not_found = f"No setlists found for artist mbid '{mbid}'."

    if not result.ok:
        if result.error == ApiErrorKind.NOT_FOUND:
            return not_found
        return _upstream_failure("setlist.fm", result)

    setlists = [s for s in as_list(result.get("setlist")) if isinstance(s, dict)]
    if not setlists:
        return not_found

    recent = setlists[: limit or DEFAULT_SETLIST_LIMIT]
    formatted = SETLIST_SEPARATOR.join(format_setlist(s) for s in recent)
    return f"Recent setlists for artist mbid {mbid}:\n{formatted}"


# Spotify


async def create_playlist(
    client: SpotifyClient,
    session: SpotifySession,
    name: str,
    description: str | None = None,
    public: bool | None = None,
) -> str:
    """spotify-create-playlist: create a playlist owned by the signed-in user."""
    token = session.current_token()
    if token is None:
        return NOT_AUTHENTICATED_MESSAGE

    user = await client.current_user(token)
    user_id = user.get("id") if user.ok else None
    if not user_id:
        return _spotify_failure(user) or "Failed to get Spotify user profile."

    playlist = await client.create_playlist(
        token,
        user_id,
        name,
        description=description or "",
        public=True if public is None else public,
    )
    playlist_id = playlist.get("id") if playlist.ok else None
    if not playlist_id:
        return _spotify_failure(playlist) or "Failed to create playlist."

    return f"Playlist created: {playlist.get('name', name)} ({playlist_id})"


async def add_songs(
    client: SpotifyClient,
    session: SpotifySession,
    playlist_id: str,
    uris: list[str],
) -> str:
    """spotify-add-songs: append track URIs to a playlist."""
    token = session.current_token()
    if token is None:
        return NOT_AUTHENTICATED_MESSAGE

    result = await client.add_tracks(token, playlist_id, uris)
    if not result.ok or not result.get("snapshot_id"):
        return _spotify_failure(result) or "Failed to add songs to playlist."

    return f"Added {len(uris)} songs to playlist {playlist_id}"


def format_track(track: dict[str, Any]) -> str:
    artists = ", ".join(a.get("name", "") for a in track.get("artists") or [] if isinstance(a, dict))
    album = (track.get("album") or {}).get("name", "")
    return (
        f"Track: {track.get('name', '')}\n"
        f"Artist(s): {artists}\n"
        f"Album: {album}\n"
        f"URI: {track.get('uri', '')}\n"
        f"ID: {track.get('id', '')}\n"
        f"---"
    )


def format_playlist(playlist: dict[str, Any]) -> str:
    owner = playlist.get("owner") or {}
    total = (playlist.get("tracks") or {}).get("total")
    return (
        f"Playlist: {playlist['name']}\n"
        f"Owner: {owner.get('display_name') or owner.get('id') or 'Unknown'}\n"
        f"Tracks: {total if total is not None else 'Unknown'}\n"
        f"URI: {playlist.get('uri') or 'Unknown'}\n"
        f"ID: {playlist.get('id') or 'Unknown'}\n"
        f"---"
    )


async def search_tracks(
    client: SpotifyClient,
    session: SpotifySession,
    query: str,
    limit: int | None = None,
) -> str:
    """spotify-search-track: search the catalog for tracks."""
    token = session.current_token()
    if token is None:
        return NOT_AUTHENTICATED_MESSAGE

    result = await client.search(token, query, "track", limit or DEFAULT_SEARCH_LIMIT)
    if not result.ok:
        return _spotify_failure(result) or "No tracks found."

    items = (result.get("tracks") or {}).get("items")
    tracks = [t for t in items or [] if isinstance(t, dict)]
    if not tracks:
        return "No tracks found."

    return "\n".join(format_track(t) for t in tracks)


async def search_playlists(
    client: SpotifyClient,
    session: SpotifySession,
    query: str,
    limit: int | None = None,
) -> str:
    """spotify-search-playlist: search the catalog for playlists."""
    token = session.current_token()
    if token is None:
        return NOT_AUTHENTICATED_MESSAGE

    result = await client.search(token, query, "playlist", limit or DEFAULT_SEARCH_LIMIT)
    if not result.ok:
        return _spotify_failure(result) or "No playlists found."

    items = (result.get("playlists") or {}).get("items")
    if items is None:
        return "No playlists found."

    # Spotify returns null entries for playlists it cannot show
    valid = [
        pl
        for pl in items
        if isinstance(pl, dict) and pl.get("name") and pl.get("owner") and pl.get("tracks")
    ]
    if not valid:
        return "No valid playlists found."

    return "\n".join(format_playlist(pl) for pl in valid)


def get_auth_url(session: SpotifySession) -> str:
    """spotify-get-auth-url: start a login and return the URL to open."""
    url = session.begin_authorization()
    logger.info("Issued a new Spotify authorization URL")
    return f"Open this URL to authorize Spotify: {url}"
