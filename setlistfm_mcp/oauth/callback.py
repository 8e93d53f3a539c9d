"""Local HTTP listener for the Spotify OAuth redirect.

The listener binds the host, port and path of the registered redirect URI and
stays up for the whole server process, so the user can authorize (or
re-authorize) at any time. For each GET to the callback path it:
- Rejects requests without a code (400)
- Rejects callbacks with no pending verifier (400)
- Exchanges the code for tokens and stores them (200), or reports 500
"""

import asyncio
import html
import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any
from urllib.parse import parse_qs, urlparse

import httpx

from .flow import TokenExchangeError
from .session import MissingAuthorizationCodeError, NoPendingAuthorizationError, SpotifySession

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Spotify authentication successful! You can close this window."

# Seconds a client has to send its request line and headers
DEFAULT_READ_TIMEOUT = 10.0

MAX_HEADER_LINES = 100


class CallbackError(Exception):
    """Error running the callback listener."""

    pass


@dataclass
class CallbackResult:
    """Query parameters of an OAuth redirect.

    Attributes:
        code: The authorization code from the callback
        state: The state parameter from the callback
        error: Error code if authorization was denied
        error_description: Human-readable error description
    """

    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None


def parse_callback_url(url: str) -> CallbackResult:
    """Parse OAuth callback URL parameters.

    Args:
        url: The callback URL or request target with query parameters

    Returns:
        CallbackResult with parsed parameters
    """
    parsed = urlparse(url)
    params = parse_qs(parsed.query)

    # Get first value of each parameter (or None if not present)
    def get_param(name: str) -> str | None:
        values = params.get(name, [])
        return values[0] if values else None

    return CallbackResult(
        code=get_param("code"),
        state=get_param("state"),
        error=get_param("error"),
        error_description=get_param("error_description"),
    )


class CallbackReceiver:
    """Long-lived HTTP listener that completes the Spotify login.

    Usage:
        async with CallbackReceiver(session, "127.0.0.1", 8080) as receiver:
            ...  # serve tools; callbacks are handled in the background
    """

    def __init__(
        self,
        session: SpotifySession,
        host: str,
        port: int,
        path: str = "/callback",
        http_client: httpx.AsyncClient | None = None,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
    ):
        """Initialize callback listener.

        Args:
            session: Session that performs the code exchange and stores tokens
            host: Interface to bind (from the redirect URI)
            port: Port to bind (from the redirect URI; 0 picks a free port)
            path: Callback path (from the redirect URI)
            http_client: Optional HTTP client for the token request
            read_timeout: Seconds to wait for a request line and headers
        """
        self.session = session
        self.host = host
        self.port = port
        self.path = path
        self.http_client = http_client
        self.read_timeout = read_timeout

        self._server: asyncio.Server | None = None
        self._writers: set[asyncio.StreamWriter] = set()

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}{self.path}"

    @property
    def is_running(self) -> bool:
        return self._server is not None

    async def start(self) -> None:
        """Bind the listener.

        Raises:
            CallbackError: If the port cannot be bound
        """
        try:
            self._server = await asyncio.start_server(
                self._handle_connection,
                self.host,
                self.port,
            )
        except OSError as e:
            raise CallbackError(
                f"Could not listen on {self.host}:{self.port} for Spotify callbacks: {e}"
            ) from e

        sockets = self._server.sockets
        if not sockets:
            raise CallbackError("Failed to start callback listener: no sockets created")

        self.port = sockets[0].getsockname()[1]
        logger.info(f"Listening for Spotify callbacks on {self.url}")

    async def stop(self) -> None:
        """Stop the listener and drop any open client connections."""
        if self._server:
            self._server.close()
            for writer in list(self._writers):
                writer.close()
            await self._server.wait_closed()
            self._server = None
            logger.debug("Callback listener stopped")

    async def handle_callback(self, target: str) -> tuple[HTTPStatus, str]:
        """Run the callback protocol for one request target.

        Args:
            target: Request target, e.g. "/callback?code=...&state=..."

        Returns:
            HTTP status and plain-text body to send back
        """
        result = parse_callback_url(target)

        if result.code is None and result.error is not None:
            logger.warning(f"Spotify authorization denied: {result.error}")
            message = f"Spotify authorization failed: {html.escape(result.error)}"
            if result.error_description:
                message += f" - {html.escape(result.error_description)}"
            return HTTPStatus.BAD_REQUEST, message

        try:
            await self.session.complete_authorization(
                result.code,
                result.state,
                http_client=self.http_client,
            )
        except (MissingAuthorizationCodeError, NoPendingAuthorizationError) as e:
            logger.warning(f"Rejected Spotify callback: {e}")
            return HTTPStatus.BAD_REQUEST, str(e)
        except TokenExchangeError as e:
            logger.warning(f"Spotify token exchange failed: {e}")
            return HTTPStatus.INTERNAL_SERVER_ERROR, f"Failed to get token: {e}"

        return HTTPStatus.OK, SUCCESS_MESSAGE

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        """Handle incoming HTTP connection."""
        self._writers.add(writer)
        try:
            try:
                request_line, headers_complete = await asyncio.wait_for(
                    self._read_request_head(reader), timeout=self.read_timeout
                )
            except asyncio.TimeoutError:
                logger.debug("Callback connection sent no request in time")
                await self._send_response(writer, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                return

            # Closed before sending anything (preconnect, or stop())
            if not request_line:
                return

            if not headers_complete:
                await self._send_response(
                    writer, HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE, "Too many headers"
                )
                return

            # Parse request line (e.g., "GET /callback?code=xxx HTTP/1.1")
            request_text = request_line.decode("utf-8", errors="replace")
            parts = request_text.strip().split(" ")
            if len(parts) < 2:
                await self._send_response(writer, HTTPStatus.BAD_REQUEST, "Invalid request")
                return

            method, target = parts[0], parts[1]

            # Browsers request this alongside the redirect
            if target == "/favicon.ico":
                await self._send_response(writer, HTTPStatus.NOT_FOUND, "")
                return

            if method != "GET":
                await self._send_response(
                    writer, HTTPStatus.METHOD_NOT_ALLOWED, "Method not allowed"
                )
                return

            if urlparse(target).path != self.path:
                await self._send_response(writer, HTTPStatus.NOT_FOUND, "Not found")
                return

            status, body = await self.handle_callback(target)
            await self._send_response(writer, status, body)

        except Exception as e:
            logger.exception(f"Error handling callback request: {e}")
            try:
                await self._send_response(
                    writer, HTTPStatus.INTERNAL_SERVER_ERROR, "Error exchanging code for token"
                )
            except (ConnectionError, RuntimeError):
                pass

        finally:
            self._writers.discard(writer)
            try:
                writer.close()
                await writer.wait_closed()
            except (ConnectionError, RuntimeError):
                pass

    async def _read_request_head(self, reader: asyncio.StreamReader) -> tuple[bytes, bool]:
        """Read the request line and skip past the headers.

        Returns:
            The raw request line, and False if the header limit was exceeded
        """
        request_line = await reader.readline()
        if not request_line:
            return request_line, True

        # Headers are consumed but not used
        for _ in range(MAX_HEADER_LINES + 1):
            header_line = await reader.readline()
            if header_line in (b"\r\n", b"\n", b""):
                return request_line, True
        return request_line, False

    async def _send_response(
        self,
        writer: asyncio.StreamWriter,
        status: HTTPStatus,
        body: str,
    ) -> None:
        """Send a plain text HTTP response."""
        payload = body.encode("utf-8")
        headers = (
            f"HTTP/1.1 {status.value} {status.phrase}\r\n"
            f"Content-Type: text/plain; charset=utf-8\r\n"
            f"Content-Length: {len(payload)}\r\n"
            f"X-Content-Type-Options: nosniff\r\n"
            f"Connection: close\r\n"
            f"\r\n"
        )
        writer.write(headers.encode("utf-8") + payload)
        await writer.drain()

    async def __aenter__(self) -> "CallbackReceiver":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.stop()
