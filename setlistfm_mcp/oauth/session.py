"""Spotify credential session shared by the tools and the callback listener.

SpotifySession is the single holder of the current token for the process.
Tools read the token through it and pass it to the API client per call; the
callback listener writes through it after a successful code exchange.
"""

import hmac
import logging
from typing import Any

import httpx

from ..config import SPOTIFY_AUTHORIZE_ENDPOINT, SPOTIFY_TOKEN_ENDPOINT, Settings
from .flow import TokenExchangeError, build_authorization_url, exchange_code_for_tokens
from .pkce import generate_pkce_pair, generate_state
from .store import CredentialStore
from .tokens import TokenSet

logger = logging.getLogger(__name__)


class AuthorizationError(Exception):
    """Error while completing a Spotify authorization."""

    pass


class MissingAuthorizationCodeError(AuthorizationError):
    """The callback carried no authorization code."""

    pass


class NoPendingAuthorizationError(AuthorizationError):
    """No code verifier is stored; the auth URL step must be run first."""

    pass


class SpotifySession:
    """Current Spotify credentials plus the pending authorization attempt.

    Usage:
        session = SpotifySession(settings, CredentialStore(settings.state_dir))

        url = session.begin_authorization()       # user opens url
        await session.complete_authorization(code) # from the callback
        token = session.current_token()
    """

    def __init__(self, settings: Settings, store: CredentialStore):
        self.settings = settings
        self.store = store
        self._token: TokenSet | None = None
        self._pending_state: str | None = None

    @property
    def pending_state(self) -> str | None:
        """State nonce of the most recent authorization URL, if any."""
        return self._pending_state

    def current_token(self) -> TokenSet | None:
        """Get the token for authenticated calls.

        Returns the in-memory token, falling back to the token file so a
        login completed by an earlier process is picked up.
        """
        if self._token is None:
            self._token = self.store.load_token()
            if self._token is not None:
                logger.debug("Loaded Spotify token from credential store")
        return self._token

    def is_authenticated(self) -> bool:
        """Check whether a token is present (validity is never checked)."""
        return self.current_token() is not None

    def begin_authorization(self) -> str:
        """Start a new authorization attempt.

        Persists a fresh verifier, overwriting any earlier attempt.

        Returns:
            The authorization URL for the user to open
        """
        pkce = generate_pkce_pair()
        state = generate_state()

        self.store.save_verifier(pkce.verifier)
        self._pending_state = state

        return build_authorization_url(
            SPOTIFY_AUTHORIZE_ENDPOINT,
            self.settings.spotify_client_id,
            self.settings.spotify_redirect_uri,
            self.settings.scopes,
            state,
            pkce.challenge,
        )

    def _check_state(self, state: str | None) -> None:
        """Compare the callback state with the last issued one.

        A mismatch is reported but not rejected.
        """
        if self._pending_state is None:
            logger.debug("No state issued by this process; skipping state comparison")
            return
        if not hmac.compare_digest(state or "", self._pending_state):
            logger.warning(
                "Callback state does not match the last issued authorization URL; "
                "continuing with the stored code verifier"
            )

    async def complete_authorization(
        self,
        code: str | None,
        state: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> TokenSet:
        """Redeem an authorization code and store the resulting tokens.

        Args:
            code: Authorization code from the callback
            state: State nonce from the callback
            http_client: Optional HTTP client for the token request

        Returns:
            The newly stored TokenSet

        Raises:
            MissingAuthorizationCodeError: If code is empty
            NoPendingAuthorizationError: If no verifier is stored
            TokenExchangeError: If the token endpoint rejects the exchange
        """
        if not code:
            raise MissingAuthorizationCodeError("Missing code parameter")

        verifier = self.store.load_verifier()
        if verifier is None:
            raise NoPendingAuthorizationError("No code verifier found. Start auth flow first.")

        self._check_state(state)

        response: dict[str, Any] = await exchange_code_for_tokens(
            SPOTIFY_TOKEN_ENDPOINT,
            self.settings.spotify_client_id,
            self.settings.spotify_client_secret,
            code,
            self.settings.spotify_redirect_uri,
            verifier,
            http_client=http_client,
        )

        try:
            token = TokenSet.from_token_response(response)
        except (KeyError, ValueError) as e:
            raise TokenExchangeError(f"Invalid token response: {e}") from e

        self.store.save_token(token)
        self._token = token
        self._pending_state = None
        self.store.clear_verifier()

        return token

    def logout(self) -> bool:
        """Forget the current token and remove it from disk.

        Returns:
            True if a stored token was deleted
        """
        self._token = None
        self._pending_state = None
        deleted = self.store.delete_token()
        self.store.clear_verifier()
        return deleted
