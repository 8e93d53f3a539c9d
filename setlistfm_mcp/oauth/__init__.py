"""Spotify OAuth (authorization code + PKCE) support for setlistfm-mcp.

Main Components:
    SpotifySession: Holds the current token and runs the authorization steps
    CallbackReceiver: Local listener that receives the OAuth redirect
    CredentialStore: Verifier and token files
    TokenSet: Token data structure

Quick Start:
    from setlistfm_mcp.oauth import CallbackReceiver, CredentialStore, SpotifySession

    session = SpotifySession(settings, CredentialStore(settings.state_dir))
    print(session.begin_authorization())

    async with CallbackReceiver(session, settings.callback_host, settings.callback_port):
        ...  # after the redirect, session.current_token() is set
"""

from .callback import CallbackError, CallbackReceiver, CallbackResult, parse_callback_url
from .flow import TokenExchangeError, build_authorization_url, exchange_code_for_tokens
from .pkce import PKCEPair, generate_code_challenge, generate_code_verifier, generate_pkce_pair
from .session import (
    AuthorizationError,
    MissingAuthorizationCodeError,
    NoPendingAuthorizationError,
    SpotifySession,
)
from .store import CredentialStore, CredentialStoreError
from .tokens import TokenSet

__all__ = [
    # Session (main entry point)
    "SpotifySession",
    "AuthorizationError",
    "MissingAuthorizationCodeError",
    "NoPendingAuthorizationError",
    # Flow
    "build_authorization_url",
    "exchange_code_for_tokens",
    "TokenExchangeError",
    # Tokens
    "TokenSet",
    # Storage
    "CredentialStore",
    "CredentialStoreError",
    # PKCE
    "generate_pkce_pair",
    "generate_code_verifier",
    "generate_code_challenge",
    "PKCEPair",
    # Callback
    "CallbackReceiver",
    "CallbackResult",
    "CallbackError",
    "parse_callback_url",
]
