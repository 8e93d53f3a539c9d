"""Shared fixtures and utilities for setlistfm-mcp tests."""

import json
import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import httpx
import pytest

from setlistfm_mcp.config import REQUIRED_ENV_VARS, STATE_DIR_ENV_VAR, Settings
from setlistfm_mcp.oauth.session import SpotifySession
from setlistfm_mcp.oauth.store import CredentialStore


Handler = Callable[[httpx.Request], httpx.Response]


# ============================================================================
# Settings and credential fixtures
# ============================================================================


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Create settings whose credential files live in a temp directory."""
    return Settings(
        spotify_client_id="test-client-id",
        spotify_client_secret="test-client-secret",
        spotify_redirect_uri="http://127.0.0.1:8888/callback",
        setlistfm_api_key="test-api-key",
        state_dir=tmp_path,
    )


@pytest.fixture
def store(tmp_path: Path) -> CredentialStore:
    """Create a credential store in a temp directory."""
    return CredentialStore(tmp_path)


@pytest.fixture
def session(settings: Settings, store: CredentialStore) -> SpotifySession:
    """Create a Spotify session with no token."""
    return SpotifySession(settings, store)


@pytest.fixture
def authed_session(session: SpotifySession, store: CredentialStore) -> SpotifySession:
    """Create a Spotify session with a stored token."""
    store.token_path.write_text(json.dumps({"access_token": "test-access-token"}))
    return session


# ============================================================================
# HTTP mocking
# ============================================================================


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, handler: Handler):
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def mock_http() -> Callable[[Handler], tuple[httpx.AsyncClient, RecordingTransport]]:
    """Factory for an AsyncClient backed by a request handler."""

    def factory(handler: Handler) -> tuple[httpx.AsyncClient, RecordingTransport]:
        transport = RecordingTransport(handler)
        return httpx.AsyncClient(transport=transport), transport

    return factory


def json_response(data: Any, status_code: int = 200) -> Handler:
    """Handler that always answers with the given JSON."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=data)

    return handler


@pytest.fixture
def json_handler() -> Callable[..., Handler]:
    """Expose json_response to tests as a fixture."""
    return json_response


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Temporarily clear setlistfm-mcp environment variables."""
    old_env = os.environ.copy()
    for key in [*REQUIRED_ENV_VARS, STATE_DIR_ENV_VAR]:
        os.environ.pop(key, None)
    yield
    os.environ.clear()
    os.environ.update(old_env)


@pytest.fixture
def full_env(clean_env: None, tmp_path: Path) -> Generator[None, None, None]:
    """Set every required environment variable."""
    os.environ["SPOTIFY_CLIENT_ID"] = "env-client-id"
    os.environ["SPOTIFY_CLIENT_SECRET"] = "env-client-secret"
    os.environ["SPOTIFY_REDIRECT_URI"] = "http://localhost:8080/callback"
    os.environ["SETLISTFM_API_KEY"] = "env-api-key"
    os.environ[STATE_DIR_ENV_VAR] = str(tmp_path)
    yield
