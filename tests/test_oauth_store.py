"""Tests for the verifier and token file storage."""

import json
import stat
import sys
from pathlib import Path

import pytest

from setlistfm_mcp.oauth.store import (
    TOKEN_FILE,
    VERIFIER_FILE,
    CredentialStore,
    CredentialStoreError,
)
from setlistfm_mcp.oauth.tokens import TokenSet


class TestVerifierStorage:
    """Tests for the code verifier file."""

    def test_file_location(self, store: CredentialStore, tmp_path: Path):
        """Test that the verifier lives in the state directory."""
        assert store.verifier_path == tmp_path / VERIFIER_FILE

    def test_save_and_load(self, store: CredentialStore):
        """Test storing and retrieving a verifier as raw text."""
        store.save_verifier("abc123")

        assert store.verifier_path.read_text() == "abc123"
        assert store.load_verifier() == "abc123"

    def test_load_missing(self, store: CredentialStore):
        """Test that a missing file means no pending authorization."""
        assert store.load_verifier() is None

    def test_load_empty_file(self, store: CredentialStore):
        """Test that an empty file means no pending authorization."""
        store.verifier_path.write_text("")
        assert store.load_verifier() is None

    def test_save_overwrites(self, store: CredentialStore):
        """Test that a new attempt replaces the previous verifier."""
        store.save_verifier("first")
        store.save_verifier("second")
        assert store.load_verifier() == "second"

    def test_clear(self, store: CredentialStore):
        """Test deleting the verifier."""
        store.save_verifier("abc")
        assert store.clear_verifier()
        assert store.load_verifier() is None
        assert not store.clear_verifier()

    def test_creates_state_dir(self, tmp_path: Path):
        """Test that a missing state directory is created on write."""
        store = CredentialStore(tmp_path / "nested" / "state")
        store.save_verifier("abc")
        assert store.load_verifier() == "abc"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_owner_only_permissions(self, store: CredentialStore):
        """Test that the verifier file is 0600."""
        store.save_verifier("abc")
        mode = stat.S_IMODE(store.verifier_path.stat().st_mode)
        assert mode == 0o600


class TestTokenStorage:
    """Tests for the token file."""

    def test_file_location(self, store: CredentialStore, tmp_path: Path):
        """Test that the token file lives in the state directory."""
        assert store.token_path == tmp_path / TOKEN_FILE

    def test_file_contents(self, store: CredentialStore):
        """Test the exact JSON document written to disk."""
        store.save_token(TokenSet(access_token="A", refresh_token="B"))

        assert store.token_path.read_text() == '{"access_token":"A","refresh_token":"B"}'
        assert json.loads(store.token_path.read_text()) == {
            "access_token": "A",
            "refresh_token": "B",
        }

    def test_refresh_token_omitted_when_absent(self, store: CredentialStore):
        """Test that a missing refresh token is not written."""
        store.save_token(TokenSet(access_token="A"))
        assert json.loads(store.token_path.read_text()) == {"access_token": "A"}

    def test_save_and_load(self, store: CredentialStore):
        """Test storing and retrieving a token."""
        store.save_token(TokenSet(access_token="A", refresh_token="B"))

        token = store.load_token()
        assert token == TokenSet(access_token="A", refresh_token="B")
        assert store.has_token()

    def test_load_missing(self, store: CredentialStore):
        """Test that a missing token file yields None."""
        assert store.load_token() is None
        assert not store.has_token()

    def test_corrupted_file_raises_on_read(self, store: CredentialStore):
        """Test that read_token reports invalid JSON."""
        store.token_path.write_text("{ not json")
        with pytest.raises(CredentialStoreError, match="not valid JSON"):
            store.read_token()

    def test_corrupted_file_treated_as_absent(self, store: CredentialStore):
        """Test that load_token hides a corrupted file behind None."""
        store.token_path.write_text("{ not json")
        assert store.load_token() is None

    @pytest.mark.parametrize(
        "content",
        ['["access_token"]', '{"refresh_token": "B"}', '{"access_token": ""}', '{"access_token": 5}'],
    )
    def test_invalid_documents(self, store: CredentialStore, content: str):
        """Test that documents without a usable access token are rejected."""
        store.token_path.write_text(content)
        with pytest.raises(CredentialStoreError):
            store.read_token()

    def test_delete(self, store: CredentialStore):
        """Test deleting the token file."""
        store.save_token(TokenSet(access_token="A"))
        assert store.delete_token()
        assert not store.token_path.exists()
        assert not store.delete_token()

    def test_clear_all(self, store: CredentialStore):
        """Test clearing both files."""
        store.save_token(TokenSet(access_token="A"))
        store.save_verifier("v")

        store.clear_all()

        assert not store.token_path.exists()
        assert not store.verifier_path.exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_owner_only_permissions(self, store: CredentialStore):
        """Test that the token file is 0600."""
        store.save_token(TokenSet(access_token="A"))
        mode = stat.S_IMODE(store.token_path.stat().st_mode)
        assert mode == 0o600
