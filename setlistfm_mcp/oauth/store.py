"""File-backed storage for the PKCE verifier and the Spotify token pair.

Both records live as plain files in the state directory (the working
directory by default):
- .spotify-code-verifier.txt: raw verifier text, overwritten per attempt
- .spotify-token.json: {"access_token": ..., "refresh_token": ...}

Files are restricted to the owner (0600) where the platform allows it.
There is no locking: this is a single-user local tool.
"""

import json
import logging
import stat
from pathlib import Path

from .tokens import TokenSet

logger = logging.getLogger(__name__)

# File names
VERIFIER_FILE = ".spotify-code-verifier.txt"
TOKEN_FILE = ".spotify-token.json"


class CredentialStoreError(Exception):
    """Stored credential data could not be read."""

    pass


class CredentialStore:
    """Durable storage for the code verifier and token pair."""

    def __init__(self, state_dir: Path | None = None):
        """Initialize credential store.

        Args:
            state_dir: Directory holding the credential files (default: cwd)
        """
        self.state_dir = state_dir or Path.cwd()

    @property
    def verifier_path(self) -> Path:
        return self.state_dir / VERIFIER_FILE

    @property
    def token_path(self) -> Path:
        return self.state_dir / TOKEN_FILE

    def _write_private(self, filepath: Path, content: str) -> None:
        """Write a file and restrict it to the owner."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        filepath.write_text(content, encoding="utf-8")
        try:
            filepath.chmod(stat.S_IRUSR | stat.S_IWUSR)  # 0600
        except OSError as e:
            logger.warning(f"Could not set file permissions on {filepath}: {e}")

    # Verifier operations

    def save_verifier(self, verifier: str) -> None:
        """Persist the verifier for the pending authorization attempt."""
        self._write_private(self.verifier_path, verifier)
        logger.debug(f"Stored code verifier in {self.verifier_path}")

    def load_verifier(self) -> str | None:
        """Load the pending verifier.

        Returns:
            The verifier, or None if no attempt is pending
        """
        if not self.verifier_path.exists():
            return None

        verifier = self.verifier_path.read_text(encoding="utf-8").strip()
        return verifier or None

    def clear_verifier(self) -> bool:
        """Delete the pending verifier.

        Returns:
            True if a verifier was deleted, False if none existed
        """
        if not self.verifier_path.exists():
            return False
        self.verifier_path.unlink()
        return True

    # Token operations

    def save_token(self, token: TokenSet) -> None:
        """Persist the token pair."""
        self._write_private(self.token_path, json.dumps(token.to_dict(), separators=(",", ":")))
        logger.info(f"Spotify access token stored in {self.token_path}")

    def read_token(self) -> TokenSet | None:
        """Read the token pair, raising on a corrupted file.

        Returns:
            TokenSet if the file exists, None otherwise

        Raises:
            CredentialStoreError: If the file is not a valid token document
        """
        if not self.token_path.exists():
            return None

        try:
            data = json.loads(self.token_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise CredentialStoreError(f"Token file {self.token_path} is not valid JSON") from e

        if not isinstance(data, dict):
            raise CredentialStoreError(f"Token file {self.token_path} is not a JSON object")

        try:
            return TokenSet.from_dict(data)
        except (KeyError, ValueError) as e:
            raise CredentialStoreError(f"Token file {self.token_path} is invalid: {e}") from e

    def load_token(self) -> TokenSet | None:
        """Load the token pair, treating a corrupted file as absent."""
        try:
            return self.read_token()
        except CredentialStoreError as e:
            logger.warning(f"{e}. Re-run the Spotify authorization to replace it.")
            return None

    def has_token(self) -> bool:
        """Check whether a usable token is stored."""
        return self.load_token() is not None

    def delete_token(self) -> bool:
        """Delete the token file.

        Returns:
            True if the token was deleted, False if not found
        """
        if not self.token_path.exists():
            return False
        self.token_path.unlink()
        logger.debug(f"Deleted token file {self.token_path}")
        return True

    def clear_all(self) -> None:
        """Delete both the token and any pending verifier."""
        self.delete_token()
        self.clear_verifier()
        logger.info("Cleared stored Spotify credentials")
