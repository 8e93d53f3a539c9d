"""PKCE (Proof Key for Code Exchange) helpers for the Spotify login.

Spotify binds each authorization code to the S256 challenge sent in the
authorize request, so only the holder of the matching verifier can redeem it.
"""

import base64
import hashlib
import secrets
import string
from dataclasses import dataclass


DEFAULT_VERIFIER_LENGTH = 64
DEFAULT_STATE_LENGTH = 16

# Alphanumeric subset of the unreserved URI characters (62 symbols)
VERIFIER_CHARS = string.ascii_uppercase + string.ascii_lowercase + string.digits


@dataclass
class PKCEPair:
    """PKCE code verifier and challenge pair.

    The verifier is persisted until the callback redeems the code.
    The challenge is embedded in the authorization URL and never stored.
    """

    verifier: str
    challenge: str
    method: str = "S256"


def _random_alphanumeric(length: int) -> str:
    return "".join(secrets.choice(VERIFIER_CHARS) for _ in range(length))


def generate_code_verifier(length: int = DEFAULT_VERIFIER_LENGTH) -> str:
    """Generate a random alphanumeric code verifier.

    Args:
        length: Number of characters (default 64)

    Returns:
        Verifier drawn uniformly, with replacement, from VERIFIER_CHARS

    Raises:
        ValueError: If length is not positive
    """
    if length < 1:
        raise ValueError(f"Code verifier length must be positive, got {length}")

    return _random_alphanumeric(length)


def generate_code_challenge(verifier: str) -> str:
    """Generate the S256 code challenge for a verifier.

    code_challenge = BASE64URL(SHA256(UTF-8 bytes of verifier)), unpadded.

    Args:
        verifier: The code verifier string

    Returns:
        Base64URL-encoded SHA256 hash of the verifier
    """
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()

    # urlsafe alphabet maps '+' to '-' and '/' to '_'
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def generate_pkce_pair(length: int = DEFAULT_VERIFIER_LENGTH) -> PKCEPair:
    """Generate a verifier and its matching S256 challenge."""
    verifier = generate_code_verifier(length)
    return PKCEPair(verifier=verifier, challenge=generate_code_challenge(verifier))


def generate_state(length: int = DEFAULT_STATE_LENGTH) -> str:
    """Generate a random state nonce for the authorization request."""
    if length < 1:
        raise ValueError(f"State length must be positive, got {length}")

    return _random_alphanumeric(length)
