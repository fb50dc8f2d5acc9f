"""PKCE (Proof Key for Code Exchange) helpers, RFC 7636 S256 method only."""

import base64
import hashlib
import secrets
from typing import NamedTuple

CODE_CHALLENGE_METHOD = "S256"

# RFC 7636 section 4.1
MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128


class PKCEPair(NamedTuple):
    code_verifier: str
    code_challenge: str


def generate_code_verifier(num_bytes: int = 64) -> str:
    """Generate a high-entropy code verifier.

    Args:
        num_bytes: Random bytes to draw; 64 bytes encode to 86 characters

    Returns:
        URL-safe verifier string
    """
    verifier = secrets.token_urlsafe(num_bytes)
    if not MIN_VERIFIER_LENGTH <= len(verifier) <= MAX_VERIFIER_LENGTH:
        raise ValueError(
            f"code verifier must be {MIN_VERIFIER_LENGTH}-{MAX_VERIFIER_LENGTH} characters, "
            f"got {len(verifier)}"
        )
    return verifier


def code_challenge_s256(code_verifier: str) -> str:
    """base64url(SHA-256(verifier)) without padding."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def generate_pkce_pair() -> PKCEPair:
    """Generate a fresh verifier/challenge pair for one authorization attempt."""
    verifier = generate_code_verifier()
    return PKCEPair(code_verifier=verifier, code_challenge=code_challenge_s256(verifier))
