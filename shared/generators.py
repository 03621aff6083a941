"""
Challenge text and token generators. Pure functions with no side effects.

All generators use the cryptographically secure ``secrets`` module.
"""

from __future__ import annotations

import secrets
import string

CHALLENGE_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
TOKEN_PREFIX = "custom_"


def generate_challenge_text(length: int = 6) -> str:
    """Generate the text a user must type back.

    Each character is drawn independently and uniformly from the 62-symbol
    alphanumeric alphabet.

    Args:
        length: Number of characters (default 6).

    Returns:
        Random alphanumeric string of the requested length.
    """
    return "".join(secrets.choice(CHALLENGE_ALPHABET) for _ in range(length))


def generate_challenge_token(issued_at_ms: int, prefix: str = TOKEN_PREFIX) -> str:
    """Build a challenge token of the form ``<prefix><issued_at_ms>_<suffix>``.

    The suffix is 16 random bytes rendered as 32 lowercase hex characters, so
    it never contains the ``_`` separator. The timestamp is there for expiry
    parsing and debugging; it adds no entropy.

    Args:
        issued_at_ms: Issue time in milliseconds since the epoch.
        prefix: Token prefix (default ``"custom_"``).

    Returns:
        The token string.
    """
    return f"{prefix}{issued_at_ms}_{secrets.token_hex(16)}"
