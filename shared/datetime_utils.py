"""
Millisecond clock and challenge-token timestamp helpers. Framework-agnostic.

Challenge tokens embed their issue time as integer milliseconds since the
epoch, so everything here works in that unit.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

Clock = Callable[[], int]

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND


def now_ms() -> int:
    """Return the current wall-clock time in integer milliseconds."""
    return time.time_ns() // 1_000_000


def parse_token_timestamp(token: str) -> Optional[int]:
    """Extract the issue timestamp embedded in a challenge token.

    The token must have at least three ``_``-delimited segments and the second
    one must be a base-10 integer.

    Returns:
        The timestamp in milliseconds, or ``None`` if the token is malformed.
    """
    parts = token.split("_")
    if len(parts) < 3:
        return None
    raw = parts[1]
    if not raw.isdigit():
        return None
    try:
        return int(raw)
    except ValueError:
        return None
