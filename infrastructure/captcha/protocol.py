"""Challenge store protocol. The challenge service depends on this, not on the concrete stores."""

from typing import Optional, Protocol

from schemas.models.challenge import ChallengeRecord


class ChallengeStore(Protocol):
    """Owns the live challenge records and the used-token set.

    consume() must be atomic: for a given token, at most one caller across
    all concurrent callers may ever see it return True.
    """

    backend: str

    async def add(self, record: ChallengeRecord) -> bool: ...

    async def get(self, token: str) -> Optional[ChallengeRecord]: ...

    async def is_used(self, token: str) -> bool: ...

    async def consume(self, token: str, at_ms: int) -> bool: ...

    async def purge(self, cutoff_ms: int) -> int: ...

    async def count(self) -> int: ...

    async def ping(self) -> bool: ...
