"""Process-local challenge store.

Records and used-token entries live in plain dicts guarded by one
threading.Lock, so the store is safe both for asyncio tasks on the event loop
and for handlers FastAPI runs in its threadpool. Critical sections never
await.

This store cannot enforce single use across worker processes; deployments
with more than one worker must use RedisChallengeStore.
"""

from __future__ import annotations

import threading
from typing import Optional

from schemas.models.challenge import ChallengeRecord


class InMemoryChallengeStore:
    backend = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, ChallengeRecord] = {}
        self._used: dict[str, int] = {}  # token -> consumed-at ms

    async def add(self, record: ChallengeRecord) -> bool:
        with self._lock:
            if record.token in self._records or record.token in self._used:
                return False
            self._records[record.token] = record
            return True

    async def get(self, token: str) -> Optional[ChallengeRecord]:
        with self._lock:
            record = self._records.get(token)
            if record is None or record.used:
                return None
            return ChallengeRecord(
                token=record.token,
                answer=record.answer,
                issued_at=record.issued_at,
                used=record.used,
            )

    async def is_used(self, token: str) -> bool:
        with self._lock:
            return token in self._used

    async def consume(self, token: str, at_ms: int) -> bool:
        with self._lock:
            record = self._records.get(token)
            if record is None or record.used or token in self._used:
                return False
            record.used = True
            del self._records[token]
            self._used[token] = at_ms
            return True

    async def purge(self, cutoff_ms: int) -> int:
        """Drop records issued, and used entries consumed, before *cutoff_ms*."""
        with self._lock:
            stale_records = [
                token
                for token, record in self._records.items()
                if record.issued_at < cutoff_ms
            ]
            stale_used = [
                token for token, used_at in self._used.items() if used_at < cutoff_ms
            ]
            for token in stale_records:
                del self._records[token]
            for token in stale_used:
                del self._used[token]
            return len(stale_records) + len(stale_used)

    async def count(self) -> int:
        with self._lock:
            return len(self._records)

    async def used_count(self) -> int:
        with self._lock:
            return len(self._used)

    async def ping(self) -> bool:
        return True
