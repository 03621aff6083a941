"""Redis-backed challenge store for multi-process deployments.

Records are stored as JSON under ``challenge:{token}`` with a TTL equal to the
validity window, so Redis key expiry does the job of the periodic sweep.

Consumption relies on DEL being atomic: of all callers racing on the same
token, only the one whose DEL removes the key wins. The winner then writes a
``challenge_used:{token}`` marker so later replays are reported as such.

Redis errors propagate; the challenge service turns them into a failed
verification.
"""

from __future__ import annotations

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from schemas.models.challenge import ChallengeRecord
from shared.logging import get_logger

log = get_logger(__name__)


class RedisChallengeStore:
    backend = "redis"

    def __init__(self, redis_client: aioredis.Redis, ttl_seconds: int = 600) -> None:
        self._redis = redis_client
        self.ttl_seconds = ttl_seconds

    def _key(self, token: str) -> str:
        return f"challenge:{token}"

    def _used_key(self, token: str) -> str:
        return f"challenge_used:{token}"

    async def add(self, record: ChallengeRecord) -> bool:
        created = await self._redis.set(
            self._key(record.token),
            record.to_json(),
            ex=self.ttl_seconds,
            nx=True,
        )
        return bool(created)

    async def get(self, token: str) -> Optional[ChallengeRecord]:
        raw = await self._redis.get(self._key(token))
        if raw is None:
            return None
        return ChallengeRecord.from_json(raw)

    async def is_used(self, token: str) -> bool:
        return bool(await self._redis.exists(self._used_key(token)))

    async def consume(self, token: str, at_ms: int) -> bool:
        deleted = await self._redis.delete(self._key(token))
        if deleted != 1:
            return False
        await self._redis.set(self._used_key(token), at_ms, ex=self.ttl_seconds)
        return True

    async def purge(self, cutoff_ms: int) -> int:
        # Key TTLs already bound the record set
        return 0

    async def count(self) -> int:
        total = 0
        async for _ in self._redis.scan_iter(match="challenge:*"):
            total += 1
        return total

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError as e:
            log.warning(
                "challenge_store_ping_failed", error=str(e), error_type=type(e).__name__
            )
            return False
