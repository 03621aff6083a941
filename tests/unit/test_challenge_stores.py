"""Unit tests for the challenge stores (in-memory and Redis)."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from infrastructure.captcha.memory_store import InMemoryChallengeStore
from infrastructure.captcha.redis_store import RedisChallengeStore
from schemas.models.challenge import ChallengeRecord


TOKEN = "custom_1700000000000_" + "0" * 32


# ── Helpers ───────────────────────────────────────────────────────────────────


def _record(**overrides) -> ChallengeRecord:
    base = dict(token=TOKEN, answer="aB3dE9", issued_at=1_700_000_000_000)
    base.update(overrides)
    return ChallengeRecord(**base)


def _fake_redis(get_returns=None):
    """Return a mock async Redis client."""
    r = AsyncMock()
    r.get.return_value = get_returns
    r.set.return_value = True
    r.delete.return_value = 1
    r.exists.return_value = 0
    r.ping.return_value = True
    return r


async def _aiter(items):
    for item in items:
        yield item


# ── ChallengeRecord ───────────────────────────────────────────────────────────


class TestChallengeRecord:
    def test_json_round_trip(self):
        record = _record()
        assert ChallengeRecord.from_json(record.to_json()) == record

    def test_used_defaults_false(self):
        assert _record().used is False

    def test_age(self):
        assert _record().age_ms(1_700_000_005_000) == 5_000


# ── InMemoryChallengeStore ────────────────────────────────────────────────────


class TestInMemoryChallengeStore:
    async def test_add_then_get(self):
        store = InMemoryChallengeStore()
        assert await store.add(_record()) is True
        got = await store.get(TOKEN)
        assert got == _record()

    async def test_add_rejects_duplicate_token(self):
        store = InMemoryChallengeStore()
        await store.add(_record())
        assert await store.add(_record(answer="zzzzzz")) is False
        assert (await store.get(TOKEN)).answer == "aB3dE9"

    async def test_add_rejects_consumed_token(self):
        store = InMemoryChallengeStore()
        await store.add(_record())
        await store.consume(TOKEN, 1_700_000_001_000)
        assert await store.add(_record()) is False

    async def test_get_returns_copy(self):
        store = InMemoryChallengeStore()
        await store.add(_record())
        got = await store.get(TOKEN)
        got.used = True
        assert (await store.get(TOKEN)).used is False

    async def test_get_missing(self):
        assert await InMemoryChallengeStore().get(TOKEN) is None

    async def test_consume_once(self):
        store = InMemoryChallengeStore()
        await store.add(_record())
        assert await store.consume(TOKEN, 1_700_000_001_000) is True
        assert await store.consume(TOKEN, 1_700_000_002_000) is False
        assert await store.is_used(TOKEN) is True
        assert await store.get(TOKEN) is None
        assert await store.count() == 0

    async def test_consume_unknown(self):
        store = InMemoryChallengeStore()
        assert await store.consume(TOKEN, 1) is False
        assert await store.is_used(TOKEN) is False

    async def test_purge_uses_issue_and_consume_times(self):
        store = InMemoryChallengeStore()
        await store.add(_record(token="custom_100_" + "a" * 32, issued_at=100))
        await store.add(_record(token="custom_500_" + "b" * 32, issued_at=500))
        await store.add(_record(token="custom_200_" + "c" * 32, issued_at=200))
        await store.consume("custom_200_" + "c" * 32, at_ms=900)

        removed = await store.purge(cutoff_ms=400)

        assert removed == 1
        assert await store.count() == 1
        assert await store.used_count() == 1
        assert await store.purge(cutoff_ms=1000) == 2
        assert await store.used_count() == 0

    async def test_ping(self):
        assert await InMemoryChallengeStore().ping() is True

    def test_backend_name(self):
        assert InMemoryChallengeStore.backend == "memory"


# ── RedisChallengeStore ───────────────────────────────────────────────────────


class TestRedisChallengeStore:
    async def test_add_uses_set_nx_with_ttl(self):
        r = _fake_redis()
        store = RedisChallengeStore(r, ttl_seconds=600)
        assert await store.add(_record()) is True
        r.set.assert_awaited_once()
        args, kwargs = r.set.call_args
        assert args[0] == f"challenge:{TOKEN}"
        assert json.loads(args[1])["answer"] == "aB3dE9"
        assert kwargs == {"ex": 600, "nx": True}

    async def test_add_reports_existing_key(self):
        r = _fake_redis()
        r.set.return_value = None
        assert await RedisChallengeStore(r).add(_record()) is False

    async def test_get_hit(self):
        r = _fake_redis(get_returns=_record().to_json())
        got = await RedisChallengeStore(r).get(TOKEN)
        assert got == _record()
        r.get.assert_awaited_once_with(f"challenge:{TOKEN}")

    async def test_get_miss(self):
        assert await RedisChallengeStore(_fake_redis()).get(TOKEN) is None

    async def test_is_used_checks_marker_key(self):
        r = _fake_redis()
        r.exists.return_value = 1
        assert await RedisChallengeStore(r).is_used(TOKEN) is True
        r.exists.assert_awaited_once_with(f"challenge_used:{TOKEN}")

    async def test_consume_winner_writes_used_marker(self):
        r = _fake_redis()
        store = RedisChallengeStore(r, ttl_seconds=600)
        assert await store.consume(TOKEN, 1_700_000_001_000) is True
        r.delete.assert_awaited_once_with(f"challenge:{TOKEN}")
        r.set.assert_awaited_once_with(
            f"challenge_used:{TOKEN}", 1_700_000_001_000, ex=600
        )

    async def test_consume_loser_writes_nothing(self):
        r = _fake_redis()
        r.delete.return_value = 0
        assert await RedisChallengeStore(r).consume(TOKEN, 1) is False
        r.set.assert_not_awaited()

    async def test_purge_is_left_to_key_expiry(self):
        r = _fake_redis()
        assert await RedisChallengeStore(r).purge(123) == 0
        r.delete.assert_not_awaited()

    async def test_count_scans_record_keys(self):
        r = _fake_redis()
        r.scan_iter = MagicMock(return_value=_aiter(["challenge:a", "challenge:b"]))
        assert await RedisChallengeStore(r).count() == 2
        r.scan_iter.assert_called_once_with(match="challenge:*")

    async def test_ping_ok(self):
        assert await RedisChallengeStore(_fake_redis()).ping() is True

    async def test_ping_failure_returns_false(self):
        r = _fake_redis()
        r.ping.side_effect = RedisConnectionError("down")
        assert await RedisChallengeStore(r).ping() is False

    async def test_errors_propagate_from_get(self):
        r = _fake_redis()
        r.get.side_effect = RedisConnectionError("down")
        with pytest.raises(RedisConnectionError):
            await RedisChallengeStore(r).get(TOKEN)
