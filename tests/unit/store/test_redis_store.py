# tests/unit/store/test_redis_store.py — v1
"""Tests for store/redis_store.py — mocked Redis client."""

from __future__ import annotations

import sys
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from techknowledge.knowledge.models import ConceptHint, GenerationStatus, SourceKind
from techknowledge.store.base_entry_store import ClaimResult, StoreError
from techknowledge.store.redis_store import RedisEntryStore


class _RedisError(Exception):
    pass


class _WatchError(_RedisError):
    pass


FAKE_REDIS_MODULE = SimpleNamespace(RedisError=_RedisError, WatchError=_WatchError)


class FakePipeline:
    """Just enough of redis-py's Pipeline for WATCH/MULTI/EXEC."""

    def __init__(self, client: FakeRedis) -> None:
        self._client = client
        self._watched: dict[str, str | None] = {}
        self._queued: list[tuple[str, str]] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def watch(self, *names):
        self._watched = {n: self._client.data.get(n) for n in names}

    def unwatch(self):
        self._watched = {}

    def get(self, name):
        return self._client.data.get(name)

    def multi(self):
        if self._client.on_multi is not None:
            self._client.on_multi()

    def set(self, name, value):
        self._queued.append((name, value))

    def execute(self):
        for name, seen in self._watched.items():
            if self._client.data.get(name) != seen:
                raise _WatchError("watched key changed")
        for name, value in self._queued:
            self._client.data[name] = value
        return [True] * len(self._queued)


class FakeRedis:
    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.on_multi = None
        self.closed = False

    def get(self, name):
        return self.data.get(name)

    def set(self, name, value, nx=False):
        if nx and name in self.data:
            return None
        self.data[name] = value
        return True

    def mget(self, names):
        return [self.data.get(n) for n in names]

    def pipeline(self):
        return FakePipeline(self)

    def transaction(self, func, *names):
        pipe = FakePipeline(self)
        pipe.watch(*names)
        func(pipe)
        return pipe.execute()

    def close(self):
        self.closed = True


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def store(fake_redis, clock) -> RedisEntryStore:
    with patch.object(RedisEntryStore, "__init__", return_value=None):
        s = RedisEntryStore(redis_url="redis://localhost")
    s._clock = clock
    s._redis = FAKE_REDIS_MODULE
    s._client = fake_redis
    s._prefix = "tk:"
    return s


@pytest.fixture
def hints(sample_concepts) -> list[ConceptHint]:
    return [ConceptHint(**c) for c in sample_concepts]


class TestRedisEntryStore:
    def test_import_error_without_redis(self):
        """Clear ImportError when redis is not available."""
        redis_mod = sys.modules.get("redis")
        sys.modules["redis"] = None  # type: ignore[assignment]
        try:
            with pytest.raises(ImportError, match="redis"):
                RedisEntryStore(redis_url="redis://localhost")
        finally:
            if redis_mod is not None:
                sys.modules["redis"] = redis_mod
            else:
                sys.modules.pop("redis", None)

    @pytest.mark.asyncio
    async def test_claim_uses_prefixed_key(self, store, fake_redis):
        assert await store.try_insert_claim("react", "React", None) is ClaimResult.SUCCESS
        assert "tk:react" in fake_redis.data
        assert await store.try_insert_claim("react", "React", None) is ClaimResult.ALREADY_EXISTS

    @pytest.mark.asyncio
    async def test_lookup_ready_filters_status(self, store):
        await store.try_insert_claim("react", "React", None)
        assert await store.lookup_ready("react") is None
        assert (await store.lookup_any("react")).status is GenerationStatus.GENERATING

    @pytest.mark.asyncio
    async def test_reclaim_cas(self, store, clock):
        await store.try_insert_claim("react", "React", None)
        snapshot = await store.lookup_any("react")
        clock.advance(minutes=11)
        assert await store.try_reclaim("react", snapshot.version_stamp) is ClaimResult.SUCCESS
        assert await store.try_reclaim("react", snapshot.version_stamp) is ClaimResult.CONFLICT

    @pytest.mark.asyncio
    async def test_reclaim_watch_error_is_conflict(self, store, fake_redis):
        await store.try_insert_claim("react", "React", None)
        snapshot = await store.lookup_any("react")

        def _interfere():
            fake_redis.data["tk:react"] = fake_redis.data["tk:react"].replace(
                "generating", "failed"
            )

        fake_redis.on_multi = _interfere
        assert await store.try_reclaim("react", snapshot.version_stamp) is ClaimResult.CONFLICT

    @pytest.mark.asyncio
    async def test_write_terminal_ready(self, store, hints):
        await store.try_insert_claim("react", "React", None)
        await store.write_terminal("react", GenerationStatus.READY, content=hints)
        entry = await store.lookup_ready("react")
        assert entry.content == hints
        assert entry.generated_at is not None

    @pytest.mark.asyncio
    async def test_write_terminal_missing(self, store):
        with pytest.raises(StoreError, match="No entry"):
            await store.write_terminal("react", GenerationStatus.FAILED, error="x")

    @pytest.mark.asyncio
    async def test_bulk_status(self, store, hints):
        await store.insert_seeded("react", "React", None, hints)
        await store.try_insert_claim("vue", "Vue", None)
        rows = await store.bulk_status(["react", "vue", "svelte"])
        assert [(r.key, r.status) for r in rows] == [
            ("react", GenerationStatus.READY),
            ("vue", GenerationStatus.GENERATING),
        ]

    @pytest.mark.asyncio
    async def test_insert_seeded(self, store, hints):
        assert await store.insert_seeded("react", "React", "19", hints) is True
        assert await store.insert_seeded("react", "React", "19", hints) is False
        assert (await store.lookup_ready("react")).source_kind is SourceKind.SEEDED

    @pytest.mark.asyncio
    async def test_corrupt_payload(self, store, fake_redis):
        fake_redis.data["tk:react"] = "{not json"
        with pytest.raises(StoreError, match="Corrupt"):
            await store.lookup_any("react")

    @pytest.mark.asyncio
    async def test_redis_error_wrapped(self, store):
        store._client = MagicMock()
        store._client.get.side_effect = _RedisError("connection refused")
        with pytest.raises(StoreError, match="connection refused"):
            await store.lookup_any("react")

    def test_close(self, store, fake_redis):
        store.close()
        assert fake_redis.closed is True
