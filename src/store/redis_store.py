# src/store/redis_store.py — v1
"""Redis-based entry store (STORE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for distributed/multi-instance deployments.

Each entry is one JSON string under ``<prefix><key>``:
- claims use ``SET ... NX`` (the key itself is the uniqueness constraint);
- reclaims use an optimistic WATCH/MULTI transaction; a WatchError or a
  stamp mismatch is a conflict.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from techknowledge.knowledge.models import (
    CacheEntry,
    ConceptHint,
    EntryStatusRow,
    GenerationStatus,
    GeneratorMeta,
    SourceKind,
    next_stamp,
)
from techknowledge.store.base_entry_store import (
    RECLAIMABLE_STATUSES,
    BaseEntryStore,
    ClaimResult,
    Clock,
    StoreError,
    check_terminal_args,
)

logger = logging.getLogger(__name__)

_DEFAULT_PREFIX = "techknowledge:entry:"


class RedisEntryStore(BaseEntryStore):
    """Redis-backed entry store for distributed deployments."""

    def __init__(
        self,
        redis_url: str,
        key_prefix: str = _DEFAULT_PREFIX,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock)
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._redis = redis
        self._client = redis.Redis.from_url(redis_url, decode_responses=True)
        self._prefix = key_prefix
        logger.debug("Using redis knowledge store with prefix %r", key_prefix)

    async def lookup_ready(self, key: str) -> CacheEntry | None:
        entry = await self.lookup_any(key)
        if entry is None or not entry.is_ready:
            return None
        return entry

    async def lookup_any(self, key: str) -> CacheEntry | None:
        try:
            data = self._client.get(self._name(key))
        except self._redis.RedisError as e:
            raise StoreError(f"Knowledge store read failed: {e}") from e
        return self._decode(key, data)

    async def try_insert_claim(
        self, key: str, display_name: str, version: str | None
    ) -> ClaimResult:
        entry = CacheEntry(
            key=key,
            display_name=display_name,
            version=version,
            status=GenerationStatus.GENERATING,
            source_kind=SourceKind.GENERATED,
            version_stamp=next_stamp(None, self.now()),
        )
        try:
            created = self._client.set(self._name(key), entry.model_dump_json(), nx=True)
        except self._redis.RedisError as e:
            raise StoreError(f"Knowledge store write failed: {e}") from e
        return ClaimResult.SUCCESS if created else ClaimResult.ALREADY_EXISTS

    async def try_reclaim(
        self, key: str, expected_version_stamp: datetime
    ) -> ClaimResult:
        name = self._name(key)
        try:
            with self._client.pipeline() as pipe:
                pipe.watch(name)
                current = self._decode(key, pipe.get(name))
                if (
                    current is None
                    or current.version_stamp != expected_version_stamp
                    or current.status not in RECLAIMABLE_STATUSES
                ):
                    pipe.unwatch()
                    return ClaimResult.CONFLICT
                claimed = current.model_copy(
                    update={
                        "status": GenerationStatus.GENERATING,
                        "last_error": None,
                        "version_stamp": next_stamp(current.version_stamp, self.now()),
                    }
                )
                pipe.multi()
                pipe.set(name, claimed.model_dump_json())
                pipe.execute()
                return ClaimResult.SUCCESS
        except self._redis.WatchError:
            return ClaimResult.CONFLICT
        except self._redis.RedisError as e:
            raise StoreError(f"Knowledge store reclaim failed: {e}") from e

    async def write_terminal(
        self,
        key: str,
        status: GenerationStatus,
        content: list[ConceptHint] | None = None,
        error: str | None = None,
        generator_meta: GeneratorMeta | None = None,
    ) -> None:
        check_terminal_args(status, content, error)
        name = self._name(key)

        def _finalize(pipe) -> None:
            current = self._decode(key, pipe.get(name))
            if current is None:
                raise StoreError(f"No entry to finalize for key {key!r}")
            now = self.now()
            if status is GenerationStatus.READY:
                update = {
                    "content": list(content or []),
                    "generator_meta": generator_meta,
                    "last_error": None,
                    "generated_at": now,
                }
            else:
                update = {"content": [], "generator_meta": None, "last_error": error}
            update["status"] = status
            update["version_stamp"] = next_stamp(current.version_stamp, now)
            pipe.multi()
            pipe.set(name, current.model_copy(update=update).model_dump_json())

        try:
            # transaction() retries _finalize on WatchError.
            self._client.transaction(_finalize, name)
        except self._redis.RedisError as e:
            raise StoreError(f"Knowledge store write failed: {e}") from e

    async def bulk_status(self, keys: Iterable[str]) -> list[EntryStatusRow]:
        unique = list(dict.fromkeys(keys))
        if not unique:
            return []
        try:
            values = self._client.mget([self._name(k) for k in unique])
        except self._redis.RedisError as e:
            raise StoreError(f"Knowledge store read failed: {e}") from e
        rows: list[EntryStatusRow] = []
        for key, data in zip(unique, values):
            entry = self._decode(key, data)
            if entry is not None:
                rows.append(EntryStatusRow(key=key, status=entry.status))
        return rows

    async def insert_seeded(
        self,
        key: str,
        display_name: str,
        version: str | None,
        content: list[ConceptHint],
    ) -> bool:
        now = self.now()
        entry = CacheEntry(
            key=key,
            display_name=display_name,
            version=version,
            content=list(content),
            status=GenerationStatus.READY,
            source_kind=SourceKind.SEEDED,
            generated_at=now,
            version_stamp=next_stamp(None, now),
        )
        try:
            created = self._client.set(self._name(key), entry.model_dump_json(), nx=True)
        except self._redis.RedisError as e:
            raise StoreError(f"Knowledge store write failed: {e}") from e
        return bool(created)

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()

    def _name(self, key: str) -> str:
        return f"{self._prefix}{key}"

    @staticmethod
    def _decode(key: str, data: str | None) -> CacheEntry | None:
        if data is None:
            return None
        try:
            return CacheEntry.model_validate_json(data)
        except ValueError as e:
            raise StoreError(f"Corrupt knowledge entry {key!r}: {e}") from e
