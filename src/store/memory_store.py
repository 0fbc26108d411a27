# src/store/memory_store.py — v1
"""In-process entry store (STORE_BACKEND=memory).

Entries live in a dict guarded by a lock, so every operation is atomic
with respect to other threads and coroutines. Suitable for tests and
single-process deployments only: nothing is persisted.
"""

from __future__ import annotations

import threading
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


class MemoryEntryStore(BaseEntryStore):
    """Dict-backed entry store."""

    def __init__(self, clock: Clock | None = None) -> None:
        super().__init__(clock)
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    async def lookup_ready(self, key: str) -> CacheEntry | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or not entry.is_ready:
                return None
            return entry.model_copy(deep=True)

    async def lookup_any(self, key: str) -> CacheEntry | None:
        with self._lock:
            entry = self._entries.get(key)
            return entry.model_copy(deep=True) if entry is not None else None

    async def try_insert_claim(
        self, key: str, display_name: str, version: str | None
    ) -> ClaimResult:
        with self._lock:
            if key in self._entries:
                return ClaimResult.ALREADY_EXISTS
            self._entries[key] = CacheEntry(
                key=key,
                display_name=display_name,
                version=version,
                status=GenerationStatus.GENERATING,
                source_kind=SourceKind.GENERATED,
                version_stamp=next_stamp(None, self.now()),
            )
            return ClaimResult.SUCCESS

    async def try_reclaim(
        self, key: str, expected_version_stamp: datetime
    ) -> ClaimResult:
        with self._lock:
            entry = self._entries.get(key)
            if (
                entry is None
                or entry.version_stamp != expected_version_stamp
                or entry.status not in RECLAIMABLE_STATUSES
            ):
                return ClaimResult.CONFLICT
            self._entries[key] = entry.model_copy(
                update={
                    "status": GenerationStatus.GENERATING,
                    "last_error": None,
                    "version_stamp": next_stamp(entry.version_stamp, self.now()),
                }
            )
            return ClaimResult.SUCCESS

    async def write_terminal(
        self,
        key: str,
        status: GenerationStatus,
        content: list[ConceptHint] | None = None,
        error: str | None = None,
        generator_meta: GeneratorMeta | None = None,
    ) -> None:
        check_terminal_args(status, content, error)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                raise StoreError(f"No entry to finalize for key {key!r}")
            now = self.now()
            if status is GenerationStatus.READY:
                update = {
                    "status": status,
                    "content": list(content or []),
                    "generator_meta": generator_meta,
                    "last_error": None,
                    "generated_at": now,
                }
            else:
                update = {
                    "status": status,
                    "content": [],
                    "generator_meta": None,
                    "last_error": error,
                }
            update["version_stamp"] = next_stamp(entry.version_stamp, now)
            self._entries[key] = entry.model_copy(update=update)

    async def bulk_status(self, keys: Iterable[str]) -> list[EntryStatusRow]:
        with self._lock:
            return [
                EntryStatusRow(key=k, status=self._entries[k].status)
                for k in dict.fromkeys(keys)
                if k in self._entries
            ]

    async def insert_seeded(
        self,
        key: str,
        display_name: str,
        version: str | None,
        content: list[ConceptHint],
    ) -> bool:
        with self._lock:
            if key in self._entries:
                return False
            now = self.now()
            self._entries[key] = CacheEntry(
                key=key,
                display_name=display_name,
                version=version,
                content=list(content),
                status=GenerationStatus.READY,
                source_kind=SourceKind.SEEDED,
                generated_at=now,
                version_stamp=next_stamp(None, now),
            )
            return True
