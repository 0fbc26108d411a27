# src/store/sqlite_store.py — v1
"""SQLite-based entry store (STORE_BACKEND=sqlite).

Uses stdlib sqlite3 in autocommit mode, so each statement is atomic:
- the PRIMARY KEY on ``key`` is the uniqueness constraint behind claims;
- reclaim is one ``UPDATE ... WHERE version_stamp = ?`` and its rowcount
  decides success or conflict.

Version stamps are stored as integer microseconds since the epoch.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from pathlib import Path

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
    BaseEntryStore,
    ClaimResult,
    Clock,
    StoreError,
    check_terminal_args,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS technology_knowledge (
    key TEXT PRIMARY KEY,
    display_name TEXT NOT NULL,
    version TEXT,
    content TEXT NOT NULL DEFAULT '[]',
    status TEXT NOT NULL,
    source_kind TEXT NOT NULL,
    provider_id TEXT,
    model_id TEXT,
    last_error TEXT,
    generated_at INTEGER,
    version_stamp INTEGER NOT NULL
);
"""

_COLUMNS = (
    "key, display_name, version, content, status, source_kind, "
    "provider_id, model_id, last_error, generated_at, version_stamp"
)


def to_micros(dt: datetime) -> int:
    """Exact integer microseconds since the epoch."""
    return (dt - _EPOCH) // _MICROSECOND


def from_micros(value: int) -> datetime:
    return _EPOCH + timedelta(microseconds=value)


class SqliteEntryStore(BaseEntryStore):
    """SQLite-backed entry store shared by every process on one host."""

    def __init__(self, db_path: Path | str, clock: Clock | None = None) -> None:
        super().__init__(clock)
        if str(db_path) == ":memory:":
            self._db_path = ":memory:"
        else:
            path = Path(db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            self._db_path = str(path)
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(
                self._db_path,
                isolation_level=None,
                check_same_thread=False,
                timeout=30.0,
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open knowledge store {self._db_path}: {e}") from e
        logger.debug("Opened knowledge store at %s", self._db_path)

    async def lookup_ready(self, key: str) -> CacheEntry | None:
        row = self._fetchone(
            f"SELECT {_COLUMNS} FROM technology_knowledge WHERE key = ? AND status = ?",
            (key, GenerationStatus.READY.value),
        )
        return self._row_to_entry(row) if row else None

    async def lookup_any(self, key: str) -> CacheEntry | None:
        row = self._fetchone(
            f"SELECT {_COLUMNS} FROM technology_knowledge WHERE key = ?", (key,)
        )
        return self._row_to_entry(row) if row else None

    async def try_insert_claim(
        self, key: str, display_name: str, version: str | None
    ) -> ClaimResult:
        stamp = to_micros(next_stamp(None, self.now()))
        cursor = self._execute(
            """INSERT INTO technology_knowledge
               (key, display_name, version, content, status, source_kind, version_stamp)
               VALUES (?, ?, ?, '[]', ?, ?, ?)
               ON CONFLICT(key) DO NOTHING""",
            (
                key,
                display_name,
                version,
                GenerationStatus.GENERATING.value,
                SourceKind.GENERATED.value,
                stamp,
            ),
        )
        if cursor.rowcount == 1:
            return ClaimResult.SUCCESS
        return ClaimResult.ALREADY_EXISTS

    async def try_reclaim(
        self, key: str, expected_version_stamp: datetime
    ) -> ClaimResult:
        new_stamp = next_stamp(expected_version_stamp, self.now())
        cursor = self._execute(
            """UPDATE technology_knowledge
               SET status = ?, last_error = NULL, version_stamp = ?
               WHERE key = ? AND version_stamp = ? AND status IN (?, ?)""",
            (
                GenerationStatus.GENERATING.value,
                to_micros(new_stamp),
                key,
                to_micros(expected_version_stamp),
                GenerationStatus.GENERATING.value,
                GenerationStatus.FAILED.value,
            ),
        )
        if cursor.rowcount == 1:
            return ClaimResult.SUCCESS
        return ClaimResult.CONFLICT

    async def write_terminal(
        self,
        key: str,
        status: GenerationStatus,
        content: list[ConceptHint] | None = None,
        error: str | None = None,
        generator_meta: GeneratorMeta | None = None,
    ) -> None:
        check_terminal_args(status, content, error)
        now = to_micros(self.now())
        if status is GenerationStatus.READY:
            payload = json.dumps([c.model_dump() for c in content or []], ensure_ascii=False)
            cursor = self._execute(
                """UPDATE technology_knowledge
                   SET status = ?, content = ?, provider_id = ?, model_id = ?,
                       last_error = NULL, generated_at = ?,
                       version_stamp = MAX(version_stamp + 1, ?)
                   WHERE key = ?""",
                (
                    status.value,
                    payload,
                    generator_meta.provider_id if generator_meta else None,
                    generator_meta.model_id if generator_meta else None,
                    now,
                    now,
                    key,
                ),
            )
        else:
            cursor = self._execute(
                """UPDATE technology_knowledge
                   SET status = ?, content = '[]', provider_id = NULL, model_id = NULL,
                       last_error = ?, version_stamp = MAX(version_stamp + 1, ?)
                   WHERE key = ?""",
                (status.value, error, now, key),
            )
        if cursor.rowcount != 1:
            raise StoreError(f"No entry to finalize for key {key!r}")

    async def bulk_status(self, keys: Iterable[str]) -> list[EntryStatusRow]:
        unique = list(dict.fromkeys(keys))
        if not unique:
            return []
        placeholders = ", ".join("?" for _ in unique)
        rows = self._fetchall(
            f"SELECT key, status FROM technology_knowledge WHERE key IN ({placeholders})",
            tuple(unique),
        )
        return [EntryStatusRow(key=k, status=GenerationStatus(s)) for k, s in rows]

    async def insert_seeded(
        self,
        key: str,
        display_name: str,
        version: str | None,
        content: list[ConceptHint],
    ) -> bool:
        now = to_micros(next_stamp(None, self.now()))
        payload = json.dumps([c.model_dump() for c in content], ensure_ascii=False)
        cursor = self._execute(
            """INSERT INTO technology_knowledge
               (key, display_name, version, content, status, source_kind,
                generated_at, version_stamp)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(key) DO NOTHING""",
            (
                key,
                display_name,
                version,
                payload,
                GenerationStatus.READY.value,
                SourceKind.SEEDED.value,
                now,
                now,
            ),
        )
        return cursor.rowcount == 1

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    # --- Internal helpers ---

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            with self._lock:
                return self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StoreError(f"Knowledge store query failed: {e}") from e

    def _fetchone(self, sql: str, params: tuple = ()) -> tuple | None:
        try:
            with self._lock:
                return self._conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Knowledge store query failed: {e}") from e

    def _fetchall(self, sql: str, params: tuple = ()) -> list[tuple]:
        try:
            with self._lock:
                return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Knowledge store query failed: {e}") from e

    @staticmethod
    def _row_to_entry(row: tuple) -> CacheEntry:
        (
            key,
            display_name,
            version,
            content,
            status,
            source_kind,
            provider_id,
            model_id,
            last_error,
            generated_at,
            version_stamp,
        ) = row
        try:
            concepts = [ConceptHint(**c) for c in json.loads(content or "[]")]
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            raise StoreError(f"Corrupt content for knowledge entry {key!r}: {e}") from e
        meta = None
        if provider_id is not None and model_id is not None:
            meta = GeneratorMeta(provider_id=provider_id, model_id=model_id)
        return CacheEntry(
            key=key,
            display_name=display_name,
            version=version,
            content=concepts,
            status=GenerationStatus(status),
            source_kind=SourceKind(source_kind),
            generator_meta=meta,
            last_error=last_error,
            generated_at=from_micros(generated_at) if generated_at is not None else None,
            version_stamp=from_micros(version_stamp),
        )
