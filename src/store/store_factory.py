# src/store/store_factory.py — v1
"""Factory for entry store instantiation."""

from __future__ import annotations

from techknowledge.config.settings import Settings
from techknowledge.store.base_entry_store import BaseEntryStore, Clock


def create_entry_store(
    settings: Settings | None = None, clock: Clock | None = None
) -> BaseEntryStore:
    """Instantiate the configured entry store backend.

    Args:
        settings: Application settings. Defaults to an in-memory store.
        clock: Optional time source (tests inject a manual clock).

    Returns:
        Configured BaseEntryStore implementation.
    """
    backend = "memory" if settings is None else settings.store_backend

    if backend == "memory":
        from techknowledge.store.memory_store import MemoryEntryStore
        return MemoryEntryStore(clock=clock)

    if backend == "sqlite":
        from techknowledge.store.sqlite_store import SqliteEntryStore
        return SqliteEntryStore(db_path=settings.store_sqlite_path, clock=clock)

    if backend == "redis":
        from techknowledge.store.redis_store import RedisEntryStore
        if not settings.store_redis_url:
            raise ValueError(
                "STORE_REDIS_URL must be set when STORE_BACKEND=redis"
            )
        return RedisEntryStore(
            redis_url=settings.store_redis_url,
            key_prefix=settings.store_redis_prefix,
            clock=clock,
        )

    raise ValueError(f"Unsupported store backend: {backend!r}")
