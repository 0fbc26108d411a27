# src/store/base_entry_store.py — v1
"""Abstract entry store interface.

The store is the only synchronization primitive of the knowledge cache:
``try_insert_claim`` relies on a uniqueness constraint and ``try_reclaim``
must be a genuine atomic compare-and-swap on ``version_stamp``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from datetime import datetime
from enum import Enum

from techknowledge.knowledge.models import (
    CacheEntry,
    ConceptHint,
    EntryStatusRow,
    GenerationStatus,
    GeneratorMeta,
    utcnow,
)

Clock = Callable[[], datetime]


class StoreError(Exception):
    """Raised when the backing store itself fails (unreachable, corrupt)."""


class ClaimResult(str, Enum):
    """Outcome of a claim attempt."""

    SUCCESS = "success"
    ALREADY_EXISTS = "already_exists"
    CONFLICT = "conflict"


RECLAIMABLE_STATUSES = (GenerationStatus.GENERATING, GenerationStatus.FAILED)
TERMINAL_STATUSES = (GenerationStatus.READY, GenerationStatus.FAILED)


class BaseEntryStore(ABC):
    """Unified interface for knowledge entry backends."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or utcnow

    def now(self) -> datetime:
        """Current time as seen by this store (used for stamps and lease age)."""
        return self._clock()

    @abstractmethod
    async def lookup_ready(self, key: str) -> CacheEntry | None:
        """Return the entry only if its status is ready."""

    @abstractmethod
    async def lookup_any(self, key: str) -> CacheEntry | None:
        """Return the entry regardless of status."""

    @abstractmethod
    async def try_insert_claim(
        self, key: str, display_name: str, version: str | None
    ) -> ClaimResult:
        """Insert a new generating entry; ALREADY_EXISTS if the key is taken."""

    @abstractmethod
    async def try_reclaim(
        self, key: str, expected_version_stamp: datetime
    ) -> ClaimResult:
        """CAS an existing generating/failed entry back to generating.

        Succeeds only when the stored stamp still equals
        ``expected_version_stamp``; otherwise returns CONFLICT.
        """

    @abstractmethod
    async def write_terminal(
        self,
        key: str,
        status: GenerationStatus,
        content: list[ConceptHint] | None = None,
        error: str | None = None,
        generator_meta: GeneratorMeta | None = None,
    ) -> None:
        """Unconditionally record the terminal outcome of a held claim."""

    @abstractmethod
    async def bulk_status(self, keys: Iterable[str]) -> list[EntryStatusRow]:
        """Return (key, status) for every existing key among ``keys``."""

    @abstractmethod
    async def insert_seeded(
        self,
        key: str,
        display_name: str,
        version: str | None,
        content: list[ConceptHint],
    ) -> bool:
        """Insert a pre-populated ready entry. False if the key already exists."""

    def close(self) -> None:
        """Release backend resources."""


def check_terminal_args(
    status: GenerationStatus,
    content: list[ConceptHint] | None,
    error: str | None,
) -> None:
    """Validate write_terminal arguments against the entry invariants."""
    if status not in TERMINAL_STATUSES:
        raise ValueError(f"Not a terminal status: {status!r}")
    if status is GenerationStatus.READY and not content:
        raise ValueError("A ready entry requires non-empty content")
    if status is GenerationStatus.FAILED and not error:
        raise ValueError("A failed entry requires an error message")
