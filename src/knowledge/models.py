# src/knowledge/models.py — v1
"""Knowledge cache domain models: ConceptHint, CacheEntry, lifecycle enums.

One CacheEntry exists per normalized technology name. The entry doubles as
the generation lease: ``status`` plus ``version_stamp`` are the only
coordination state shared between processes.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, Field

_ONE_TICK = timedelta(microseconds=1)


class GenerationStatus(str, Enum):
    """Lifecycle state of a cache entry."""

    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"


class SourceKind(str, Enum):
    """Where an entry's content came from."""

    SEEDED = "seed"
    GENERATED = "llm_generated"


class ConceptHint(BaseModel):
    """One educational concept for a technology."""

    concept_key: str
    concept_name: str
    key_points: list[str]
    common_quiz_topics: list[str]
    prerequisite_concepts: list[str] = Field(default_factory=list)
    tags: list[str]


class GeneratorMeta(BaseModel):
    """Identifies the generator call that produced an entry's content."""

    provider_id: str
    model_id: str


class CacheEntry(BaseModel):
    """Single cached knowledge record, keyed by normalized technology name."""

    key: str
    display_name: str
    version: str | None = None
    content: list[ConceptHint] = Field(default_factory=list)
    status: GenerationStatus
    source_kind: SourceKind = SourceKind.GENERATED
    generator_meta: GeneratorMeta | None = None
    last_error: str | None = None
    generated_at: datetime | None = None
    version_stamp: datetime

    @property
    def is_ready(self) -> bool:
        return self.status is GenerationStatus.READY


class EntryStatusRow(BaseModel):
    """Projection returned by the batch bulk lookup."""

    key: str
    status: GenerationStatus


def normalize_key(name: str) -> str:
    """Return the cache key for a technology name (trimmed, lowercased).

    Raises:
        ValueError: If the name is empty after trimming.
    """
    key = name.strip().lower()
    if not key:
        raise ValueError("Technology name must not be empty")
    return key


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_stamp(previous: datetime | None, now: datetime | None = None) -> datetime:
    """Compute a version stamp strictly greater than ``previous``."""
    now = now or utcnow()
    if previous is not None and now <= previous:
        return previous + _ONE_TICK
    return now
