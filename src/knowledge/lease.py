# src/knowledge/lease.py — v1
"""Lease protocol: decide whether a caller may generate a key right now.

State machine over an entry's ``status``::

    absent --insert--> generating --> ready
                           |    ^
                           v    | reclaim (failed, or stale generating)
                         failed-+

All transition decisions live in ``LeaseProtocol.acquire``. The only
lock is the durable ``generating`` row: it is claimed by insert (new
keys) or by compare-and-swap on ``version_stamp`` (existing keys), and
it is never explicitly released. The next successful claim is the
release.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

from techknowledge.knowledge.generator import ConceptGenerator, describe_error
from techknowledge.knowledge.models import (
    CacheEntry,
    ConceptHint,
    GenerationStatus,
    normalize_key,
)
from techknowledge.logging.context import reset_key_context, set_key_context
from techknowledge.store.base_entry_store import BaseEntryStore, ClaimResult, StoreError

logger = logging.getLogger(__name__)

DEFAULT_STALE_LEASE_WINDOW = timedelta(minutes=10)


class Decision(str, Enum):
    """Result of the claim decision rule."""

    READY = "ready"
    CLAIMED = "claimed"
    UNAVAILABLE = "unavailable"


class EnsureOutcome(str, Enum):
    """What ``ensure_generated`` observed. None of these is an error."""

    READY = "ready"
    GENERATED = "generated"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"


@dataclass(frozen=True)
class LeaseDecision:
    decision: Decision
    entry: CacheEntry | None = None
    reason: str = ""


class LeaseProtocol:
    """Single-flight generation per key over a shared entry store."""

    def __init__(
        self,
        store: BaseEntryStore,
        generator: ConceptGenerator,
        stale_lease_window: timedelta = DEFAULT_STALE_LEASE_WINDOW,
    ) -> None:
        if stale_lease_window <= timedelta(0):
            raise ValueError("stale_lease_window must be positive")
        self._store = store
        self._generator = generator
        self._window = stale_lease_window

    @property
    def stale_lease_window(self) -> timedelta:
        return self._window

    async def get_ready(self, display_name: str) -> list[ConceptHint] | None:
        """Return ready content for a technology, or None. Never blocks on a lease."""
        entry = await self._store.lookup_ready(normalize_key(display_name))
        return entry.content if entry is not None else None

    async def ensure_generated(
        self, display_name: str, version: str | None = None
    ) -> EnsureOutcome:
        """Make sure content exists for a technology, generating it if we win the claim.

        Returns UNAVAILABLE when another caller holds a fresh lease or won
        a reclaim race; the caller should proceed without the content.

        Raises:
            StoreError: If the backing store fails.
        """
        key = normalize_key(display_name)
        display_name = display_name.strip()
        token = set_key_context(key)
        try:
            lease = await self.acquire(key, display_name, version)
            if lease.decision is Decision.READY:
                return EnsureOutcome.READY
            if lease.decision is Decision.UNAVAILABLE:
                logger.debug("Not available now: %s (%s)", key, lease.reason)
                return EnsureOutcome.UNAVAILABLE
            return await self._generate_and_finalize(key, display_name, version)
        finally:
            reset_key_context(token)

    async def acquire(
        self, key: str, display_name: str, version: str | None
    ) -> LeaseDecision:
        """Run the claim decision rule for one normalized key."""
        ready = await self._store.lookup_ready(key)
        if ready is not None:
            return LeaseDecision(Decision.READY, ready)

        entry = await self._store.lookup_any(key)
        if entry is None:
            result = await self._store.try_insert_claim(key, display_name, version)
            if result is ClaimResult.SUCCESS:
                logger.debug("Claimed new key %s", key)
                return LeaseDecision(Decision.CLAIMED)
            # Lost the insert race; judge whatever the winner wrote.
            logger.debug("Insert claim lost for %s: %s", key, result.value)
            entry = await self._store.lookup_any(key)
            if entry is None:
                return LeaseDecision(Decision.UNAVAILABLE, reason="entry vanished")

        return await self._decide_existing(entry)

    async def _decide_existing(self, entry: CacheEntry) -> LeaseDecision:
        if entry.status is GenerationStatus.READY:
            return LeaseDecision(Decision.READY, entry)

        if entry.status is GenerationStatus.GENERATING:
            age = self._store.now() - entry.version_stamp
            if age < self._window:
                return LeaseDecision(Decision.UNAVAILABLE, entry, "lease held")
            logger.info(
                "Reclaiming stale lease for %s (age %.0fs)",
                entry.key, age.total_seconds(),
            )

        # failed (always eligible) or stale generating
        result = await self._store.try_reclaim(entry.key, entry.version_stamp)
        if result is ClaimResult.SUCCESS:
            logger.debug("Reclaimed %s from %s", entry.key, entry.status.value)
            return LeaseDecision(Decision.CLAIMED, entry)
        logger.debug("Reclaim conflict for %s", entry.key)
        return LeaseDecision(Decision.UNAVAILABLE, entry, "reclaimed elsewhere")

    async def _generate_and_finalize(
        self, key: str, display_name: str, version: str | None
    ) -> EnsureOutcome:
        try:
            result = await self._generator.generate(display_name, version)
        except asyncio.CancelledError:
            await self._record_cancellation(key)
            raise
        except Exception as e:
            message = describe_error(e)
            logger.warning("Generation failed for %s: %s", display_name, message)
            await self._store.write_terminal(
                key, GenerationStatus.FAILED, error=message
            )
            return EnsureOutcome.FAILED

        await self._store.write_terminal(
            key,
            GenerationStatus.READY,
            content=result.content,
            generator_meta=result.meta,
        )
        return EnsureOutcome.GENERATED

    async def _record_cancellation(self, key: str) -> None:
        # Best effort: if this write fails too, the stale lease window recovers the key.
        try:
            await self._store.write_terminal(
                key, GenerationStatus.FAILED, error="Generation cancelled"
            )
        except StoreError:
            logger.warning("Could not record cancellation for %s", key, exc_info=True)
