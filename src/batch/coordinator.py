# src/batch/coordinator.py — v1
"""Batch coordinator: generate knowledge for many technologies at once.

Workflow:
    1. Normalize and deduplicate candidate keys
    2. One bulk status lookup against the entry store
    3. Skip keys that are ready or already generating
    4. Drive the rest sequentially through the lease protocol

Generation is sequential: at most one generator call per batch is in
flight at any time.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Iterable, Sequence

from techknowledge.batch.models import BatchCandidate, BatchResult
from techknowledge.knowledge.lease import EnsureOutcome, LeaseProtocol
from techknowledge.knowledge.models import GenerationStatus, normalize_key
from techknowledge.logging.context import reset_batch_context, set_batch_context
from techknowledge.store.base_entry_store import BaseEntryStore

logger = logging.getLogger(__name__)

CandidateLike = BatchCandidate | tuple[str, str | None] | str


class BatchCoordinator:
    """Filter out cached and in-flight keys, then generate the remainder."""

    def __init__(
        self,
        store: BaseEntryStore,
        lease: LeaseProtocol,
        skip_generating: bool = True,
    ) -> None:
        self._store = store
        self._lease = lease
        self._skip_generating = skip_generating

    async def ensure_generated_batch(
        self, candidates: Iterable[CandidateLike]
    ) -> BatchResult:
        """Generate missing or failed entries for ``candidates``.

        Individual failures are logged and counted; they never abort the
        batch. Store failures during the bulk lookup propagate.
        """
        batch_id = uuid.uuid4().hex[:12]
        token = set_batch_context(batch_id)
        t0 = time.perf_counter()
        try:
            items = [_to_candidate(c) for c in candidates]
            result = BatchResult(batch_id=batch_id, requested=len(items))
            unique = self._dedupe(items, result)

            rows = await self._store.bulk_status(unique)
            status_by_key = {row.key: row.status for row in rows}
            needs_work = self._partition(unique, status_by_key, result)

            logger.info(
                "Batch %s: %d requested, %d to generate, %d skipped",
                batch_id, result.requested, len(needs_work), result.skipped,
            )

            for key, candidate in needs_work:
                await self._process_one(key, candidate, result)

            result.duration_seconds = round(time.perf_counter() - t0, 2)
            logger.info(
                "Batch %s complete: generated=%d failed=%d unavailable=%d errors=%d",
                batch_id, result.generated, result.failed,
                result.unavailable, result.errors,
            )
            return result
        finally:
            reset_batch_context(token)

    def _dedupe(
        self, items: Sequence[BatchCandidate], result: BatchResult
    ) -> dict[str, BatchCandidate]:
        """Map normalized key to its first candidate; drop unnamed ones."""
        unique: dict[str, BatchCandidate] = {}
        for item in items:
            try:
                key = normalize_key(item.display_name)
            except ValueError:
                logger.warning("Ignoring batch candidate with empty name")
                result.errors += 1
                continue
            unique.setdefault(key, item)
        return unique

    def _partition(
        self,
        unique: dict[str, BatchCandidate],
        status_by_key: dict[str, GenerationStatus],
        result: BatchResult,
    ) -> list[tuple[str, BatchCandidate]]:
        skip_statuses = {GenerationStatus.READY}
        if self._skip_generating:
            skip_statuses.add(GenerationStatus.GENERATING)

        needs_work: list[tuple[str, BatchCandidate]] = []
        for key, candidate in unique.items():
            status = status_by_key.get(key)
            if status in skip_statuses:
                result.skipped += 1
                result.skipped_keys.append(key)
                logger.debug("Skipping %s (%s)", key, status.value)
                continue
            needs_work.append((key, candidate))
        return needs_work

    async def _process_one(
        self, key: str, candidate: BatchCandidate, result: BatchResult
    ) -> None:
        logger.info("Generating knowledge for %s...", candidate.display_name)
        try:
            outcome = await self._lease.ensure_generated(
                candidate.display_name, candidate.version
            )
        except Exception:
            result.errors += 1
            logger.exception("Error generating knowledge for %s", candidate.display_name)
            return

        if outcome is EnsureOutcome.GENERATED:
            result.generated += 1
        elif outcome is EnsureOutcome.READY:
            result.already_ready += 1
        elif outcome is EnsureOutcome.UNAVAILABLE:
            result.unavailable += 1
        else:
            result.failed += 1


def _to_candidate(value: CandidateLike) -> BatchCandidate:
    if isinstance(value, BatchCandidate):
        return value
    if isinstance(value, str):
        return BatchCandidate.parse(value)
    display_name, version = value
    return BatchCandidate(display_name=display_name, version=version)
