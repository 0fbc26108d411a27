# src/api/facade.py — v2
"""Public API facade: the entry points other features call.

Usage:
    from techknowledge.api.facade import ensure_generated, get_ready
    hints = await get_ready("React")
    if hints is None:
        await ensure_generated("React", "19")

Absent content is always a soft outcome: callers proceed without the
enrichment and never fail their own request because of it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import timedelta

from techknowledge.api.models import HintsLookup
from techknowledge.batch.coordinator import BatchCoordinator, CandidateLike
from techknowledge.batch.models import BatchResult
from techknowledge.config.settings import Settings
from techknowledge.knowledge.generator import ConceptGenerator
from techknowledge.knowledge.lease import EnsureOutcome, LeaseProtocol
from techknowledge.knowledge.models import ConceptHint
from techknowledge.knowledge.seeds import seed_store
from techknowledge.llm.base_client import BaseLLMClient
from techknowledge.store.base_entry_store import BaseEntryStore, Clock

logger = logging.getLogger(__name__)

# Strong references to fire-and-forget batch tasks until they finish.
_background_tasks: set[asyncio.Task] = set()


@dataclass
class KnowledgeService:
    """Wired components of the knowledge cache."""

    settings: Settings
    store: BaseEntryStore
    lease: LeaseProtocol
    batch: BatchCoordinator

    def close(self) -> None:
        self.store.close()


_default_service: KnowledgeService | None = None


def build_service(
    settings: Settings | None = None,
    store: BaseEntryStore | None = None,
    llm_client: BaseLLMClient | None = None,
    clock: Clock | None = None,
) -> KnowledgeService:
    """Wire store, generator, lease protocol and batch coordinator.

    Args:
        settings: Global settings. Loaded from .env if None.
        store: Entry store. Created from settings if None.
        llm_client: Generator client. Created from settings if None.
        clock: Time source for a store created here.
    """
    settings = settings or Settings()
    if store is None:
        from techknowledge.store.store_factory import create_entry_store
        store = create_entry_store(settings, clock=clock)
    if llm_client is None:
        from techknowledge.llm.client_factory import create_llm_client
        llm_client = create_llm_client(settings=settings)

    generator = ConceptGenerator(
        llm_client,
        timeout_seconds=settings.generation_timeout_seconds,
        max_tokens=settings.generation_max_tokens,
        temperature=settings.generation_temperature,
    )
    lease = LeaseProtocol(
        store,
        generator,
        stale_lease_window=timedelta(seconds=settings.stale_lease_window_seconds),
    )
    batch = BatchCoordinator(
        store, lease, skip_generating=settings.batch_skip_generating
    )
    return KnowledgeService(settings=settings, store=store, lease=lease, batch=batch)


async def open_service(
    settings: Settings | None = None, **kwargs: object
) -> KnowledgeService:
    """Build a service and seed the store when SEED_ON_STARTUP is set."""
    service = build_service(settings, **kwargs)  # type: ignore[arg-type]
    if service.settings.seed_on_startup:
        inserted = await seed_store(service.store)
        logger.info("Startup seeding inserted %d entries", inserted)
    return service


def get_service() -> KnowledgeService:
    """Return the process-wide service, building it from settings on first use."""
    global _default_service
    if _default_service is None:
        _default_service = build_service()
    return _default_service


def set_service(service: KnowledgeService | None) -> None:
    """Install (or clear, with None) the process-wide service."""
    global _default_service
    _default_service = service


async def get_ready(
    display_name: str, service: KnowledgeService | None = None
) -> list[ConceptHint] | None:
    """Return ready concepts for a technology, or None if not available."""
    service = service or get_service()
    return await service.lease.get_ready(display_name)


async def get_ready_many(
    display_names: Iterable[str], service: KnowledgeService | None = None
) -> HintsLookup:
    """Look up ready concepts for several technologies at once."""
    service = service or get_service()
    names = [n.strip() for n in display_names if n and n.strip()]
    results = await asyncio.gather(*(service.lease.get_ready(n) for n in names))
    techs = {name: hints for name, hints in zip(names, results) if hints}
    return HintsLookup(
        techs=techs, available_count=len(techs), requested_count=len(names)
    )


async def ensure_generated(
    display_name: str,
    version: str | None = None,
    service: KnowledgeService | None = None,
) -> EnsureOutcome:
    """Ensure content exists for a technology, generating it if this caller wins the claim."""
    service = service or get_service()
    return await service.lease.ensure_generated(display_name, version)


async def ensure_generated_batch(
    candidates: Iterable[CandidateLike], service: KnowledgeService | None = None
) -> BatchResult:
    """Generate missing knowledge for many technologies, one at a time."""
    service = service or get_service()
    return await service.batch.ensure_generated_batch(candidates)


def trigger_batch(
    candidates: Iterable[CandidateLike], service: KnowledgeService | None = None
) -> asyncio.Task:
    """Fire-and-forget batch generation on the running event loop.

    The trigger never receives results or exceptions; an escaping error is
    logged by the task's done-callback.
    """
    service = service or get_service()
    items = list(candidates)
    task = asyncio.get_running_loop().create_task(
        service.batch.ensure_generated_batch(items)
    )
    _background_tasks.add(task)
    task.add_done_callback(_on_batch_done)
    return task


def _on_batch_done(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        logger.warning("Background knowledge batch was cancelled")
        return
    error = task.exception()
    if error is not None:
        logger.error(
            "Background knowledge batch failed: %s", error,
            exc_info=(type(error), error, error.__traceback__),
        )
