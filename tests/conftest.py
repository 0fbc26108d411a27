# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides a scripted LLM client, a manual clock, sample concept payloads
and in-memory settings. No external dependencies: all I/O is local.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from techknowledge.config.settings import Settings
from techknowledge.knowledge.generator import ConceptGenerator
from techknowledge.knowledge.lease import LeaseProtocol
from techknowledge.llm.base_client import BaseLLMClient
from techknowledge.llm.models import LLMResponse, Message
from techknowledge.store.memory_store import MemoryEntryStore


SAMPLE_CONCEPTS: list[dict[str, Any]] = [
    {
        "concept_key": "jsx",
        "concept_name": "JSX syntax",
        "key_points": ["JSX compiles to function calls", "Expressions go in braces"],
        "common_quiz_topics": ["JSX versus HTML attributes"],
        "prerequisite_concepts": [],
        "tags": ["jsx", "syntax"],
    },
    {
        "concept_key": "components",
        "concept_name": "Components",
        "key_points": ["Components are functions returning JSX"],
        "common_quiz_topics": ["Naming components"],
        "prerequisite_concepts": ["jsx"],
        "tags": ["component"],
    },
    {
        "concept_key": "props",
        "concept_name": "Props",
        "key_points": ["Props flow from parent to child", "Props are read-only"],
        "common_quiz_topics": ["Mutating props"],
        "prerequisite_concepts": ["components"],
        "tags": ["props"],
    },
    {
        "concept_key": "state",
        "concept_name": "State",
        "key_points": ["useState holds local state"],
        "common_quiz_topics": ["Batched updates"],
        "prerequisite_concepts": ["components"],
        "tags": ["state", "hook"],
    },
    {
        "concept_key": "effects",
        "concept_name": "Effects",
        "key_points": ["useEffect synchronizes with external systems"],
        "common_quiz_topics": ["Dependency arrays"],
        "prerequisite_concepts": ["state"],
        "tags": ["effect", "hook"],
    },
    {
        "concept_key": "context",
        "concept_name": "Context",
        "key_points": ["Context avoids prop drilling"],
        "common_quiz_topics": ["Provider re-renders"],
        "prerequisite_concepts": ["props", "state"],
        "tags": ["context"],
    },
]


class ManualClock:
    """Deterministic tz-aware clock for lease age tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class FakeLLMClient(BaseLLMClient):
    """Scripted LLM client that counts calls.

    Each call yields to the event loop so concurrent callers
    interleave the way they would around a real network call.
    """

    def __init__(
        self,
        content: str | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
        model: str = "fake-model-1",
    ) -> None:
        self.content = content if content is not None else json.dumps(SAMPLE_CONCEPTS)
        self.error = error
        self.delay = delay
        self._model = model
        self.calls = 0
        self.last_messages: list[Message] = []
        self.last_kwargs: dict[str, Any] = {}

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.2,
    ) -> LLMResponse:
        self.calls += 1
        self.last_messages = messages
        self.last_kwargs = {
            "system": system, "max_tokens": max_tokens, "temperature": temperature,
        }
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return LLMResponse(
            content=self.content,
            input_tokens=120,
            output_tokens=900,
            model=self._model,
            provider="fake",
            latency_ms=5,
        )

    @property
    def provider_name(self) -> str:
        return "fake"

    @property
    def model_name(self) -> str:
        return self._model


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_concepts() -> list[dict[str, Any]]:
    """Six valid concepts whose prerequisites all resolve."""
    return [dict(c) for c in SAMPLE_CONCEPTS]


@pytest.fixture
def sample_concepts_json(sample_concepts) -> str:
    return json.dumps(sample_concepts)


# === FIXTURES: Clock, store, generator ===


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def memory_store(clock) -> MemoryEntryStore:
    return MemoryEntryStore(clock=clock)


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def generator(fake_llm) -> ConceptGenerator:
    return ConceptGenerator(fake_llm, timeout_seconds=5)


@pytest.fixture
def lease(memory_store, generator) -> LeaseProtocol:
    return LeaseProtocol(memory_store, generator)


# === FIXTURES: Settings ===


@pytest.fixture
def memory_settings() -> Settings:
    """Settings with an in-memory store and no .env file."""
    return Settings(_env_file=None, store_backend="memory")


@pytest.fixture
def make_llm():
    """Factory for scripted LLM clients with custom content, error or delay."""
    return FakeLLMClient


@pytest.fixture
def make_lease(memory_store):
    """Build a LeaseProtocol over the shared memory store with a given client."""

    def _make(
        client: BaseLLMClient,
        window: timedelta = timedelta(minutes=10),
        timeout_seconds: float = 5,
        store=None,
    ) -> LeaseProtocol:
        generator = ConceptGenerator(client, timeout_seconds=timeout_seconds)
        return LeaseProtocol(store or memory_store, generator, stale_lease_window=window)

    return _make
