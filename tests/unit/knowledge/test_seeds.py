# tests/unit/knowledge/test_seeds.py — v1
"""Tests for knowledge/seeds.py — bundled seed knowledge."""

from __future__ import annotations

import pytest

from techknowledge.knowledge.lease import EnsureOutcome
from techknowledge.knowledge.models import GenerationStatus, SourceKind, normalize_key
from techknowledge.knowledge.parser import PrerequisiteError
from techknowledge.knowledge.seeds import (
    SEED_KNOWLEDGE,
    load_seed_concepts,
    seed_store,
    seed_tech_names,
)


class TestSeedData:
    @pytest.mark.parametrize("item", SEED_KNOWLEDGE, ids=lambda i: i["technology_name"])
    def test_seed_concepts_are_valid(self, item):
        concepts = load_seed_concepts(item)
        assert concepts
        assert not concepts[0].prerequisite_concepts

    def test_covers_bundled_technologies(self):
        keys = {normalize_key(name) for name in seed_tech_names()}
        assert keys == {"next.js", "react", "typescript", "supabase", "tailwind css"}

    def test_tech_names_keep_display_casing(self):
        assert seed_tech_names()[0] == "Next.js"
        assert "Tailwind CSS" in seed_tech_names()

    def test_invalid_seed_rejected(self):
        item = {
            "technology_name": "Broken",
            "concepts": [{
                "concept_key": "a", "concept_name": "A", "key_points": [],
                "common_quiz_topics": [], "prerequisite_concepts": ["b"], "tags": [],
            }],
        }
        with pytest.raises(PrerequisiteError):
            load_seed_concepts(item)


class TestSeedStore:
    @pytest.mark.asyncio
    async def test_inserts_ready_seed_entries(self, memory_store):
        inserted = await seed_store(memory_store)
        assert inserted == len(SEED_KNOWLEDGE)
        entry = await memory_store.lookup_ready("react")
        assert entry.status is GenerationStatus.READY
        assert entry.source_kind is SourceKind.SEEDED
        assert entry.generator_meta is None
        assert entry.version == "19"
        tailwind = await memory_store.lookup_ready("tailwind css")
        assert tailwind.display_name == "Tailwind CSS"
        assert len(tailwind.content) == 5

    @pytest.mark.asyncio
    async def test_seeding_is_idempotent(self, memory_store):
        await seed_store(memory_store)
        assert await seed_store(memory_store) == 0

    @pytest.mark.asyncio
    async def test_existing_entry_not_overwritten(self, memory_store):
        await memory_store.try_insert_claim("typescript", "TypeScript", None)
        inserted = await seed_store(memory_store)
        assert inserted == len(SEED_KNOWLEDGE) - 1
        entry = await memory_store.lookup_any("typescript")
        assert entry.status is GenerationStatus.GENERATING

    @pytest.mark.asyncio
    async def test_seeded_entry_served_without_generation(
        self, memory_store, lease, fake_llm
    ):
        await seed_store(memory_store)
        assert await lease.ensure_generated("React") is EnsureOutcome.READY
        assert fake_llm.calls == 0
