# tests/unit/logging/test_context.py — v2
"""Tests for logging/context.py — per-task logging context."""

from __future__ import annotations

import asyncio

import pytest

from techknowledge.logging.context import (
    LogContext,
    clear_context,
    get_context,
    reset_batch_context,
    reset_key_context,
    set_batch_context,
    set_key_context,
)


class TestLogContext:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_empty_by_default(self):
        assert get_context().as_dict() == {}

    def test_as_dict_skips_none(self):
        assert LogContext(tech_key="react").as_dict() == {"tech_key": "react"}

    def test_reset_restores_previous(self):
        outer = set_key_context("react")
        inner = set_key_context("vue")
        assert get_context().tech_key == "vue"
        reset_key_context(inner)
        assert get_context().tech_key == "react"
        reset_key_context(outer)
        assert get_context().tech_key is None

    def test_batch_context(self):
        token = set_batch_context("b42")
        assert get_context().batch_id == "b42"
        reset_batch_context(token)
        assert get_context().batch_id is None

    @pytest.mark.asyncio
    async def test_isolated_between_tasks(self):
        async def worker(key: str) -> str | None:
            set_key_context(key)
            await asyncio.sleep(0)
            return get_context().tech_key

        results = await asyncio.gather(worker("react"), worker("vue"))
        assert results == ["react", "vue"]
