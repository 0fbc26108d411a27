# tests/integration/conftest.py — v8
"""Shared fixtures for integration tests.

SQLite tests need nothing external. Redis tests run only when
TECHKNOWLEDGE_TEST_REDIS_URL points at a disposable server.
"""

from __future__ import annotations

import os
import uuid

import pytest

REDIS_URL_ENV = "TECHKNOWLEDGE_TEST_REDIS_URL"


@pytest.fixture
def redis_url() -> str:
    url = os.environ.get(REDIS_URL_ENV, "")
    if not url:
        pytest.skip(f"{REDIS_URL_ENV} not set")
    return url


@pytest.fixture
def redis_prefix() -> str:
    """Unique key prefix per test so runs never collide."""
    return f"tktest:{uuid.uuid4().hex[:8]}:"


@pytest.fixture
def sqlite_path(tmp_path):
    return tmp_path / "shared" / "knowledge.db"
