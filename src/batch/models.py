# src/batch/models.py — v2
"""Batch generation models: BatchCandidate, BatchResult."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BatchCandidate(BaseModel):
    """One technology the batch trigger wants cached."""

    display_name: str
    version: str | None = None

    @classmethod
    def parse(cls, value: str) -> BatchCandidate:
        """Parse ``name`` or ``name@version`` (CLI form)."""
        name, sep, version = value.rpartition("@")
        if not sep or not name.strip():
            return cls(display_name=value)
        return cls(display_name=name, version=version or None)


class BatchResult(BaseModel):
    """Summary of one batch run (observability only)."""

    batch_id: str
    requested: int
    skipped: int = 0
    generated: int = 0
    already_ready: int = 0
    unavailable: int = 0
    failed: int = 0
    errors: int = 0
    skipped_keys: list[str] = Field(default_factory=list)
    duration_seconds: float = 0.0
