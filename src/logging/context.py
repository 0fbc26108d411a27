# src/logging/context.py — v1
"""Contextual logging support: attach tech_key and batch_id to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per key / per batch.
_tech_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "tech_key", default=None
)
_batch_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "batch_id", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    tech_key: str | None = None
    batch_id: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(tech_key=_tech_key.get(), batch_id=_batch_id.get())


def set_key_context(tech_key: str | None) -> contextvars.Token:
    """Set the technology key being worked on. Returns a reset token."""
    return _tech_key.set(tech_key)


def reset_key_context(token: contextvars.Token) -> None:
    _tech_key.reset(token)


def set_batch_context(batch_id: str | None) -> contextvars.Token:
    """Set the batch id for the current batch run. Returns a reset token."""
    return _batch_id.set(batch_id)


def reset_batch_context(token: contextvars.Token) -> None:
    _batch_id.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _tech_key.set(None)
    _batch_id.set(None)
