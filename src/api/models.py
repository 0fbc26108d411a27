# src/api/models.py — v2
"""API-level models returned by the facade."""

from __future__ import annotations

from pydantic import BaseModel, Field

from techknowledge.knowledge.models import ConceptHint


class HintsLookup(BaseModel):
    """Ready knowledge for several technologies, keyed by the caller's spelling.

    Technologies without ready content are simply absent from ``techs``.
    """

    techs: dict[str, list[ConceptHint]] = Field(default_factory=dict)
    available_count: int = 0
    requested_count: int = 0
