# src/knowledge/parser.py — v1
"""Parse and validate raw generator output into ConceptHint lists.

Validation is fail-closed: any malformed item or dangling prerequisite
rejects the whole result. Nothing is silently dropped.
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from techknowledge.knowledge.models import ConceptHint

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?```\s*$")

_REQUIRED_STRINGS = ("concept_key", "concept_name")
_REQUIRED_LISTS = ("key_points", "common_quiz_topics", "tags")


class GenerationError(Exception):
    """Base class for failures inside a generation attempt."""


class ConceptParseError(GenerationError):
    """Generator output is not a well-formed, non-empty concept list."""


class PrerequisiteError(GenerationError):
    """A prerequisite reference does not resolve within the same list."""


def strip_code_fence(raw: str) -> str:
    """Remove a surrounding markdown code fence, if present."""
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN.sub("", cleaned)
        cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip()


def parse_concepts(raw: str) -> list[ConceptHint]:
    """Decode generator text into a validated list of ConceptHint.

    Raises:
        ConceptParseError: Output is not a JSON array, an item lacks a
            required field, a concept_key repeats, or the list is empty.
        PrerequisiteError: A prerequisite does not resolve in the list.
    """
    try:
        parsed: Any = json.loads(strip_code_fence(raw))
    except json.JSONDecodeError as e:
        raise ConceptParseError(f"Generator output is not valid JSON: {e}") from e

    if not isinstance(parsed, list):
        raise ConceptParseError("Expected JSON array of concepts")
    if not parsed:
        raise ConceptParseError("Generator returned an empty concepts array")

    concepts = [_parse_item(item, idx) for idx, item in enumerate(parsed)]
    validate_prerequisites(concepts)
    return concepts


def validate_prerequisites(concepts: list[ConceptHint]) -> None:
    """Check concept_key uniqueness and prerequisite resolution.

    Raises:
        ConceptParseError: On duplicate concept_key values.
        PrerequisiteError: On dangling or self-referencing prerequisites.
    """
    keys: set[str] = set()
    for concept in concepts:
        if concept.concept_key in keys:
            raise ConceptParseError(f"Duplicate concept_key: {concept.concept_key!r}")
        keys.add(concept.concept_key)

    dangling: list[str] = []
    for concept in concepts:
        for prereq in concept.prerequisite_concepts:
            if prereq == concept.concept_key or prereq not in keys:
                dangling.append(f"{concept.concept_key} -> {prereq}")
    if dangling:
        raise PrerequisiteError(
            "Unresolved prerequisite references: " + ", ".join(dangling)
        )


def _parse_item(item: Any, idx: int) -> ConceptHint:
    if not isinstance(item, dict):
        raise ConceptParseError(f"Invalid concept at index {idx}: not an object")
    missing = [f for f in _REQUIRED_STRINGS if not isinstance(item.get(f), str)]
    missing += [f for f in _REQUIRED_LISTS if not isinstance(item.get(f), list)]
    if missing:
        raise ConceptParseError(
            f"Invalid concept at index {idx}: missing required fields "
            f"({', '.join(missing)})"
        )
    prereqs = item.get("prerequisite_concepts")
    try:
        return ConceptHint(
            concept_key=item["concept_key"],
            concept_name=item["concept_name"],
            key_points=item["key_points"],
            common_quiz_topics=item["common_quiz_topics"],
            prerequisite_concepts=prereqs if isinstance(prereqs, list) else [],
            tags=item["tags"],
        )
    except ValidationError as e:
        raise ConceptParseError(f"Invalid concept at index {idx}: {e}") from e
