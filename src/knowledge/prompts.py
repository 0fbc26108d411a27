# src/knowledge/prompts.py — v1
"""Prompt construction for concept generation.

The generator is asked for a bare JSON array whose items match the
ConceptHint wire schema, so the parser can decode it directly.
"""

from __future__ import annotations

CONCEPT_JSON_SCHEMA = """[
  {
    "concept_key": "string (kebab-case English identifier, e.g. 'app-router')",
    "concept_name": "string (short display name)",
    "key_points": ["string (3-5 practical key points)"],
    "common_quiz_topics": ["string (2-3 good quiz topics)"],
    "prerequisite_concepts": ["string (concept_key references within this same list)"],
    "tags": ["string (3-5 searchable lowercase tags, e.g. 'routing')"]
  }
]"""

SYSTEM_PROMPT = (
    "You are an expert programming instructor building a knowledge base "
    "for a learning platform. You answer with JSON only."
)


def build_generation_prompt(display_name: str, version: str | None = None) -> str:
    """Build the prompt asking for 5-7 core concepts of one technology."""
    version_label = f" v{version}" if version else ""
    return f"""## Task

Generate 5-7 core educational concepts for **{display_name}{version_label}**.

The audience already ships working applications built with {display_name} \
(often with AI coding tools) and wants to understand why the code works.
Each concept must be a fundamental building block they meet in real projects.

## Concept design guidelines

1. Practical first: prefer concepts met in real projects over theory.
2. Progressive difficulty: order concepts from foundational to intermediate.
3. Dependencies: use prerequisite_concepts to express learning order. \
The first concept has no prerequisites.

## Rules

- concept_key must be kebab-case English and unique within your output.
- prerequisite_concepts must only reference concept_key values defined in your output.
- tags must be English lowercase.
- Output ONLY valid JSON matching the schema below. No markdown code fences, \
no explanation, no preamble.

## Output JSON schema

{CONCEPT_JSON_SCHEMA}"""
