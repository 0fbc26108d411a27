# src/knowledge/generator.py — v1
"""Single generator invocation: prompt, call, parse, validate.

Runs only inside a held claim. There is no retry here: a failed attempt
is recorded on the entry and retried by a later, independent caller.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from techknowledge.knowledge.models import ConceptHint, GeneratorMeta
from techknowledge.knowledge.parser import GenerationError, parse_concepts
from techknowledge.knowledge.prompts import SYSTEM_PROMPT, build_generation_prompt
from techknowledge.llm.base_client import BaseLLMClient
from techknowledge.llm.models import Message

logger = logging.getLogger(__name__)


class GenerationTimeoutError(GenerationError):
    """The generator did not answer within the configured timeout."""


@dataclass(frozen=True)
class GenerationResult:
    """Validated concepts plus the identity of the call that produced them."""

    content: list[ConceptHint]
    meta: GeneratorMeta


class ConceptGenerator:
    """Wrap an LLM client into the concept generation contract."""

    def __init__(
        self,
        client: BaseLLMClient,
        timeout_seconds: float = 120.0,
        max_tokens: int = 8192,
        temperature: float = 0.2,
    ) -> None:
        self._client = client
        self._timeout = timeout_seconds
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def generate(
        self, display_name: str, version: str | None = None
    ) -> GenerationResult:
        """Generate and validate concepts for one technology.

        Raises:
            GenerationTimeoutError: If the call exceeds the timeout.
            GenerationError: If the output fails parsing or validation.
            Exception: Transport/provider errors propagate unchanged.
        """
        prompt = build_generation_prompt(display_name, version)
        try:
            response = await asyncio.wait_for(
                self._client.complete(
                    [Message(role="user", content=prompt)],
                    system=SYSTEM_PROMPT,
                    max_tokens=self._max_tokens,
                    temperature=self._temperature,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise GenerationTimeoutError(
                f"Generator timed out after {self._timeout:g}s"
            ) from e

        concepts = parse_concepts(response.content)
        meta = GeneratorMeta(
            provider_id=self._client.provider_name,
            model_id=response.model or self._client.model_name,
        )
        logger.info(
            "Generated %d concepts for %s (%s/%s, %d ms)",
            len(concepts), display_name, meta.provider_id, meta.model_id,
            response.latency_ms,
        )
        return GenerationResult(content=concepts, meta=meta)


def describe_error(error: BaseException) -> str:
    """Render an exception as the message stored in ``last_error``."""
    message = str(error).strip()
    if not message:
        return type(error).__name__
    return message
