# src/llm/base_client.py — v1
"""Abstract LLM client interface.

The knowledge generator only needs plain text completion: it sends one
prompt and parses the returned text itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from techknowledge.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for all LLM providers."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.2,
    ) -> LLMResponse:
        """Text completion."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (anthropic, openai)."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier requested from the provider."""
