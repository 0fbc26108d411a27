# tests/unit/llm/test_client_factory.py — v1
"""Tests for llm/client_factory.py — provider registry and settings wiring."""

from __future__ import annotations

import pytest

from techknowledge.config.settings import Settings
from techknowledge.llm.adapters.anthropic_adapter import AnthropicAdapter
from techknowledge.llm.adapters.openai_adapter import OpenAIAdapter
from techknowledge.llm.client_factory import (
    _PROVIDER_REGISTRY,
    UnsupportedProviderError,
    create_llm_client,
    register_provider,
)


class TestCreateLLMClient:
    def test_anthropic_from_settings(self):
        settings = Settings(_env_file=None, anthropic_api_key="sk-ant-test")
        client = create_llm_client(settings=settings)
        assert isinstance(client, AnthropicAdapter)
        assert client.provider_name == "anthropic"
        assert client.model_name == settings.llm_model
        assert client._api_key == "sk-ant-test"

    def test_openai_from_settings(self):
        settings = Settings(
            _env_file=None, llm_provider="openai", llm_model="gpt-4o-mini",
            openai_api_key="sk-test", openai_base_url="http://localhost:8000/v1",
        )
        client = create_llm_client(settings=settings)
        assert isinstance(client, OpenAIAdapter)
        assert client.model_name == "gpt-4o-mini"
        assert client._base_url == "http://localhost:8000/v1"

    def test_explicit_arguments_win(self):
        settings = Settings(_env_file=None)
        client = create_llm_client("openai", "gpt-4o", settings=settings)
        assert isinstance(client, OpenAIAdapter)
        assert client._base_url is None

    def test_unsupported_provider(self):
        with pytest.raises(UnsupportedProviderError, match="Available"):
            create_llm_client("nonexistent", "model-x")

    def test_missing_model(self):
        with pytest.raises(ValueError, match="required"):
            create_llm_client("anthropic")


class TestRegisterProvider:
    def test_register_custom(self):
        register_provider(
            "custom_test",
            "techknowledge.llm.adapters.openai_adapter.OpenAIAdapter",
        )
        try:
            client = create_llm_client("custom_test", "local-model")
            assert client.model_name == "local-model"
        finally:
            _PROVIDER_REGISTRY.pop("custom_test", None)
