"""LLM provider implementations for lloom."""

from lloom.infra.llm.anthropic_provider import AnthropicProvider
from lloom.infra.llm.mock_provider import MOCK_MODELS, MockProvider
from lloom.infra.llm.openrouter_provider import OpenRouterProvider

__all__ = ["AnthropicProvider", "MOCK_MODELS", "MockProvider", "OpenRouterProvider"]
