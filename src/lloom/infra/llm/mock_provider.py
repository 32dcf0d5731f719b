"""Mock LLM provider for lloom.

Serves a fixed model catalog and canned replies after a random delay,
so the whole application can run without an API key.
"""

import asyncio
import random
from typing import Any, Self

from lloom.config import TransportSettings
from lloom.interfaces.catalog import ModelCatalogInterface
from lloom.interfaces.transport import TransportInterface
from lloom.logging import get_logger
from lloom.models.catalog import ModelDescriptor
from lloom.models.dispatch import TransportResponse

__all__ = [
    "MOCK_MODELS",
    "MockProvider",
]

logger = get_logger(__name__)

MOCK_MODELS: tuple[ModelDescriptor, ...] = (
    ModelDescriptor(
        id="anthropic/claude-3-opus",
        name="Claude 3 Opus",
        description="Anthropic's flagship model. Strong at accuracy and advanced reasoning.",
        context_length=200000,
    ),
    ModelDescriptor(
        id="anthropic/claude-3-sonnet",
        name="Claude 3 Sonnet",
        description="Balanced high-performance model suited to most tasks.",
        context_length=180000,
    ),
    ModelDescriptor(
        id="google/gemini-1.5-pro",
        name="Gemini 1.5 Pro",
        description="Google's multimodal model. Handles many kinds of data.",
        context_length=1000000,
    ),
    ModelDescriptor(
        id="openai/gpt-4o",
        name="GPT-4o",
        description="OpenAI's general-purpose model for a broad range of tasks.",
        context_length=128000,
    ),
    ModelDescriptor(
        id="meta-llama/llama-3-70b-instruct",
        name="Llama 3 70B",
        description="Meta's large open model with strong all-round performance.",
        context_length=8192,
    ),
    ModelDescriptor(
        id="mistralai/mistral-large",
        name="Mistral Large",
        description="Mistral's largest model. Fast, high-quality inference.",
        context_length=32768,
    ),
)


class MockProvider(TransportInterface, ModelCatalogInterface):
    """Offline implementation of transport and catalog interfaces.

    Replies name the addressed model and echo the user's message.
    The reported model is the display name when the id is known.
    """

    config_class = TransportSettings

    def __init__(self, settings: TransportSettings) -> None:
        """Initialize mock provider.

        Args:
            settings: Transport settings (only the mock delays are used)
        """
        self._min_delay = max(0.0, settings.mock_min_delay)
        self._max_delay = max(self._min_delay, settings.mock_max_delay)
        self._names = {model.id: model.name for model in MOCK_MODELS}

    @classmethod
    async def from_config(cls, config: TransportSettings) -> Self:
        """Factory method for Lloom instantiation."""
        return cls(config)

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Factory method for custom config dict."""
        return cls(TransportSettings(**config))

    async def close(self) -> None:
        """Close resources (no-op for the mock)."""
        pass

    async def list_models(self) -> list[ModelDescriptor]:
        logger.info("using_mock_models")
        return list(MOCK_MODELS)

    async def complete(
        self,
        content: str,
        model_id: str,
        system_prompt: str | None = None,
    ) -> TransportResponse:
        await asyncio.sleep(random.uniform(self._min_delay, self._max_delay))

        model = self._names.get(model_id, model_id)
        reply = f"This is a response from {model}:\n\nAbout {content}. This is mock data."
        if system_prompt:
            reply += f"\n\n(System prompt: {system_prompt})"
        return TransportResponse(content=reply, model_id=model)
