"""Anthropic LLM provider for lloom.

This module provides the Anthropic implementation of transport and catalog
interfaces, talking to the Messages API directly rather than through
OpenRouter.
"""

from typing import Any, Self

from anthropic import AnthropicError, AsyncAnthropic

from lloom.config import TransportSettings
from lloom.errors import TransportError
from lloom.interfaces.catalog import ModelCatalogInterface
from lloom.interfaces.transport import TransportInterface
from lloom.logging import get_logger
from lloom.models.catalog import ModelDescriptor
from lloom.models.dispatch import TransportResponse

__all__ = [
    "AnthropicProvider",
]

logger = get_logger(__name__)


class AnthropicProvider(TransportInterface, ModelCatalogInterface):
    """Anthropic implementation of transport and catalog interfaces.

    Model ids are Anthropic's own (e.g. "claude-sonnet-4-20250514"),
    not OpenRouter's vendor-prefixed ids.
    """

    config_class = TransportSettings

    def __init__(self, settings: TransportSettings) -> None:
        """Initialize Anthropic provider.

        Args:
            settings: Transport configuration settings
        """
        self._settings = settings
        api_key = settings.api_key.get_secret_value() if settings.api_key else None
        self._client = AsyncAnthropic(api_key=api_key)

    @classmethod
    async def from_config(cls, config: TransportSettings) -> Self:
        """Factory method for Lloom instantiation.

        Args:
            config: Transport settings

        Returns:
            AnthropicProvider instance
        """
        return cls(config)

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Factory method for custom config dict.

        Args:
            config: Dictionary with transport settings

        Returns:
            AnthropicProvider instance
        """
        return cls(TransportSettings(**config))

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    async def list_models(self) -> list[ModelDescriptor]:
        """Fetch the models available to this API key."""
        models: list[ModelDescriptor] = []
        try:
            async for model in self._client.models.list():
                models.append(ModelDescriptor(id=model.id, name=model.display_name))
        except AnthropicError as e:
            raise TransportError(f"Failed to fetch models: {e}") from e
        logger.info("models_fetched", count=len(models))
        return models

    async def complete(
        self,
        content: str,
        model_id: str,
        system_prompt: str | None = None,
    ) -> TransportResponse:
        """Send one user message through the Messages API."""
        kwargs: dict[str, Any] = {
            "model": model_id,
            "max_tokens": self._settings.max_tokens,
            "messages": [{"role": "user", "content": content}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = await self._client.messages.create(**kwargs)
        except AnthropicError as e:
            raise TransportError(str(e), model_id=model_id) from e

        text = "".join(block.text for block in response.content if block.type == "text")
        return TransportResponse(content=text, model_id=response.model or model_id)
