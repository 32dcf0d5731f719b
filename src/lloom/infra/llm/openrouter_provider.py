"""OpenRouter LLM provider for lloom.

OpenRouter exposes an OpenAI-compatible API, so this provider drives it
through the official OpenAI SDK with a different base URL.
"""

from typing import Any, Self

from openai import AsyncOpenAI, OpenAIError

from lloom.config import TransportSettings
from lloom.errors import TransportError
from lloom.interfaces.catalog import ModelCatalogInterface
from lloom.interfaces.transport import TransportInterface
from lloom.logging import get_logger
from lloom.models.catalog import ModelDescriptor
from lloom.models.dispatch import TransportResponse

__all__ = [
    "OpenRouterProvider",
]

logger = get_logger(__name__)


class OpenRouterProvider(TransportInterface, ModelCatalogInterface):
    """OpenRouter implementation of transport and catalog interfaces.

    Works against any OpenAI-compatible endpoint configured through
    base_url.
    """

    config_class = TransportSettings

    def __init__(self, settings: TransportSettings) -> None:
        """Initialize OpenRouter provider.

        Args:
            settings: Transport configuration settings
        """
        self._settings = settings
        api_key = settings.api_key.get_secret_value() if settings.api_key else None
        headers = {"X-Title": settings.app_title}
        if settings.referer:
            headers["HTTP-Referer"] = settings.referer
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=settings.base_url,
            default_headers=headers,
        )

    @classmethod
    async def from_config(cls, config: TransportSettings) -> Self:
        """Factory method for Lloom instantiation.

        Args:
            config: Transport settings

        Returns:
            OpenRouterProvider instance
        """
        return cls(config)

    @classmethod
    async def from_dict(cls, config: dict[str, Any]) -> Self:
        """Factory method for custom config dict.

        Args:
            config: Dictionary with transport settings

        Returns:
            OpenRouterProvider instance
        """
        return cls(TransportSettings(**config))

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    # Catalog interface
    async def list_models(self) -> list[ModelDescriptor]:
        """Fetch the endpoint's model list."""
        models: list[ModelDescriptor] = []
        try:
            async for model in self._client.models.list():
                # OpenRouter adds name/description/context_length to the OpenAI schema
                models.append(
                    ModelDescriptor(
                        id=model.id,
                        name=getattr(model, "name", None) or model.id,
                        description=getattr(model, "description", None) or "",
                        context_length=getattr(model, "context_length", None) or 0,
                    )
                )
        except OpenAIError as e:
            raise TransportError(f"Failed to fetch models: {e}") from e
        logger.info("models_fetched", count=len(models))
        return models

    # Transport interface
    async def complete(
        self,
        content: str,
        model_id: str,
        system_prompt: str | None = None,
    ) -> TransportResponse:
        """Send one user message through chat completions."""
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": content})

        try:
            response = await self._client.chat.completions.create(
                model=model_id,
                messages=messages,  # type: ignore[arg-type]
                max_tokens=self._settings.max_tokens,
            )
        except OpenAIError as e:
            raise TransportError(str(e), model_id=model_id) from e

        if not response.choices:
            raise TransportError("Model returned no choices", model_id=model_id)
        return TransportResponse(
            content=response.choices[0].message.content or "",
            model_id=response.model or model_id,
        )
