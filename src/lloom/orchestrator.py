"""Lloom orchestrator for multi-space chat.

This module provides the main entry point for the lloom package, wiring
the space registry, dispatch engine and history formatter to a transport
implementation.
"""

import logging
from collections.abc import Callable
from datetime import timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from lloom.config import LloomConfig, TransportSettings
from lloom.infra.llm.anthropic_provider import AnthropicProvider
from lloom.infra.llm.mock_provider import MockProvider
from lloom.infra.llm.openrouter_provider import OpenRouterProvider
from lloom.interfaces.catalog import ModelCatalogInterface
from lloom.interfaces.transport import TransportInterface
from lloom.logging import configure_logging, get_logger
from lloom.models.catalog import ModelDescriptor
from lloom.models.dispatch import DispatchOutcome
from lloom.models.space import SpaceDTO
from lloom.services.dispatch import DispatchEngine
from lloom.services.history_formatter import HistoryFormatter
from lloom.services.space_registry import RegistryListener, SpaceRegistry

__all__ = ["Lloom"]

logger = get_logger(__name__)


class Lloom:
    """Main orchestrator for lloom chat spaces.

    Accepts implementation classes. Config is loaded from .env automatically.
    When no transport class is given, one is picked from the config: the mock
    provider if no API key is set, otherwise the configured provider.

    Example:
        async with Lloom() as app:
            await app.load_available_models()  # also creates the first space
            app.add_space()
            await app.send_message("Explain monads in one sentence")
            print(app.export_all())
    """

    def __init__(
        self,
        transport_class: type[TransportInterface] | None = None,
        catalog_class: type[ModelCatalogInterface] | None = None,
        *,
        config: LloomConfig | None = None,
        transport_custom_config: dict[str, Any] | None = None,
        catalog_custom_config: dict[str, Any] | None = None,
    ) -> None:
        """Initialize Lloom with implementation classes.

        Args:
            transport_class: Transport implementation class (chosen from config if None)
            catalog_class: Model catalog implementation class (defaults to transport_class)
            config: Settings (loaded from environment if None)
            transport_custom_config: Custom config dict if transport_class.config_class is None
            catalog_custom_config: Custom config dict if catalog_class.config_class is None
        """
        self._config = config or LloomConfig()
        if self._config.log_level is not None or self._config.log_json is not None:
            configure_logging(
                level=self._config.log_level or logging.INFO,
                json_output=bool(self._config.log_json),
            )

        self._transport_class = transport_class or self._default_transport_class()
        self._catalog_class = catalog_class or self._transport_class
        self._transport_custom_config = transport_custom_config
        self._catalog_custom_config = catalog_custom_config

        # Instances (created on connect)
        self._transport: TransportInterface | None = None
        self._catalog: ModelCatalogInterface | None = None
        self._engine: DispatchEngine | None = None

        self._registry = SpaceRegistry()
        self._formatter = HistoryFormatter(tz=self._resolve_timezone(self._config.export_timezone))

        self._loading_models = False
        self._connected = False

    def _default_transport_class(self) -> type[TransportInterface]:
        if self._config.use_mock:
            return MockProvider
        if self._config.transport.provider == "anthropic":
            return AnthropicProvider
        if self._config.transport.provider == "openrouter":
            return OpenRouterProvider
        raise ValueError(f"Unknown transport provider: {self._config.transport.provider!r}")

    @staticmethod
    def _resolve_timezone(name: str) -> tzinfo:
        if name.upper() == "UTC":
            return timezone.utc
        try:
            return ZoneInfo(name)
        except ZoneInfoNotFoundError as e:
            raise ValueError(f"Unknown export timezone: {name!r}") from e

    async def _instantiate_class(
        self,
        cls: type,
        custom_config: dict[str, Any] | None,
    ) -> Any:
        """Instantiate an implementation class.

        If cls.config_class is TransportSettings, the already loaded transport
        settings are reused. Any other config_class is instantiated (loads
        from .env). If cls.config_class is None, use custom_config dict.
        """
        config_class = getattr(cls, "config_class", None)

        if config_class is None:
            if custom_config is None:
                raise ValueError(
                    f"{cls.__name__} has config_class=None but no custom_config provided"
                )
            return await cls.from_dict(custom_config)
        if config_class is TransportSettings:
            return await cls.from_config(self._config.transport)
        return await cls.from_config(config_class())

    async def _connect(self) -> None:
        """Instantiate implementations and wire the dispatch engine."""
        if self._connected:
            return

        self._transport = await self._instantiate_class(
            self._transport_class, self._transport_custom_config
        )
        if self._catalog_class is self._transport_class:
            self._catalog = self._transport  # type: ignore[assignment]
        else:
            self._catalog = await self._instantiate_class(
                self._catalog_class, self._catalog_custom_config
            )

        self._engine = DispatchEngine(self._registry, self._transport)

        self._connected = True
        logger.info("lloom_connected", transport=self._transport_class.__name__)

    async def _disconnect(self) -> None:
        """Close provider connections."""
        if self._transport and hasattr(self._transport, "close"):
            await self._transport.close()
        if (
            self._catalog
            and self._catalog is not self._transport
            and hasattr(self._catalog, "close")
        ):
            await self._catalog.close()

        self._connected = False
        logger.info("lloom_disconnected")

    async def __aenter__(self) -> "Lloom":
        """Async context manager entry - connects automatically."""
        await self._connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit - disconnects automatically."""
        await self._disconnect()

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise RuntimeError("Lloom not connected. Use 'async with Lloom(...) as app:'")

    # === MODEL CATALOG ===

    async def load_available_models(self) -> list[ModelDescriptor]:
        """Fetch the model catalog and bootstrap the first space.

        A failed fetch is logged and leaves the previous catalog in place.

        Returns:
            The catalog now in effect
        """
        self._ensure_connected()
        assert self._catalog is not None

        self._loading_models = True
        try:
            models = await self._catalog.list_models()
        except Exception as e:
            logger.error("model_load_failed", error=str(e))
            return self._registry.available_models
        finally:
            self._loading_models = False

        self._registry.set_available_models(models)
        if models and len(self._registry) == 0:
            self._registry.create()
        return models

    @property
    def available_models(self) -> list[ModelDescriptor]:
        return self._registry.available_models

    @property
    def is_loading_models(self) -> bool:
        return self._loading_models

    @property
    def is_any_loading(self) -> bool:
        """True while the catalog is loading or any space awaits a reply."""
        return self._loading_models or self._registry.any_loading

    # === SPACES ===

    @property
    def registry(self) -> SpaceRegistry:
        return self._registry

    @property
    def spaces(self) -> list[SpaceDTO]:
        return self._registry.spaces()

    def get_space(self, space_id: str) -> SpaceDTO | None:
        return self._registry.get(space_id)

    def add_space(self) -> SpaceDTO | None:
        return self._registry.create()

    def remove_space(self, space_id: str) -> None:
        self._registry.remove(space_id)

    def clear_space(self, space_id: str) -> None:
        self._registry.clear(space_id)

    def change_model(self, space_id: str, model_id: str) -> None:
        self._registry.set_model(space_id, model_id)

    def set_system_prompt(self, space_id: str, text: str) -> None:
        self._registry.set_system_prompt(space_id, text)

    def subscribe(self, listener: RegistryListener) -> Callable[[], None]:
        return self._registry.subscribe(listener)

    # === MESSAGING ===

    async def send_message(
        self,
        content: str,
        target_space_id: str | None = None,
        *,
        system_prompt: str | None = None,
    ) -> list[DispatchOutcome]:
        """Send a message to one space or to all of them.

        Args:
            content: User message
            target_space_id: Only send to this space; all spaces if None
            system_prompt: Global system prompt (config default if None)

        Returns:
            Outcomes of every dispatched call
        """
        self._ensure_connected()
        assert self._engine is not None

        global_prompt = (
            system_prompt if system_prompt is not None else self._config.global_system_prompt
        )

        if target_space_id is None:
            return await self._engine.broadcast(content, global_prompt)

        outcome = await self._engine.dispatch_to_one(target_space_id, content, global_prompt)
        return [outcome] if outcome is not None else []

    # === EXPORT ===

    def export_space(self, space_id: str) -> str | None:
        """Render one space's history.

        Returns:
            Transcript, or None if the space is unknown or has no messages
        """
        space = self._registry.get(space_id)
        if space is None or not space.has_messages:
            return None
        return self._formatter.format_space(space)

    def export_all(self) -> str | None:
        """Render every non-empty space.

        Returns:
            Transcript, or None if there is nothing to export
        """
        return self._formatter.format_all(
            self._registry.spaces(),
            self._registry.available_models,
        )
