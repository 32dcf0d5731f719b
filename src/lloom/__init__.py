"""lloom - Send one message to many language models side by side.

This package provides tools for:
- Managing independent chat spaces, each bound to its own model and system prompt
- Broadcasting a message to every space (or one) concurrently, with per-space
  error isolation
- Exporting conversation histories as readable transcripts

Example usage:
    from lloom import Lloom, OpenRouterProvider

    # Config loaded from .env automatically
    async with Lloom(OpenRouterProvider) as app:
        await app.load_available_models()
        app.add_space()
        outcomes = await app.send_message("What is a monad?")
        transcript = app.export_all()
"""

__version__ = "0.1.0"

# Errors
from lloom.errors import LloomError, TransportError

# Implementations
from lloom.infra.llm.anthropic_provider import AnthropicProvider
from lloom.infra.llm.mock_provider import MockProvider
from lloom.infra.llm.openrouter_provider import OpenRouterProvider

# Interfaces
from lloom.interfaces.catalog import ModelCatalogInterface
from lloom.interfaces.transport import TransportInterface
from lloom.orchestrator import Lloom

# Core services
from lloom.services.dispatch import DispatchEngine
from lloom.services.history_formatter import HistoryFormatter
from lloom.services.space_registry import SpaceRegistry

__all__ = [  # noqa: RUF022
    # Orchestrator
    "Lloom",
    # Core services
    "DispatchEngine",
    "HistoryFormatter",
    "SpaceRegistry",
    # Implementations
    "AnthropicProvider",
    "MockProvider",
    "OpenRouterProvider",
    # Interfaces
    "ModelCatalogInterface",
    "TransportInterface",
    # Errors
    "LloomError",
    "TransportError",
]
