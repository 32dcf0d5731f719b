"""Service layer for lloom.

This module exports the main service entry points.
"""

from lloom.services.dispatch import DEFAULT_FAILURE_REASON, DispatchEngine, resolve_system_prompt
from lloom.services.history_formatter import HistoryFormatter
from lloom.services.space_registry import RegistryListener, SpaceRegistry

__all__ = [
    "DEFAULT_FAILURE_REASON",
    "DispatchEngine",
    "HistoryFormatter",
    "RegistryListener",
    "SpaceRegistry",
    "resolve_system_prompt",
]
