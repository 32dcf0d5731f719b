"""Interface contracts for lloom.

This module exports all Protocol-based interfaces for dependency injection.
"""

from lloom.interfaces.catalog import ModelCatalogInterface
from lloom.interfaces.transport import TransportInterface

__all__ = [
    "ModelCatalogInterface",
    "TransportInterface",
]
