"""Model catalog interface for lloom."""

from typing import Protocol, runtime_checkable

from lloom.models.catalog import ModelDescriptor

__all__ = [
    "ModelCatalogInterface",
]


@runtime_checkable
class ModelCatalogInterface(Protocol):
    """Contract for listing the models spaces can be bound to."""

    async def list_models(self) -> list[ModelDescriptor]:
        """Fetch available models.

        Returns:
            Model descriptors in display order; the first one is the
            default for newly created spaces
        """
        ...
