"""Model catalog models for lloom."""

from pydantic import BaseModel, Field

__all__ = [
    "ModelDescriptor",
]


class ModelDescriptor(BaseModel, frozen=True):
    """Read-only description of a model a space can be bound to.

    Attributes:
        id: Identifier used to address the transport
        name: Human-readable display name
        description: Short description shown in model pickers
        context_length: Maximum context size in tokens
    """

    id: str
    name: str
    description: str = ""
    context_length: int = Field(default=0, ge=0)
