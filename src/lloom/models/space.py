"""Space snapshot models for lloom."""

from pydantic import BaseModel, Field

from lloom.models.message import ChatMessage

__all__ = [
    "SpaceDTO",
]


class SpaceDTO(BaseModel, frozen=True):
    """Immutable snapshot of a chat space.

    Snapshots are what the registry hands out to callers; editing
    a space always goes through the registry.

    Attributes:
        id: Opaque identifier, unique for the registry's lifetime
        messages: Conversation history in display order
        loading: True while a dispatch to this space is in flight
        error: Failure text from the last settled dispatch, if any
        selected_model: Model identifier requests are sent to
        system_prompt: Per-space system prompt ("" means no override)
        generation: Counter bumped every time the space is cleared
    """

    id: str
    messages: tuple[ChatMessage, ...] = ()
    loading: bool = False
    error: str | None = None
    selected_model: str
    system_prompt: str = ""
    generation: int = Field(default=0, ge=0)

    @property
    def has_messages(self) -> bool:
        """Check if this space has any history."""
        return len(self.messages) > 0
