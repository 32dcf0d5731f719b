"""Internal ChatSpace entity for lloom.

This module contains the internal Space domain model with business logic.
"""

from dataclasses import dataclass, field

from lloom.models.message import ChatMessage
from lloom.models.space import SpaceDTO

__all__ = [
    "ChatSpace",
]


@dataclass
class ChatSpace:
    """Internal ChatSpace entity with business logic.

    This is the mutable representation owned by the registry.
    Convert to SpaceDTO before handing it to callers.
    """

    id: str
    selected_model: str
    messages: list[ChatMessage] = field(default_factory=list)
    loading: bool = False
    error: str | None = None
    system_prompt: str = ""
    generation: int = 0

    def start_submission(self, message: ChatMessage) -> None:
        """Append the outbound user message and mark the space busy."""
        self.messages.append(message)
        self.loading = True
        self.error = None

    def add_response(self, message: ChatMessage) -> None:
        """Append an assistant reply and settle the space."""
        self.messages.append(message)
        self.loading = False
        self.error = None

    def fail(self, reason: str) -> None:
        """Settle the space with an error, keeping history untouched."""
        self.loading = False
        self.error = reason

    def reset(self) -> None:
        """Wipe history and error.

        Loading state, model and system prompt survive a reset.
        """
        self.messages = []
        self.error = None
        self.generation += 1

    def to_dto(self) -> SpaceDTO:
        """Convert to immutable snapshot."""
        return SpaceDTO(
            id=self.id,
            messages=tuple(self.messages),
            loading=self.loading,
            error=self.error,
            selected_model=self.selected_model,
            system_prompt=self.system_prompt,
            generation=self.generation,
        )

    @classmethod
    def from_dto(cls, dto: SpaceDTO) -> "ChatSpace":
        """Create from snapshot."""
        return cls(
            id=dto.id,
            selected_model=dto.selected_model,
            messages=list(dto.messages),
            loading=dto.loading,
            error=dto.error,
            system_prompt=dto.system_prompt,
            generation=dto.generation,
        )
