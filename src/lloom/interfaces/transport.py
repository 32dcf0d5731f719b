"""Transport interface for lloom.

This module defines the Protocol for sending a single message to a
language model and receiving its reply.
"""

from typing import Protocol, runtime_checkable

from lloom.models.dispatch import TransportResponse

__all__ = [
    "TransportInterface",
]


@runtime_checkable
class TransportInterface(Protocol):
    """Contract for model calls.

    Implementations turn a (content, model id, system prompt) tuple
    into a model response. Failures are raised as exceptions whose
    text is shown to the user verbatim; TransportError is preferred.
    """

    async def complete(
        self,
        content: str,
        model_id: str,
        system_prompt: str | None = None,
    ) -> TransportResponse:
        """Send one user message to a model.

        Args:
            content: User message text
            model_id: Identifier of the model to address
            system_prompt: System prompt to send, or None to send none

        Returns:
            TransportResponse with the reply text and answering model

        Raises:
            TransportError: If the endpoint cannot produce a reply
        """
        ...
