"""Exceptions raised by lloom."""

__all__ = [
    "LloomError",
    "TransportError",
]


class LloomError(Exception):
    """Base class for lloom errors."""


class TransportError(LloomError):
    """Raised by a transport when a model call cannot produce a response.

    The message is surfaced verbatim as the space's error text.
    """

    def __init__(self, message: str, model_id: str | None = None) -> None:
        super().__init__(message)
        self.model_id = model_id
