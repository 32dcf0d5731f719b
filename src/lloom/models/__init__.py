"""Public DTO models for lloom.

This module exports all public data transfer objects.
"""

from lloom.models.catalog import ModelDescriptor
from lloom.models.dispatch import (
    DispatchFailure,
    DispatchOutcome,
    DispatchRequest,
    DispatchSuccess,
    TransportResponse,
)
from lloom.models.message import ChatMessage, MessageRole
from lloom.models.space import SpaceDTO

__all__ = [
    "ChatMessage",
    "DispatchFailure",
    "DispatchOutcome",
    "DispatchRequest",
    "DispatchSuccess",
    "MessageRole",
    "ModelDescriptor",
    "SpaceDTO",
    "TransportResponse",
]
