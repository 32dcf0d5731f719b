"""Dispatch boundary models for lloom.

These frozen models are created per submission and never stored
in a space. They describe what was sent to the transport and how
each call settled.
"""

from typing import Literal

from pydantic import BaseModel, Field

__all__ = [
    "DispatchFailure",
    "DispatchOutcome",
    "DispatchRequest",
    "DispatchSuccess",
    "TransportResponse",
]


class TransportResponse(BaseModel, frozen=True):
    """Successful reply from a transport.

    Attributes:
        content: Generated text
        model_id: Model the endpoint reports as having answered
    """

    content: str
    model_id: str


class DispatchRequest(BaseModel, frozen=True):
    """One transport call planned for one space.

    Attributes:
        space_id: Target space
        model_id: Model selected on the space when the request was planned
        system_prompt: Effective system prompt (None means none is sent)
        generation: Space generation at planning time
    """

    space_id: str
    model_id: str
    system_prompt: str | None = None
    generation: int = 0


class DispatchSuccess(BaseModel, frozen=True):
    """Settlement of a request that produced a reply."""

    kind: Literal["success"] = "success"
    space_id: str
    content: str
    model_id: str


class DispatchFailure(BaseModel, frozen=True):
    """Settlement of a request whose transport call failed."""

    kind: Literal["failure"] = "failure"
    space_id: str
    reason: str = Field(description="Human-readable failure text")


DispatchOutcome = DispatchSuccess | DispatchFailure
