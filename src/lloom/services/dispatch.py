"""Dispatch engine for lloom.

This module fans one user message out to chat spaces and folds every
reply back into the space it belongs to.
"""

import asyncio
from collections.abc import Callable, Iterable

from lloom.interfaces.transport import TransportInterface
from lloom.logging import get_logger, space_context
from lloom.models.dispatch import (
    DispatchFailure,
    DispatchOutcome,
    DispatchRequest,
    DispatchSuccess,
    TransportResponse,
)
from lloom.models.message import ChatMessage, MessageRole
from lloom.models.space import SpaceDTO
from lloom.services.space_registry import SpaceRegistry
from lloom.utils.ids import MonotonicClock, generate_id

__all__ = [
    "DEFAULT_FAILURE_REASON",
    "DispatchEngine",
    "resolve_system_prompt",
]

logger = get_logger(__name__)

DEFAULT_FAILURE_REASON = "Failed to fetch response"


def resolve_system_prompt(
    space_prompt: str | None,
    global_prompt: str | None,
) -> str | None:
    """Pick the system prompt actually sent for a space.

    Args:
        space_prompt: The space's own system prompt
        global_prompt: Caller-supplied fallback

    Returns:
        The space prompt if it has non-whitespace text, else the global
        prompt if it has, else None
    """
    if space_prompt and space_prompt.strip():
        return space_prompt
    if global_prompt and global_prompt.strip():
        return global_prompt
    return None


class DispatchEngine:
    """Concurrent fan-out of user messages to chat spaces.

    Every target gets its own transport call. Calls run concurrently
    and settle independently: a failing call turns into that space's
    error text and never affects sibling calls.

    The user message is appended to each target and the target is
    marked loading before the first await, so observers see the
    submission before any reply can arrive.

    Overlapping submissions to the same space are not serialized; the
    last call to settle decides the final loading/error state.

    Example:
        engine = DispatchEngine(registry, transport)
        outcomes = await engine.broadcast("Hello", global_system_prompt="Be brief")
    """

    def __init__(
        self,
        registry: SpaceRegistry,
        transport: TransportInterface,
        clock: Callable[[], int] | None = None,
    ) -> None:
        """Initialize dispatch engine.

        Args:
            registry: Registry owning the spaces
            transport: Model call implementation
            clock: Millisecond timestamp source for new messages
        """
        self._registry = registry
        self._transport = transport
        self._clock = clock or MonotonicClock()

    async def broadcast(
        self,
        content: str,
        global_system_prompt: str | None = None,
    ) -> list[DispatchOutcome]:
        """Send a message to every current space.

        Args:
            content: User message; surrounding whitespace is stripped
            global_system_prompt: Fallback for spaces without a prompt

        Returns:
            One outcome per targeted space, in registry order. Empty if
            the content is blank or there are no spaces.
        """
        text = content.strip()
        if not text:
            logger.debug("dispatch_skipped", reason="empty_content")
            return []

        requests = self._begin(self._registry.spaces(), text, global_system_prompt)
        return await self._run(requests, text)

    async def dispatch_to_one(
        self,
        space_id: str,
        content: str,
        global_system_prompt: str | None = None,
    ) -> DispatchOutcome | None:
        """Send a message to a single space.

        Args:
            space_id: Target space
            content: User message; surrounding whitespace is stripped
            global_system_prompt: Fallback if the space has no prompt

        Returns:
            The outcome, or None if the content is blank or the space
            does not exist
        """
        text = content.strip()
        if not text:
            logger.debug("dispatch_skipped", reason="empty_content")
            return None

        space = self._registry.get(space_id)
        if space is None:
            logger.debug("dispatch_skipped", reason="unknown_space", space_id=space_id)
            return None

        outcomes = await self._run(self._begin([space], text, global_system_prompt), text)
        return outcomes[0] if outcomes else None

    def _begin(
        self,
        targets: Iterable[SpaceDTO],
        content: str,
        global_system_prompt: str | None,
    ) -> list[DispatchRequest]:
        """Record the user message on each target and plan its request.

        Runs without awaiting, so all targets flip to loading in the
        same event loop turn.
        """
        requests: list[DispatchRequest] = []
        for space in targets:
            message = ChatMessage(
                id=generate_id(),
                content=content,
                role=MessageRole.USER,
                timestamp=self._clock(),
            )
            if not self._registry.begin_submission(space.id, message):
                continue
            requests.append(
                DispatchRequest(
                    space_id=space.id,
                    model_id=space.selected_model,
                    system_prompt=resolve_system_prompt(space.system_prompt, global_system_prompt),
                    generation=space.generation,
                )
            )
        return requests

    async def _run(self, requests: list[DispatchRequest], content: str) -> list[DispatchOutcome]:
        if not requests:
            return []

        logger.info("dispatch_started", targets=len(requests))
        try:
            outcomes = await asyncio.gather(
                *(self._settle(request, content) for request in requests)
            )
        except asyncio.CancelledError:
            # branches cancelled before their first step never reach _settle
            for request in requests:
                self._registry.finish_stale(request.space_id)
            logger.info("dispatch_cancelled", targets=len(requests))
            raise

        failed = sum(1 for outcome in outcomes if isinstance(outcome, DispatchFailure))
        logger.info("dispatch_completed", targets=len(requests), failed=failed)
        return list(outcomes)

    async def _settle(self, request: DispatchRequest, content: str) -> DispatchOutcome:
        """Run one branch: call the transport, then reconcile. Only cancellation escapes."""
        with space_context(request.space_id, request.model_id):
            outcome = await self._call(request, content)
            self._reconcile(request, outcome)
        return outcome

    async def _call(self, request: DispatchRequest, content: str) -> DispatchOutcome:
        try:
            response = await self._transport.complete(
                content,
                request.model_id,
                request.system_prompt,
            )
            if not isinstance(response, TransportResponse):
                response = TransportResponse.model_validate(response)
        except Exception as e:
            reason = str(e) or DEFAULT_FAILURE_REASON
            logger.warning("dispatch_failed", error=reason)
            return DispatchFailure(space_id=request.space_id, reason=reason)

        return DispatchSuccess(
            space_id=request.space_id,
            content=response.content,
            model_id=response.model_id,
        )

    def _reconcile(self, request: DispatchRequest, outcome: DispatchOutcome) -> None:
        """Write a settled outcome into its space, unless the space moved on."""
        generation = self._registry.generation_of(request.space_id)
        if generation is None:
            logger.debug("settlement_discarded", reason="space_removed")
            return
        if generation != request.generation:
            self._registry.finish_stale(request.space_id)
            logger.debug("settlement_discarded", reason="space_cleared")
            return

        if isinstance(outcome, DispatchSuccess):
            reply = ChatMessage(
                id=generate_id(),
                content=outcome.content,
                role=MessageRole.ASSISTANT,
                timestamp=self._clock(),
                model=outcome.model_id,
            )
            self._registry.record_success(request.space_id, reply)
        else:
            self._registry.record_failure(request.space_id, outcome.reason)
