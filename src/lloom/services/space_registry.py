"""Space registry service for lloom.

This module provides the state container holding every chat space.
"""

from collections.abc import Callable, Iterable

from lloom.domain.space import ChatSpace
from lloom.logging import get_logger
from lloom.models.catalog import ModelDescriptor
from lloom.models.message import ChatMessage
from lloom.models.space import SpaceDTO
from lloom.utils.ids import generate_id

__all__ = [
    "RegistryListener",
    "SpaceRegistry",
]

logger = get_logger(__name__)

RegistryListener = Callable[["SpaceRegistry"], None]


class SpaceRegistry:
    """State container for chat spaces.

    The registry performs no I/O. Every operation addressing an
    unknown space id is a silent no-op, because callers usually act
    on snapshots taken before some other event removed the space.

    Subscribers are notified synchronously after every mutation that
    actually changed state.

    Example:
        registry = SpaceRegistry()
        registry.set_available_models(models)
        space = registry.create()
        registry.set_system_prompt(space.id, "Be terse")
    """

    def __init__(self, available_models: Iterable[ModelDescriptor] = ()) -> None:
        self._spaces: dict[str, ChatSpace] = {}
        self._available_models: list[ModelDescriptor] = list(available_models)
        self._listeners: list[RegistryListener] = []

    # === MODEL CATALOG ===

    @property
    def available_models(self) -> list[ModelDescriptor]:
        """Models new spaces can be bound to."""
        return list(self._available_models)

    def set_available_models(self, models: Iterable[ModelDescriptor]) -> None:
        """Replace the resolved model catalog."""
        self._available_models = list(models)
        self._notify()

    # === SPACE LIFECYCLE ===

    def create(self) -> SpaceDTO | None:
        """Create a space bound to the first available model.

        Returns:
            Snapshot of the new space, or None if no models are available
        """
        if not self._available_models:
            logger.debug("space_create_skipped", reason="no_models")
            return None

        space = ChatSpace(id=generate_id(), selected_model=self._available_models[0].id)
        self._spaces[space.id] = space
        logger.info("space_created", space_id=space.id, model_id=space.selected_model)
        self._notify()
        return space.to_dto()

    def remove(self, space_id: str) -> None:
        """Delete a space. Removing an absent space does nothing."""
        if self._spaces.pop(space_id, None) is None:
            return
        logger.info("space_removed", space_id=space_id)
        self._notify()

    def clear(self, space_id: str) -> None:
        """Wipe a space's history and error."""
        space = self._spaces.get(space_id)
        if space is None:
            return
        space.reset()
        logger.info("space_cleared", space_id=space_id)
        self._notify()

    def set_model(self, space_id: str, model_id: str) -> None:
        """Select the model a space sends to.

        The id is not checked against the available models; restricting
        eligibility is up to the caller.
        """
        space = self._spaces.get(space_id)
        if space is None:
            return
        space.selected_model = model_id
        self._notify()

    def set_system_prompt(self, space_id: str, text: str) -> None:
        """Set a space's system prompt. Empty text means no override."""
        space = self._spaces.get(space_id)
        if space is None:
            return
        space.system_prompt = text
        self._notify()

    # === QUERIES ===

    def get(self, space_id: str) -> SpaceDTO | None:
        """Get a snapshot of one space."""
        space = self._spaces.get(space_id)
        return space.to_dto() if space else None

    def spaces(self) -> list[SpaceDTO]:
        """Get snapshots of all spaces in creation order."""
        return [space.to_dto() for space in self._spaces.values()]

    def space_ids(self) -> list[str]:
        """Get ids of all spaces in creation order."""
        return list(self._spaces)

    @property
    def any_loading(self) -> bool:
        """Check if any space has a dispatch in flight."""
        return any(space.loading for space in self._spaces.values())

    def __len__(self) -> int:
        return len(self._spaces)

    def __contains__(self, space_id: object) -> bool:
        return space_id in self._spaces

    # === RECONCILIATION (used by the dispatch engine) ===

    def begin_submission(self, space_id: str, message: ChatMessage) -> bool:
        """Append a user message, set loading and clear the error.

        Returns:
            True if the space exists
        """
        space = self._spaces.get(space_id)
        if space is None:
            return False
        space.start_submission(message)
        self._notify()
        return True

    def record_success(self, space_id: str, message: ChatMessage) -> bool:
        """Append an assistant reply and settle the space.

        Returns:
            True if the space exists
        """
        space = self._spaces.get(space_id)
        if space is None:
            return False
        space.add_response(message)
        self._notify()
        return True

    def record_failure(self, space_id: str, reason: str) -> bool:
        """Settle the space with an error.

        Returns:
            True if the space exists
        """
        space = self._spaces.get(space_id)
        if space is None:
            return False
        space.fail(reason)
        self._notify()
        return True

    def finish_stale(self, space_id: str) -> bool:
        """Settle a space without recording the outcome.

        Used when the space was cleared while a call was in flight.

        Returns:
            True if the space exists
        """
        space = self._spaces.get(space_id)
        if space is None:
            return False
        space.loading = False
        self._notify()
        return True

    def generation_of(self, space_id: str) -> int | None:
        """Get a space's clear counter, or None if it does not exist."""
        space = self._spaces.get(space_id)
        return space.generation if space else None

    # === SUBSCRIPTIONS ===

    def subscribe(self, listener: RegistryListener) -> Callable[[], None]:
        """Register a callback invoked after every state change.

        Args:
            listener: Called with this registry

        Returns:
            Function that removes the listener; calling it twice is harmless
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.warning("registry_listener_failed", error=str(e))
