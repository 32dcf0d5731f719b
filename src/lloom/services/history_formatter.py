"""History formatter service for lloom.

This module renders space histories as plain-text transcripts.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone, tzinfo

from lloom.models.catalog import ModelDescriptor
from lloom.models.message import ChatMessage
from lloom.models.space import SpaceDTO

__all__ = [
    "HistoryFormatter",
]

RULE = "---"


class HistoryFormatter:
    """Service for exporting conversation history as markdown-ish text.

    Each message becomes a block:

        ### Assistant (openai/gpt-4o)
        2024-01-01 12:00:00 UTC

        <content>

    Blocks are separated by a horizontal rule.

    Example:
        formatter = HistoryFormatter()
        text = formatter.format_all(registry.spaces(), registry.available_models)
        if text is None:
            ...  # nothing to export
    """

    def __init__(self, tz: tzinfo = timezone.utc) -> None:
        """Initialize formatter.

        Args:
            tz: Timezone timestamps are rendered in
        """
        self._tz = tz

    def format_space(self, space: SpaceDTO) -> str:
        """Render one space's history.

        Args:
            space: Space snapshot

        Returns:
            Transcript text, or "" if the space has no messages
        """
        blocks = [self._format_message(message) for message in space.messages]
        return f"\n\n{RULE}\n\n".join(blocks)

    def format_all(
        self,
        spaces: Sequence[SpaceDTO],
        descriptors: Iterable[ModelDescriptor] = (),
    ) -> str | None:
        """Render every non-empty space as a titled section.

        Sections are titled with the display name of the space's model,
        falling back to its position ("Space 2") when the model is not
        in the catalog.

        Args:
            spaces: Space snapshots in display order
            descriptors: Model catalog used to resolve titles

        Returns:
            Combined transcript, or None if no space has messages
        """
        names = {descriptor.id: descriptor.name for descriptor in descriptors}

        sections = []
        for position, space in enumerate(spaces, start=1):
            if not space.has_messages:
                continue
            title = names.get(space.selected_model) or f"Space {position}"
            sections.append(f"## {title}\n\n{self.format_space(space)}")

        if not sections:
            return None
        return "\n\n".join(sections) + "\n"

    def _format_message(self, message: ChatMessage) -> str:
        if message.is_user:
            label = "User"
        elif message.model:
            label = f"Assistant ({message.model})"
        else:
            label = "Assistant"
        return f"### {label}\n{self._format_timestamp(message.timestamp)}\n\n{message.content}"

    def _format_timestamp(self, timestamp_ms: int) -> str:
        moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=self._tz)
        return moment.strftime("%Y-%m-%d %H:%M:%S %Z")
