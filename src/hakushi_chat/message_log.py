"""
Ordered, deduplicated message log.

Order is first arrival. Ids are unique. A re-delivered id never moves or
overwrites the stored copy: first write wins. Edits arriving as ``update``
envelopes are governed by ``UpdatePolicy``; the default keeps the log
append-only.
"""

from typing import Iterable, Iterator, Optional

from hakushi_chat.models.message import ChatMessage


class UpdatePolicy:
    IGNORE = "ignore"    # append-only history, edits to known ids are dropped
    REPLACE = "replace"  # edits replace the stored copy in place


class MessageLog:
    def __init__(self) -> None:
        self._order: list[str] = []
        self._by_id: dict[str, ChatMessage] = {}

    def merge(self, message: ChatMessage) -> bool:
        """Append ``message`` unless its id is known or it has no content and no attachments."""
        if message.is_empty or message.id in self._by_id:
            return False
        self._by_id[message.id] = message
        self._order.append(message.id)
        return True

    def merge_all(self, messages: Iterable[ChatMessage]) -> list[ChatMessage]:
        """Merge in order; returns the messages that were newly inserted."""
        return [message for message in messages if self.merge(message)]

    def replace(self, message: ChatMessage) -> bool:
        """Swap the stored copy of a known id, keeping its position."""
        if message.is_empty or message.id not in self._by_id:
            return False
        self._by_id[message.id] = message
        return True

    def clear(self) -> None:
        self._order.clear()
        self._by_id.clear()

    def snapshot(self) -> tuple[ChatMessage, ...]:
        return tuple(self._by_id[mid] for mid in self._order)

    def get(self, message_id: str) -> Optional[ChatMessage]:
        return self._by_id.get(message_id)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._by_id

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self.snapshot())
