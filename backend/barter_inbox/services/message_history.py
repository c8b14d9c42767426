"""
Per-conversation message history cache.

WHAT: conversation id -> ordered messages, merged from two sources
WHY: Messages embedded in the transaction query and messages from the
     per-thread query are partial views of the same thread; neither may
     erase what the other already delivered
HOW: Union by message id, then stable sort by created_at
"""

from typing import Iterable

from ..models.messaging import Conversation, Message
from ..utils.logger import get_logger

logger = get_logger(__name__)


def sort_messages(messages: Iterable[Message]) -> list[Message]:
    """Ascending by created_at; ties keep arrival order (sorted() is stable)."""
    return sorted(messages, key=lambda m: m.created_at)


def merge_messages(existing: Iterable[Message], incoming: Iterable[Message]) -> list[Message]:
    """
    Union two message sequences by id and re-sort.

    A message present in both keeps its first position for tie-breaking and
    takes the incoming copy (messages are immutable server-side, so the copies
    are equal in practice).

    Args:
        existing: Messages already known
        incoming: Newly fetched messages

    Returns:
        Deduplicated, ordered list containing every id from both inputs
    """
    by_id: dict[str, Message] = {}
    for message in existing:
        by_id[message.id] = message
    for message in incoming:
        by_id[message.id] = message
    return sort_messages(by_id.values())


class MessageHistoryCache:
    """
    Keyed store of message histories for one UI session.

    Entries only grow within a session; the only way to shrink the cache is
    clear() (role switch, sign-out).
    """

    def __init__(self):
        self._histories: dict[str, list[Message]] = {}

    def merge(self, conversation_id: str, new_messages: Iterable[Message]) -> list[Message]:
        """
        Merge messages into a conversation's history.

        Args:
            conversation_id: Transaction id
            new_messages: Messages from either data source

        Returns:
            The updated history
        """
        incoming = list(new_messages)
        current = self._histories.get(conversation_id, [])
        merged = merge_messages(current, incoming)
        self._histories[conversation_id] = merged

        added = len(merged) - len(current)
        if added:
            logger.debug(f"Merged {added} new message(s) into {conversation_id} (total {len(merged)})")
        return list(merged)

    def get(self, conversation_id: str) -> list[Message]:
        return list(self._histories.get(conversation_id, []))

    def clear(self) -> None:
        count = len(self._histories)
        self._histories.clear()
        logger.debug(f"Cleared message history cache ({count} conversations)")

    def __contains__(self, conversation_id: str) -> bool:
        return conversation_id in self._histories

    def __len__(self) -> int:
        return len(self._histories)


def effective_messages(cache: MessageHistoryCache, conversation: Conversation | None) -> list[Message]:
    """
    Messages to render for a conversation.

    The cache wins once it holds anything for the conversation; otherwise the
    snapshot embedded in the Conversation is used.
    """
    if conversation is None:
        return []
    cached = cache.get(conversation.id)
    if cached:
        return cached
    return list(conversation.messages)
