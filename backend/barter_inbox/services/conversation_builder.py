"""
Conversation building from transaction records.

WHAT: Turn transactions + resolved resources into Conversation records
WHY: The dashboard lists conversations, the marketplace stores transactions
HOW: Walk relationship references, pick the counterparty by role,
     assemble and order the embedded messages
"""

from typing import Iterable, List

from ..marketplace.types import Resource, resource_id
from ..models.messaging import (
    NO_MESSAGES_PLACEHOLDER,
    UNKNOWN_LISTING,
    UNKNOWN_USER,
    Conversation,
    Message,
    Role,
)
from ..utils.logger import get_logger
from .message_history import sort_messages
from .resource_resolver import ResolvedResources, parse_timestamp, relationship_id, relationship_ids

logger = get_logger(__name__)

# Relationship names on a transaction
COUNTERPARTY_RELATIONSHIP: dict[str, str] = {
    "offering": "customer",
    "requesting": "provider",
}

TRANSACTION_INCLUDES = ["listing", "provider", "customer", "messages"]


def counterparty_id(transaction: Resource, role: Role) -> str | None:
    """
    Id of the other party in a transaction.

    WHAT: The requester when offering, the provider when requesting
    WHY: A swapped branch silently attributes the thread to the viewer
    HOW: Role -> relationship name lookup

    Args:
        transaction: Transaction resource
        role: Viewer's active role

    Returns:
        Counterparty user id, or None if the relationship is missing
    """
    return relationship_id(transaction, COUNTERPARTY_RELATIONSHIP[role])


def collect_messages(transaction: Resource, resources: ResolvedResources) -> list[Message]:
    """
    Gather the messages a transaction references.

    Message relationship ids are resolved in reference order; the
    lastMessage pointer is appended when it is not already among them.
    Unresolvable ids are skipped.
    """
    gathered: list[Message] = []
    seen: set[str] = set()

    for msg_id in relationship_ids(transaction, "messages"):
        message = resources.messages.get(msg_id)
        if message is None or msg_id in seen:
            continue
        gathered.append(message)
        seen.add(msg_id)

    last_id = relationship_id(transaction, "lastMessage")
    if last_id and last_id not in seen:
        last = resources.messages.get(last_id)
        if last is not None:
            gathered.append(last)

    return sort_messages(gathered)


def build_conversation(transaction: Resource, resources: ResolvedResources, role: Role) -> Conversation:
    """
    Build one Conversation from a transaction.

    Missing relationships degrade to placeholders; this never raises on
    malformed relationship data.

    Args:
        transaction: Transaction resource with relationships
        resources: Lookup maps from resolve_included()
        role: Viewer's active role

    Returns:
        Conversation seen from `role`
    """
    tx_id = resource_id(transaction.get("id")) or ""
    listing_id = relationship_id(transaction, "listing") or ""
    other_id = counterparty_id(transaction, role) or ""

    messages = collect_messages(transaction, resources)
    if messages:
        last = messages[-1]
        last_message, last_message_time = last.content, last.created_at
    else:
        last_message = NO_MESSAGES_PLACEHOLDER
        last_message_time = parse_timestamp((transaction.get("attributes") or {}).get("createdAt"))

    return Conversation(
        id=tx_id,
        listing_id=listing_id,
        listing_title=resources.listing_titles.get(listing_id, UNKNOWN_LISTING),
        other_party_id=other_id,
        other_party_name=resources.display_names.get(other_id, UNKNOWN_USER),
        last_message=last_message,
        last_message_time=last_message_time,
        unread=False,
        messages=messages,
    )


def build_conversations(
    transactions: Iterable[Resource],
    resources: ResolvedResources,
    role: Role
) -> List[Conversation]:
    """
    Build the conversation list in list-fetch order.

    Transactions without an id are dropped; a transaction repeated within a
    page keeps its first occurrence so conversation ids stay unique.
    """
    conversations: List[Conversation] = []
    seen: set[str] = set()

    for transaction in transactions:
        if not isinstance(transaction, dict):
            logger.warning(f"Skipping non-object transaction record: {transaction!r}")
            continue
        conversation = build_conversation(transaction, resources, role)
        if not conversation.id:
            logger.warning("Skipping transaction without id")
            continue
        if conversation.id in seen:
            logger.debug(f"Duplicate transaction {conversation.id} in page, keeping first")
            continue
        seen.add(conversation.id)
        conversations.append(conversation)

    logger.debug(f"Built {len(conversations)} conversations for role={role}")
    return conversations


def filter_conversations(conversations: Iterable[Conversation], query: str | None) -> List[Conversation]:
    """Case-insensitive search on listing title or counterparty name."""
    conversations = list(conversations)
    needle = (query or "").strip().lower()
    if not needle:
        return conversations
    return [
        c for c in conversations
        if needle in c.listing_title.lower() or needle in c.other_party_name.lower()
    ]


def is_own_message(message: Message, viewer_id: str | None) -> bool:
    return bool(viewer_id) and message.sender_id == viewer_id
