"""
Included-resource resolution for transaction queries.

WHAT: Build id lookup maps from the heterogeneous "included" resources
WHY: Transactions only carry relationship references; titles, names and
     message bodies live in the included list
HOW: One pass over the records, dispatching on the type discriminator
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from pydantic import TypeAdapter, ValidationError

from ..marketplace.types import Resource, resource_id
from ..models.messaging import DEFAULT_DISPLAY_NAME, Message
from ..utils.logger import get_logger

logger = get_logger(__name__)

_timestamp_adapter = TypeAdapter(datetime)


@dataclass
class ResolvedResources:
    """Lookup maps keyed by resource id."""
    listing_titles: dict[str, str] = field(default_factory=dict)
    display_names: dict[str, str] = field(default_factory=dict)
    messages: dict[str, Message] = field(default_factory=dict)


def _relationship_data(record: Resource, name: str) -> Any:
    relationships = record.get("relationships")
    if not isinstance(relationships, dict):
        return None
    rel = relationships.get(name)
    return rel.get("data") if isinstance(rel, dict) else None


def relationship_id(record: Resource, name: str) -> str | None:
    """Id of a to-one relationship, or None when absent/malformed."""
    data = _relationship_data(record, name)
    if not isinstance(data, dict):
        return None
    return resource_id(data.get("id"))


def relationship_ids(record: Resource, name: str) -> list[str]:
    """Ids of a to-many relationship in reference order."""
    data = _relationship_data(record, name)
    if not isinstance(data, list):
        return []
    ids = []
    for ref in data:
        if isinstance(ref, dict):
            ref_id = resource_id(ref.get("id"))
            if ref_id:
                ids.append(ref_id)
    return ids


def parse_timestamp(value: Any) -> datetime | None:
    """ISO-8601 string (or datetime) to datetime; None when unparseable."""
    if value is None:
        return None
    try:
        return _timestamp_adapter.validate_python(value)
    except ValidationError:
        return None


def display_name(user: Resource) -> str:
    """
    Derive a user's display name.

    Order: publicData.displayName, profile.displayName, "first last",
    then the "User" placeholder.
    """
    profile: dict[str, Any] = (user.get("attributes") or {}).get("profile") or {}
    public_data = profile.get("publicData") or {}

    for candidate in (public_data.get("displayName"), profile.get("displayName")):
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()

    first = profile.get("firstName") or ""
    last = profile.get("lastName") or ""
    full = f"{first} {last}".strip()
    return full or DEFAULT_DISPLAY_NAME


def parse_message(record: Resource) -> Message | None:
    """
    Convert a message resource into a Message.

    Returns None for records without an id or a parseable timestamp.
    """
    msg_id = resource_id(record.get("id"))
    if not msg_id:
        return None
    attributes = record.get("attributes") or {}
    try:
        return Message(
            id=msg_id,
            content=attributes.get("content") or "",
            sender_id=relationship_id(record, "sender") or "",
            created_at=attributes.get("createdAt"),
        )
    except ValidationError:
        logger.debug(f"Skipping malformed message resource {msg_id}")
        return None


def parse_messages(records: Iterable[Resource]) -> list[Message]:
    """Parse message resources, dropping malformed ones, preserving order."""
    messages = []
    for record in records or []:
        if not isinstance(record, dict):
            logger.debug(f"Skipping non-object message record: {record!r}")
            continue
        if record.get("type", "message") != "message":
            continue
        message = parse_message(record)
        if message is not None:
            messages.append(message)
    return messages


def resolve_included(included: Iterable[Resource]) -> ResolvedResources:
    """
    Build lookup maps from included resources.

    WHAT: id -> listing title, id -> display name, id -> message
    WHY: Conversation builder resolves relationship references against these
    HOW: Dispatch on "type"; unknown types and records without id are skipped

    Pure function of its input: safe to call again on every fetch.

    Args:
        included: Included resources from a transaction or message query

    Returns:
        ResolvedResources lookup maps
    """
    resolved = ResolvedResources()
    skipped = 0

    for record in included or []:
        if not isinstance(record, dict):
            skipped += 1
            continue
        rtype = record.get("type")
        rid = resource_id(record.get("id"))
        if not rid:
            skipped += 1
            continue

        if rtype == "listing":
            title = (record.get("attributes") or {}).get("title")
            if title:
                resolved.listing_titles[rid] = title
        elif rtype == "user":
            resolved.display_names[rid] = display_name(record)
        elif rtype == "message":
            message = parse_message(record)
            if message is not None:
                resolved.messages[rid] = message
            else:
                skipped += 1

    logger.debug(
        f"Resolved {len(resolved.listing_titles)} listings, "
        f"{len(resolved.display_names)} users, {len(resolved.messages)} messages "
        f"({skipped} skipped)"
    )
    return resolved
