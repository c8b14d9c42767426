"""
Messaging domain models.

WHAT: Core data structures for messages, conversations and viewer roles
WHY: Consistent typing across resolver, builder, cache and API schemas
HOW: Pydantic v2 models; Role is a plain Literal like the other enums here
"""

from pydantic import BaseModel, Field, field_validator
from typing import Literal
from datetime import datetime, timezone


Role = Literal["offering", "requesting"]

ROLES: tuple[str, ...] = ("offering", "requesting")

# Dashboard tab names used by the web client
ROLE_ALIASES: dict[str, str] = {
    "giver": "offering",
    "seeker": "requesting",
    "provider": "offering",
    "customer": "requesting",
}

NO_MESSAGES_PLACEHOLDER = "No messages yet"
UNKNOWN_LISTING = "Unknown Listing"
UNKNOWN_USER = "Unknown User"
DEFAULT_DISPLAY_NAME = "User"


def as_utc(value: datetime | None) -> datetime | None:
    """Naive timestamps are taken as UTC so histories always compare."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_role(value: str | None) -> Role | None:
    """
    Normalize a role name or dashboard tab alias.

    Args:
        value: "offering", "requesting", or an alias such as "giver"/"seeker"

    Returns:
        Canonical role, or None if the value is not recognised
    """
    if not value:
        return None
    key = value.strip().lower()
    if key in ROLES:
        return key  # type: ignore[return-value]
    return ROLE_ALIASES.get(key)  # type: ignore[return-value]


class Message(BaseModel):
    """A message in a transaction thread. Immutable once created server-side."""

    id: str
    content: str = ""
    sender_id: str = ""
    created_at: datetime

    model_config = {"frozen": True}

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class Conversation(BaseModel):
    """One transaction seen from the viewer's current role."""

    id: str  # transaction id
    listing_id: str = ""
    listing_title: str = UNKNOWN_LISTING
    other_party_id: str = ""
    other_party_name: str = UNKNOWN_USER
    last_message: str = NO_MESSAGES_PLACEHOLDER
    last_message_time: datetime | None = None
    unread: bool = False
    messages: list[Message] = Field(default_factory=list)

    @field_validator("last_message_time")
    @classmethod
    def last_message_time_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class Notification(BaseModel):
    """Transient user-facing notice (toast)."""

    level: Literal["success", "error", "info"]
    message: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
