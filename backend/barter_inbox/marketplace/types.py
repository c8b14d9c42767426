"""
Marketplace client types, dataclasses, and exceptions.

WHAT: Standard type definitions for marketplace API interactions
WHY: Ensure consistent contracts between the client and the sync layer
HOW: Dataclasses for pages/status, plain dicts for JSON:API resources, custom exceptions
"""

from typing import Any
from dataclasses import dataclass, field


# Raw JSON:API resource record: {"id", "type", "attributes", "relationships"}
Resource = dict[str, Any]


def resource_id(ref: Any) -> str | None:
    """Plain JSON carries string ids, the SDK wraps them as {"uuid": ...}."""
    if isinstance(ref, dict):
        ref = ref.get("uuid")
    return str(ref) if ref else None


@dataclass
class TransactionPage:
    """One page of a transaction query with its included resources."""
    transactions: list[Resource] = field(default_factory=list)
    included: list[Resource] = field(default_factory=list)


@dataclass
class MessagePage:
    """One page of a per-transaction message query."""
    messages: list[Resource] = field(default_factory=list)
    included: list[Resource] = field(default_factory=list)


@dataclass
class SendAck:
    """Acknowledgement of a sent message."""
    transaction_id: str
    message_id: str | None = None


@dataclass
class MarketplaceStatus:
    """Health status of the marketplace API."""
    available: bool
    base_url: str
    error: str | None = None


# Client exceptions
class MarketplaceError(Exception):
    """Base class for marketplace transport failures."""
    pass


class MarketplaceTimeoutError(MarketplaceError):
    """Request to the marketplace timed out."""
    pass


class MarketplaceUnavailableError(MarketplaceError):
    """Marketplace API is not reachable."""
    pass


class MarketplaceAuthError(MarketplaceError):
    """Access token missing, expired or not allowed."""
    pass


class MarketplaceResponseError(MarketplaceError):
    """Marketplace returned an invalid or error response."""
    pass
