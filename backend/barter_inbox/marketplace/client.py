"""
Marketplace client protocol definition.

WHAT: Abstract interface for the remote marketplace API
WHY: Decouple the sync layer from the concrete HTTP client
HOW: Use Protocol to define the async query/send operations
"""

from typing import Protocol

from ..models.messaging import Role
from .types import MarketplaceStatus, MessagePage, SendAck, TransactionPage


class MarketplaceClient(Protocol):
    """Protocol defining the operations the messaging layer consumes."""

    async def ping(self) -> MarketplaceStatus:
        """Check marketplace API reachability."""
        ...

    async def show_current_user(self) -> str:
        """Return the id of the signed-in user."""
        ...

    async def query_transactions(
        self,
        role: Role,
        *,
        include: list[str],
        last_transitions: list[str] | None = None
    ) -> TransactionPage:
        """Query the viewer's transactions for one role."""
        ...

    async def query_messages(
        self,
        transaction_id: str,
        *,
        include: list[str] | None = None
    ) -> MessagePage:
        """Query the messages of one transaction."""
        ...

    async def send_message(self, transaction_id: str, content: str) -> SendAck:
        """Post a message into a transaction thread."""
        ...
