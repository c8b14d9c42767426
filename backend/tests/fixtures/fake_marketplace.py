"""
Fake marketplace client for deterministic testing.

WHAT: In-memory MarketplaceClient with scripted pages and failures
WHY: Test the sync layer without network, and control completion order
HOW: Implement the MarketplaceClient protocol; optional gates hold a call
     until the test releases it
"""

import asyncio
from collections import deque
from typing import Callable, Dict, List

from barter_inbox.marketplace.types import (
    MarketplaceError,
    MarketplaceStatus,
    MessagePage,
    SendAck,
    TransactionPage,
)


class FakeMarketplaceClient:
    """
    Fake marketplace client.

    Pages are looked up when a call starts (request semantics); a held call
    then waits on its gate before returning what it captured.
    """

    def __init__(self, user_id: str = "viewer-1"):
        self.user_id = user_id
        self.transaction_pages: Dict[str, TransactionPage] = {}
        self.message_pages: Dict[str, MessagePage] = {}

        self.fail_current_user: MarketplaceError | None = None
        self.fail_transactions: MarketplaceError | None = None
        self.fail_messages: MarketplaceError | None = None
        self.fail_send: MarketplaceError | None = None

        # Runs after a successful send, e.g. to add the new message server-side
        self.on_send: Callable[[str, str], None] | None = None

        self.calls: List[tuple] = []
        self.sent: List[tuple[str, str]] = []
        self._transaction_gates: deque[asyncio.Event] = deque()

    def hold_transactions(self) -> asyncio.Event:
        """Make the next query_transactions call wait until the event is set."""
        gate = asyncio.Event()
        self._transaction_gates.append(gate)
        return gate

    async def ping(self) -> MarketplaceStatus:
        return MarketplaceStatus(available=True, base_url="http://fake-marketplace")

    async def show_current_user(self) -> str:
        self.calls.append(("show_current_user",))
        if self.fail_current_user:
            raise self.fail_current_user
        return self.user_id

    async def query_transactions(self, role, *, include, last_transitions=None) -> TransactionPage:
        self.calls.append(("query_transactions", role, tuple(include), tuple(last_transitions or ())))
        gate = self._transaction_gates.popleft() if self._transaction_gates else None
        error = self.fail_transactions
        page = self.transaction_pages.get(role, TransactionPage())
        snapshot = TransactionPage(list(page.transactions), list(page.included))

        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)

        if error:
            raise error
        return snapshot

    async def query_messages(self, transaction_id, *, include=None) -> MessagePage:
        self.calls.append(("query_messages", transaction_id))
        await asyncio.sleep(0)
        if self.fail_messages:
            raise self.fail_messages
        page = self.message_pages.get(transaction_id, MessagePage())
        return MessagePage(list(page.messages), list(page.included))

    async def send_message(self, transaction_id: str, content: str) -> SendAck:
        self.calls.append(("send_message", transaction_id, content))
        await asyncio.sleep(0)
        if self.fail_send:
            raise self.fail_send
        self.sent.append((transaction_id, content))
        if self.on_send:
            self.on_send(transaction_id, content)
        return SendAck(transaction_id=transaction_id, message_id=f"sent-{len(self.sent)}")

    def call_names(self) -> List[str]:
        return [c[0] for c in self.calls]
