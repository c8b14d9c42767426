"""
Message send coordination.

WHAT: Validate, submit, then pull authoritative post-send state
WHY: Server assigns id, timestamp and ordering; an optimistic local copy
     would be a second source of truth next to the history cache
HOW: Reject blank input before any network call, send, then run the
     conversation-list and thread refreshes concurrently and await both
"""

import asyncio
from typing import Awaitable, Callable

from ..marketplace.client import MarketplaceClient
from ..marketplace.types import SendAck
from ..utils.exceptions import MessageValidationException
from ..utils.logger import get_logger

logger = get_logger(__name__)


class SendCoordinator:
    """Send a message and refresh list + thread afterwards."""

    def __init__(
        self,
        client: MarketplaceClient,
        refresh_conversations: Callable[[], Awaitable[None]],
        refresh_thread: Callable[[str], Awaitable[None]],
    ):
        """
        Args:
            client: Marketplace client used for the send call
            refresh_conversations: Re-fetches the conversation list for the active role
            refresh_thread: Re-fetches one conversation's messages
        """
        self.client = client
        self.refresh_conversations = refresh_conversations
        self.refresh_thread = refresh_thread

    @staticmethod
    def validate(conversation_id: str | None, content: str | None) -> str:
        """
        Check send input and return the trimmed content.

        Raises:
            MessageValidationException: No conversation, or blank content
        """
        if not conversation_id:
            raise MessageValidationException("No conversation selected", field="conversation_id")
        trimmed = (content or "").strip()
        if not trimmed:
            raise MessageValidationException("Message content is empty", field="content")
        return trimmed

    async def send(self, conversation_id: str | None, content: str | None) -> SendAck:
        """
        Send a message into a conversation.

        Args:
            conversation_id: Transaction id of the thread
            content: Raw user input

        Returns:
            SendAck from the marketplace

        Raises:
            MessageValidationException: Rejected before any network call
            MarketplaceError: The send itself failed (no refresh is attempted)
        """
        trimmed = self.validate(conversation_id, content)

        ack = await self.client.send_message(conversation_id, trimmed)
        logger.info(f"Sent message to {conversation_id}; refreshing list and thread")

        await asyncio.gather(
            self.refresh_conversations(),
            self.refresh_thread(conversation_id),
        )
        return ack
