"""
Messaging view controller.

WHAT: Owns the messaging view's shared state and wires the sync pieces
WHY: Conversation list and history cache must only be written from one
     place, with role and selection passed explicitly into pure builders
HOW: Generation-guarded list fetches, merge-only thread fetches,
     refetch-after-send via SendCoordinator, transient notifications
"""

from collections import deque
from typing import List, Optional

from ..core.config import settings
from ..marketplace.client import MarketplaceClient
from ..marketplace.types import MarketplaceError, SendAck
from ..models.messaging import Conversation, Message, Notification, Role
from ..utils.exceptions import ConversationNotFoundException
from ..utils.logger import get_logger
from .conversation_builder import TRANSACTION_INCLUDES, build_conversations, filter_conversations
from .fetch_guard import FetchGenerationGuard
from .message_history import MessageHistoryCache, effective_messages
from .resource_resolver import parse_messages, resolve_included
from .send_coordinator import SendCoordinator

logger = get_logger(__name__)

MESSAGE_INCLUDES = ["sender"]

LOAD_CONVERSATIONS_FAILED = "Failed to load messages"
LOAD_THREAD_FAILED = "Failed to load conversation"
SEND_SUCCEEDED = "Message sent"
SEND_FAILED = "Failed to send message"

MAX_PENDING_NOTIFICATIONS = 20


class MessagingController:
    """
    Controller for one signed-in user's messaging view.

    WHAT: Role, selection, conversation list, history cache, flags, toasts
    WHY: Single owner of all mutable messaging state
    HOW: Async operations triggered by UI events; every marketplace call is
         a suspension point after which the state may have moved on
    """

    def __init__(
        self,
        client: MarketplaceClient,
        *,
        viewer_id: str | None = None,
        role: Role = "offering",
        last_transitions: list[str] | None = None,
    ):
        """
        Args:
            client: Marketplace client bound to the user's token
            viewer_id: Signed-in user's id (message ownership)
            role: Initial viewer role
            last_transitions: Lifecycle filter for the transaction query
        """
        self.client = client
        self.viewer_id = viewer_id
        self.role: Role = role
        self.last_transitions = (
            last_transitions if last_transitions is not None else settings.get_inquiry_transitions()
        )

        self.conversations: List[Conversation] = []
        self.selected_conversation_id: Optional[str] = None
        self.is_loading = False
        self.error: Optional[str] = None

        self.history = MessageHistoryCache()
        self.guard = FetchGenerationGuard()
        self.sender = SendCoordinator(client, self.refresh_conversations, self.refresh_thread)
        self._notifications: deque[Notification] = deque(maxlen=MAX_PENDING_NOTIFICATIONS)

    # ========== Notifications ==========

    def _notify(self, level: str, message: str) -> None:
        self._notifications.append(Notification(level=level, message=message))

    def drain_notifications(self) -> List[Notification]:
        """Pop all pending notifications (the UI shows each once)."""
        drained = list(self._notifications)
        self._notifications.clear()
        return drained

    # ========== Reads ==========

    def find_conversation(self, conversation_id: str | None) -> Conversation | None:
        if not conversation_id:
            return None
        return next((c for c in self.conversations if c.id == conversation_id), None)

    @property
    def selected_conversation(self) -> Conversation | None:
        return self.find_conversation(self.selected_conversation_id)

    @property
    def current_messages(self) -> List[Message]:
        """Cache first, embedded snapshot otherwise."""
        if not self.selected_conversation_id:
            return []
        conversation = self.selected_conversation
        if conversation is None:
            return self.history.get(self.selected_conversation_id)
        return effective_messages(self.history, conversation)

    def search(self, query: str | None) -> List[Conversation]:
        return filter_conversations(self.conversations, query)

    # ========== List-level fetch ==========

    async def refresh_conversations(self) -> None:
        """
        Fetch the conversation list for the active role.

        WHAT: Query transactions, resolve, build, merge embedded messages
        WHY: Source of the conversation list and of first-pass histories
        HOW: begin() before the call, is_current() before every commit;
             a superseded fetch returns without touching any state
        """
        token = self.guard.begin()
        role = self.role
        self.is_loading = True

        try:
            page = await self.client.query_transactions(
                role,
                include=TRANSACTION_INCLUDES,
                last_transitions=self.last_transitions,
            )
        except MarketplaceError as e:
            if not self.guard.is_current(token):
                logger.debug(f"Discarding failure of superseded fetch {token}: {e}")
                return
            logger.error(f"Failed to fetch conversations (role={role}): {e}")
            self.error = LOAD_CONVERSATIONS_FAILED
            self._notify("error", LOAD_CONVERSATIONS_FAILED)
            self.is_loading = False
            return

        if not self.guard.is_current(token):
            logger.info(f"Discarding superseded conversation fetch {token} (role={role})")
            return

        resources = resolve_included(page.included)
        conversations = build_conversations(page.transactions, resources, role)

        for conversation in conversations:
            if conversation.messages:
                self.history.merge(conversation.id, conversation.messages)

        self.conversations = conversations
        self.error = None
        self.is_loading = False
        logger.info(f"Committed {len(conversations)} conversations (role={role}, generation={token})")

    # ========== Per-thread fetch ==========

    async def refresh_thread(self, conversation_id: str) -> None:
        """
        Fetch one thread's messages and merge them into the cache.

        Not generation-guarded: a late result is still valid data for that
        conversation and merging never drops what is already cached.
        """
        try:
            page = await self.client.query_messages(conversation_id, include=MESSAGE_INCLUDES)
        except MarketplaceError as e:
            logger.error(f"Failed to fetch messages for {conversation_id}: {e}")
            self._notify("error", LOAD_THREAD_FAILED)
            return

        messages = parse_messages(page.messages)
        self.history.merge(conversation_id, messages)
        logger.debug(f"Thread {conversation_id}: merged {len(messages)} fetched message(s)")

    # ========== UI events ==========

    async def switch_role(self, role: Role) -> None:
        """
        Switch viewer role and reload.

        The old role's list, selection and histories are discarded before the
        new fetch starts; an in-flight fetch of the old role becomes stale.
        """
        if role == self.role:
            logger.debug(f"Role already {role}; nothing to do")
            return

        logger.info(f"Switching role {self.role} -> {role}")
        self.role = role
        self.conversations = []
        self.selected_conversation_id = None
        self.error = None
        self.history.clear()
        await self.refresh_conversations()

    async def select_conversation(self, conversation_id: str) -> None:
        """
        Select a conversation and pull its full thread.

        Raises:
            ConversationNotFoundException: Id not in the current list
        """
        if self.find_conversation(conversation_id) is None:
            raise ConversationNotFoundException(conversation_id)
        self.selected_conversation_id = conversation_id
        await self.refresh_thread(conversation_id)

    async def send(self, content: str) -> SendAck | None:
        """
        Send a message into the selected conversation.

        Returns:
            SendAck on success, None if the marketplace rejected the send

        Raises:
            MessageValidationException: Blank content or nothing selected;
                raised before any network call and without state changes
        """
        conversation_id = self.selected_conversation_id
        SendCoordinator.validate(conversation_id, content)

        try:
            ack = await self.sender.send(conversation_id, content)
        except MarketplaceError as e:
            logger.error(f"Failed to send message to {conversation_id}: {e}")
            self._notify("error", SEND_FAILED)
            return None

        self._notify("success", SEND_SUCCEEDED)
        return ack

    def reset(self) -> None:
        """Drop all session state (sign-out)."""
        self.guard.begin()  # anything still in flight becomes stale
        self.conversations = []
        self.selected_conversation_id = None
        self.is_loading = False
        self.error = None
        self.history.clear()
        self._notifications.clear()
        logger.info("Messaging state reset")
