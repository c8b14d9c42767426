"""Conversation/message synchronization services."""

from .resource_resolver import ResolvedResources, resolve_included, parse_messages
from .conversation_builder import build_conversation, build_conversations, filter_conversations
from .message_history import MessageHistoryCache, effective_messages, merge_messages
from .fetch_guard import FetchGenerationGuard
from .send_coordinator import SendCoordinator
from .messaging_controller import MessagingController

__all__ = [
    "ResolvedResources",
    "resolve_included",
    "parse_messages",
    "build_conversation",
    "build_conversations",
    "filter_conversations",
    "MessageHistoryCache",
    "effective_messages",
    "merge_messages",
    "FetchGenerationGuard",
    "SendCoordinator",
    "MessagingController",
]
