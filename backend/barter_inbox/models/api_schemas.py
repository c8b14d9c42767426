"""
Pydantic API schemas for the inbox endpoints.

WHAT: Request and response models for FastAPI
WHY: Type-safe validation and serialization matching the dashboard's view
HOW: Pydantic v2 models built from controller state
"""

from typing import Annotated, List, Optional
from pydantic import BaseModel, BeforeValidator, Field
from datetime import datetime

from .messaging import Conversation, Message, Notification, Role, parse_role


def _role_validator(v):
    """Accept canonical roles and dashboard aliases (giver/seeker)."""
    role = parse_role(v) if isinstance(v, str) else None
    if role is None:
        raise ValueError("role must be 'offering' or 'requesting' (or 'giver'/'seeker')")
    return role


RoleInput = Annotated[Role, BeforeValidator(_role_validator)]


# ========== Requests ==========

class CreateSessionRequest(BaseModel):
    """Open an inbox session for an already signed-in marketplace user."""
    access_token: str = Field(..., min_length=1, description="Marketplace access token")
    role: RoleInput = Field(default="offering", description="Initial viewer role")


class SwitchRoleRequest(BaseModel):
    role: RoleInput


class SendMessageRequest(BaseModel):
    """Message input; blank content is rejected by the send coordinator."""
    content: str = Field(..., max_length=5000)


# ========== Responses ==========

class MessageView(BaseModel):
    """A message as rendered in the thread."""
    id: str
    content: str
    sender_id: str
    created_at: datetime
    is_own: bool = False

    @classmethod
    def from_message(cls, message: Message, is_own: bool = False) -> "MessageView":
        return cls(
            id=message.id,
            content=message.content,
            sender_id=message.sender_id,
            created_at=message.created_at,
            is_own=is_own,
        )


class ConversationSummary(BaseModel):
    """List entry for a conversation (no message bodies)."""
    id: str
    listing_id: str
    listing_title: str
    other_party_id: str
    other_party_name: str
    last_message: str
    last_message_time: Optional[datetime] = None
    unread: bool = False

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "ConversationSummary":
        return cls(**conversation.model_dump(exclude={"messages"}))


class CreateSessionResponse(BaseModel):
    session_id: str
    user_id: str
    role: Role


class ConversationListResponse(BaseModel):
    role: Role
    conversations: List[ConversationSummary]
    is_loading: bool
    error: Optional[str] = None


class ThreadResponse(BaseModel):
    conversation_id: Optional[str] = None
    messages: List[MessageView]


class SendMessageResponse(BaseModel):
    sent: bool
    message_id: Optional[str] = None
    messages: List[MessageView] = Field(default_factory=list)


class InboxStateResponse(BaseModel):
    """Full messaging view state; notifications are drained on read."""
    session_id: str
    user_id: str
    role: Role
    conversations: List[ConversationSummary]
    selected_conversation_id: Optional[str] = None
    current_messages: List[MessageView]
    is_loading: bool
    error: Optional[str] = None
    notifications: List[Notification] = Field(default_factory=list)
