"""
Inbox endpoints.

WHAT: Messaging view state and actions for the dashboard
WHY: The web client renders conversations/threads and forwards UI events
HOW: FastAPI router over session_manager and MessagingController
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from ....core.session_manager import InboxSession, session_manager
from ....models.api_schemas import (
    ConversationListResponse,
    ConversationSummary,
    CreateSessionRequest,
    CreateSessionResponse,
    InboxStateResponse,
    MessageView,
    SendMessageRequest,
    SendMessageResponse,
    SwitchRoleRequest,
    ThreadResponse,
)
from ....services.conversation_builder import is_own_message
from ....services.messaging_controller import MessagingController
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


def _message_views(controller: MessagingController) -> list[MessageView]:
    return [
        MessageView.from_message(m, is_own_message(m, controller.viewer_id))
        for m in controller.current_messages
    ]


def _conversation_list(controller: MessagingController, query: Optional[str] = None) -> ConversationListResponse:
    return ConversationListResponse(
        role=controller.role,
        conversations=[ConversationSummary.from_conversation(c) for c in controller.search(query)],
        is_loading=controller.is_loading,
        error=controller.error,
    )


def _state(session: InboxSession) -> InboxStateResponse:
    controller = session.controller
    return InboxStateResponse(
        session_id=session.session_id,
        user_id=session.user_id,
        role=controller.role,
        conversations=[ConversationSummary.from_conversation(c) for c in controller.conversations],
        selected_conversation_id=controller.selected_conversation_id,
        current_messages=_message_views(controller),
        is_loading=controller.is_loading,
        error=controller.error,
        notifications=controller.drain_notifications(),
    )


@router.post("/inbox/sessions", response_model=CreateSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(request: CreateSessionRequest):
    """
    Open an inbox session and load the first conversation list.

    WHAT: Resolve the viewer, create a controller, fetch conversations
    WHY: Entry point after the dashboard signs the user in
    HOW: session_manager.create_session then refresh_conversations
    """
    session = await session_manager.create_session(request.access_token, request.role)
    await session.controller.refresh_conversations()
    return CreateSessionResponse(
        session_id=session.session_id,
        user_id=session.user_id,
        role=session.controller.role,
    )


@router.delete("/inbox/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(session_id: str):
    """Sign out: drop all cached conversations and histories."""
    session_manager.sign_out(session_id)


@router.get("/inbox/sessions/{session_id}", response_model=InboxStateResponse)
async def get_state(session_id: str):
    """Full view state; pending notifications are returned once."""
    return _state(session_manager.get_session(session_id))


@router.put("/inbox/sessions/{session_id}/role", response_model=ConversationListResponse)
async def switch_role(session_id: str, request: SwitchRoleRequest):
    controller = session_manager.get_controller(session_id)
    await controller.switch_role(request.role)
    return _conversation_list(controller)


@router.post("/inbox/sessions/{session_id}/refresh", response_model=ConversationListResponse)
async def refresh(session_id: str):
    controller = session_manager.get_controller(session_id)
    await controller.refresh_conversations()
    return _conversation_list(controller)


@router.get("/inbox/sessions/{session_id}/conversations", response_model=ConversationListResponse)
async def list_conversations(session_id: str, q: Optional[str] = Query(default=None, max_length=200)):
    """
    Conversation list in list-fetch order.

    Args:
        q: Optional search on listing title or counterparty name
    """
    return _conversation_list(session_manager.get_controller(session_id), q)


@router.post(
    "/inbox/sessions/{session_id}/conversations/{conversation_id}/select",
    response_model=ThreadResponse
)
async def select_conversation(session_id: str, conversation_id: str):
    controller = session_manager.get_controller(session_id)
    await controller.select_conversation(conversation_id)
    return ThreadResponse(conversation_id=conversation_id, messages=_message_views(controller))


@router.get("/inbox/sessions/{session_id}/messages", response_model=ThreadResponse)
async def current_messages(session_id: str):
    controller = session_manager.get_controller(session_id)
    return ThreadResponse(
        conversation_id=controller.selected_conversation_id,
        messages=_message_views(controller),
    )


@router.post("/inbox/sessions/{session_id}/messages", response_model=SendMessageResponse)
async def send_message(session_id: str, request: SendMessageRequest):
    """
    Send into the selected conversation.

    WHAT: Validate, send, refetch list and thread
    WHY: The thread shown afterwards is the server's version
    HOW: controller.send; blank input answers 400 without any marketplace call
    """
    controller = session_manager.get_controller(session_id)
    ack = await controller.send(request.content)
    return SendMessageResponse(
        sent=ack is not None,
        message_id=ack.message_id if ack else None,
        messages=_message_views(controller),
    )
