"""
Inbox session manager.

WHAT: Registry of messaging controllers, one per signed-in UI session
WHY: Controller state lives exactly as long as the UI session; sign-out
     tears it down, idle sessions expire
HOW: In-memory dict guarded by a lock, background timer for TTL cleanup
"""

import asyncio
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional
from uuid import uuid4

from .config import settings
from ..marketplace.client_factory import get_client
from ..models.messaging import Role
from ..services.messaging_controller import MessagingController
from ..utils.exceptions import InboxSessionNotFoundException
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class InboxSession:
    """A signed-in user's messaging session."""
    session_id: str
    user_id: str
    controller: MessagingController
    created_at: datetime = field(default_factory=datetime.utcnow)
    last_access: datetime = field(default_factory=datetime.utcnow)


class InboxSessionManager:
    """
    Manage inbox session lifecycle.

    WHAT: Create, look up, sign out and expire sessions
    WHY: Keep per-user sync state isolated and bounded
    HOW: Dict of InboxSession with a lock and a cleanup timer thread
    """

    def __init__(self):
        """Initialize session manager with in-memory registry."""
        self.sessions: Dict[str, InboxSession] = {}
        self._lock = threading.Lock()
        self._cleanup_thread: Optional[threading.Timer] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def start_cleanup_thread(self):
        """
        Start background thread for session cleanup.

        WHAT: Periodic removal of idle sessions
        WHY: Prevent memory growth from abandoned browser tabs
        HOW: threading.Timer re-armed every SESSION_CLEANUP_HOURS; controller
             resets are handed back to the event loop that owns the controllers
        """
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

        def cleanup_task():
            self.cleanup_stale_sessions()
            self._cleanup_thread = threading.Timer(
                settings.SESSION_CLEANUP_HOURS * 3600,
                cleanup_task
            )
            self._cleanup_thread.daemon = True
            self._cleanup_thread.start()

        self._cleanup_thread = threading.Timer(
            settings.SESSION_CLEANUP_HOURS * 3600,
            cleanup_task
        )
        self._cleanup_thread.daemon = True
        self._cleanup_thread.start()
        logger.info(f"Started session cleanup thread (interval: {settings.SESSION_CLEANUP_HOURS}h)")

    def stop_cleanup_thread(self):
        if self._cleanup_thread is not None:
            self._cleanup_thread.cancel()
            self._cleanup_thread = None
        self._loop = None

    def cleanup_stale_sessions(self, now: Optional[datetime] = None) -> int:
        """
        Remove sessions idle longer than SESSION_TTL_MINUTES.

        Returns:
            Number of sessions removed
        """
        now = now or datetime.utcnow()
        cutoff = now - timedelta(minutes=settings.SESSION_TTL_MINUTES)

        with self._lock:
            stale = [sid for sid, s in self.sessions.items() if s.last_access < cutoff]
            expired = [self.sessions.pop(sid) for sid in stale]

        for session in expired:
            self._reset_controller(session.controller)
            logger.info(f"Expired idle inbox session: {session.session_id}")

        if stale:
            logger.info(f"Removed {len(stale)} stale inbox sessions")
        return len(stale)

    def _reset_controller(self, controller: MessagingController) -> None:
        """Reset on the owning loop when called from the cleanup timer thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            controller.reset()
            return
        try:
            on_loop = asyncio.get_running_loop() is loop
        except RuntimeError:
            on_loop = False
        if on_loop:
            controller.reset()
        else:
            loop.call_soon_threadsafe(controller.reset)

    async def create_session(self, access_token: str, role: Role = "offering") -> InboxSession:
        """
        Create a session for a signed-in user.

        WHAT: Resolve the viewer id and build a controller
        WHY: Message ownership needs the viewer id
        HOW: show_current_user() on a client bound to the token

        Args:
            access_token: Marketplace access token from the dashboard
            role: Initial role

        Returns:
            The new InboxSession

        Raises:
            MarketplaceError: Token rejected or marketplace unreachable
        """
        client = get_client(access_token)
        user_id = await client.show_current_user()

        controller = MessagingController(client, viewer_id=user_id, role=role)
        session = InboxSession(session_id=str(uuid4()), user_id=user_id, controller=controller)

        with self._lock:
            self.sessions[session.session_id] = session

        logger.info(f"Created inbox session {session.session_id} for user {user_id} (role={role})")
        return session

    def get_session(self, session_id: str) -> InboxSession:
        """
        Look up a session and mark it as accessed.

        Raises:
            InboxSessionNotFoundException: Unknown or signed-out session
        """
        with self._lock:
            session = self.sessions.get(session_id)
            if session is None:
                raise InboxSessionNotFoundException(session_id)
            session.last_access = datetime.utcnow()
            return session

    def get_controller(self, session_id: str) -> MessagingController:
        return self.get_session(session_id).controller

    def sign_out(self, session_id: str) -> None:
        """
        Tear down a session: controller state cleared, session removed.

        Raises:
            InboxSessionNotFoundException: Unknown or signed-out session
        """
        with self._lock:
            session = self.sessions.pop(session_id, None)
        if session is None:
            raise InboxSessionNotFoundException(session_id)
        session.controller.reset()
        logger.info(f"Signed out inbox session {session_id}")

    def clear(self) -> None:
        """Drop every session (process teardown, tests)."""
        with self._lock:
            sessions = list(self.sessions.values())
            self.sessions.clear()
        for session in sessions:
            session.controller.reset()


# Global instance
session_manager = InboxSessionManager()
