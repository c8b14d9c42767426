"""
FastAPI application entry point.

WHAT: Inbox service app: sessions, sync state and status routes
WHY: The dashboard talks to one backend that owns per-session sync state
HOW: create_app() wires CORS, exception handlers and the v1 router; the
     lifespan owns the session expiry timer and the marketplace HTTP pool
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.v1.router import api_router
from .core.config import settings
from .core.session_manager import session_manager
from .marketplace.client_factory import close_http_client
from .middleware.error_handler import register_exception_handlers
from .utils.logger import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Start session expiry; on shutdown drop every session and the HTTP pool.

    Sessions are torn down before the pool closes so no controller is left
    holding a client over a closed connection pool.
    """
    logger.info(
        f"Starting {settings.APP_NAME} v{settings.APP_VERSION} "
        f"(marketplace={settings.MARKETPLACE_BASE_URL}, "
        f"transitions={settings.get_inquiry_transitions()})"
    )
    session_manager.start_cleanup_thread()

    yield

    active = len(session_manager.sessions)
    session_manager.stop_cleanup_thread()
    session_manager.clear()
    await close_http_client()
    logger.info(f"Shutdown complete ({active} inbox session(s) dropped)")


def create_app() -> FastAPI:
    """
    Build the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Conversation and message sync for the barter dashboard",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/")
    async def root():
        return {
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running",
            "inbox": "/api/v1/inbox/sessions",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "barter_inbox.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
