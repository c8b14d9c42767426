"""
Status and health check endpoints.

WHAT: Health monitoring for the marketplace API and the inbox
WHY: Quick diagnostics for the dashboard and ops
HOW: FastAPI endpoints calling the client's ping
"""

from fastapi import APIRouter

from ....marketplace.client_factory import get_client
from ....core.config import settings
from ....core.session_manager import session_manager
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/marketplace/status")
async def marketplace_status():
    """
    Check marketplace API status.

    Returns:
        JSON with availability, base URL and error (if any)
    """
    status = await get_client().ping()
    return {
        "available": status.available,
        "base_url": status.base_url,
        "error": status.error
    }


@router.get("/health")
async def health_check():
    """
    Overall application health check.

    Returns:
        JSON with overall health status
    """
    status = await get_client().ping()
    if not status.available:
        logger.warning(f"Health check: marketplace unavailable ({status.error})")

    return {
        "status": "healthy" if status.available else "degraded",
        "version": settings.APP_VERSION,
        "app_name": settings.APP_NAME,
        "components": {
            "marketplace": {
                "available": status.available,
                "base_url": status.base_url
            },
            "inbox": {
                "active_sessions": len(session_manager.sessions)
            }
        }
    }
