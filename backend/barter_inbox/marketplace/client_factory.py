"""
Marketplace client factory with a shared connection pool.

WHAT: Factory to get a marketplace client for one access token
WHY: Sessions share a single httpx pool; tests swap in a fake client
HOW: Module-level singleton pool, optional override builder, reset for tests
"""

from typing import TYPE_CHECKING, Callable

import httpx

if TYPE_CHECKING:
    from .client import MarketplaceClient

# Singleton connection pool
_http_client: httpx.AsyncClient | None = None

# Test hook: access_token -> client
_client_override: "Callable[[str], MarketplaceClient] | None" = None


def get_http_client() -> httpx.AsyncClient:
    """Get (lazily create) the shared httpx client."""
    global _http_client

    if _http_client is None:
        from ..core.config import settings
        from ..utils.logger import get_logger

        logger = get_logger(__name__)
        if not settings.MARKETPLACE_CLIENT_ID:
            logger.warning("MARKETPLACE_CLIENT_ID is not set; marketplace calls will likely be rejected")

        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.MARKETPLACE_CONNECT_TIMEOUT, read=settings.MARKETPLACE_TIMEOUT),
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
            headers={"User-Agent": f"{settings.APP_NAME}/{settings.APP_VERSION}"},
        )
        logger.info(f"Marketplace HTTP pool initialized ({settings.MARKETPLACE_BASE_URL})")

    return _http_client


def get_client(access_token: str = "") -> "MarketplaceClient":
    """
    Get a marketplace client bound to an access token.

    Args:
        access_token: Bearer token of the signed-in user (empty for anonymous ping)

    Returns:
        MarketplaceClient implementation
    """
    if _client_override is not None:
        return _client_override(access_token)

    from .sharetribe import SharetribeClient
    return SharetribeClient(access_token, http_client=get_http_client())


def override_client(builder: "Callable[[str], MarketplaceClient] | None") -> None:
    """Install a builder used instead of SharetribeClient (tests, demos)."""
    global _client_override
    _client_override = builder


async def close_http_client() -> None:
    """Close the shared pool (application shutdown)."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def reset_client() -> None:
    """Reset factory state (useful for testing)."""
    global _http_client, _client_override
    _http_client = None
    _client_override = None
