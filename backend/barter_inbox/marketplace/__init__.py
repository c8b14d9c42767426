"""Remote marketplace client layer."""

from .types import (
    Resource,
    TransactionPage,
    MessagePage,
    SendAck,
    MarketplaceStatus,
    MarketplaceError,
    MarketplaceTimeoutError,
    MarketplaceUnavailableError,
    MarketplaceAuthError,
    MarketplaceResponseError,
    resource_id,
)
from .client import MarketplaceClient
from .client_factory import get_client, override_client, close_http_client, reset_client

__all__ = [
    "Resource",
    "TransactionPage",
    "MessagePage",
    "SendAck",
    "MarketplaceStatus",
    "MarketplaceError",
    "MarketplaceTimeoutError",
    "MarketplaceUnavailableError",
    "MarketplaceAuthError",
    "MarketplaceResponseError",
    "resource_id",
    "MarketplaceClient",
    "get_client",
    "override_client",
    "close_http_client",
    "reset_client",
]
