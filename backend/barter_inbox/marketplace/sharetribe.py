"""
Sharetribe Marketplace API client.

WHAT: Concrete marketplace client over the Marketplace API HTTP endpoints
WHY: The inbox needs transactions, messages and message sending
HOW: httpx.AsyncClient with bearer token, error translation, no retries
"""

import json
from typing import Any

import httpx

from ..core.config import settings
from ..models.messaging import Role
from ..utils.logger import get_logger
from .types import (
    MarketplaceAuthError,
    MarketplaceResponseError,
    MarketplaceStatus,
    MarketplaceTimeoutError,
    MarketplaceUnavailableError,
    MessagePage,
    SendAck,
    TransactionPage,
    resource_id,
)

logger = get_logger(__name__)

API_PREFIX = "/v1/api"

# Which side of the transaction the viewer is on
ROLE_QUERY_FILTER: dict[str, str] = {
    "offering": "sale",
    "requesting": "order",
}


def _resource(value: Any) -> dict[str, Any]:
    """Single resource document member, {} when absent or not an object."""
    return value if isinstance(value, dict) else {}


def _resources(value: Any) -> list[dict[str, Any]]:
    """Resource array member; non-object entries are dropped."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


class SharetribeClient:
    """Marketplace API client bound to one user's access token."""

    def __init__(
        self,
        access_token: str,
        *,
        http_client: httpx.AsyncClient,
        base_url: str | None = None
    ):
        """
        Initialize the client.

        Args:
            access_token: Bearer token of the signed-in user
            http_client: Shared connection pool (see client_factory)
            base_url: Marketplace API root, defaults to settings
        """
        self.access_token = access_token
        self.http = http_client
        self.base_url = (base_url or settings.MARKETPLACE_BASE_URL).rstrip("/")

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        """
        Perform one API call and translate transport failures.

        Raises:
            MarketplaceTimeoutError: Request timed out
            MarketplaceUnavailableError: API not reachable or connection dropped
            MarketplaceAuthError: 401/403 response
            MarketplaceResponseError: Other error status, undecodable or non-object body
        """
        url = f"{self.base_url}{API_PREFIX}{path}"
        try:
            response = await self.http.request(method, url, headers=self._headers(), **kwargs)
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Marketplace timeout: {method} {path}")
            raise MarketplaceTimeoutError(f"Request timed out: {method} {path}") from e
        except httpx.ConnectError as e:
            logger.error(f"Marketplace not reachable: {method} {path}")
            raise MarketplaceUnavailableError("Marketplace API is not reachable") from e
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            if code in (401, 403):
                logger.warning(f"Marketplace rejected credentials ({code}): {method} {path}")
                raise MarketplaceAuthError(f"HTTP {code}: not authorized") from e
            logger.error(f"Marketplace error {code}: {method} {path}")
            raise MarketplaceResponseError(f"HTTP {code}: {e.response.text}") from e
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON from marketplace: {e}")
            raise MarketplaceResponseError(f"Invalid response format: {e}") from e
        except httpx.RequestError as e:
            logger.error(f"Marketplace transport error: {method} {path}: {e!r}")
            raise MarketplaceUnavailableError(f"Transport error: {type(e).__name__}") from e

        if not isinstance(body, dict):
            logger.error(f"Unexpected marketplace body for {method} {path}: {type(body).__name__}")
            raise MarketplaceResponseError("Invalid response format: expected a JSON object")
        return body

    async def ping(self) -> MarketplaceStatus:
        """
        Check marketplace availability.

        Any HTTP answer below 500 means the API is up, even a 401 for a
        missing token.
        """
        try:
            response = await self.http.get(
                f"{self.base_url}{API_PREFIX}/marketplace/show",
                headers=self._headers(),
                timeout=10.0
            )
            available = response.status_code < 500
            return MarketplaceStatus(
                available=available,
                base_url=self.base_url,
                error=None if available else f"HTTP {response.status_code}"
            )
        except httpx.TimeoutException:
            logger.warning("Marketplace ping timeout")
            return MarketplaceStatus(available=False, base_url=self.base_url, error="Request timed out")
        except httpx.ConnectError:
            logger.warning("Marketplace not reachable")
            return MarketplaceStatus(available=False, base_url=self.base_url, error="Connection refused")
        except httpx.RequestError as e:
            logger.warning(f"Marketplace ping failed: {e!r}")
            return MarketplaceStatus(available=False, base_url=self.base_url, error=f"Transport error: {type(e).__name__}")

    async def show_current_user(self) -> str:
        data = await self._request("GET", "/current_user/show")
        user_id = resource_id(_resource(data.get("data")).get("id"))
        if not user_id:
            raise MarketplaceResponseError("current_user/show returned no user id")
        return user_id

    async def query_transactions(
        self,
        role: Role,
        *,
        include: list[str],
        last_transitions: list[str] | None = None
    ) -> TransactionPage:
        """
        Query the viewer's transactions for one role.

        Args:
            role: "offering" queries sales, "requesting" queries orders
            include: Related resources to embed (listing, provider, ...)
            last_transitions: Optional lifecycle filter

        Returns:
            TransactionPage with transactions and included resources
        """
        params = {
            "only": ROLE_QUERY_FILTER[role],
            "include": ",".join(include),
        }
        if last_transitions:
            params["lastTransitions"] = ",".join(last_transitions)

        data = await self._request("GET", "/transactions/query", params=params)
        page = TransactionPage(
            transactions=_resources(data.get("data")),
            included=_resources(data.get("included")),
        )
        logger.debug(
            f"Fetched {len(page.transactions)} transactions "
            f"({len(page.included)} included) for role={role}"
        )
        return page

    async def query_messages(
        self,
        transaction_id: str,
        *,
        include: list[str] | None = None
    ) -> MessagePage:
        params = {"transaction_id": transaction_id}
        if include:
            params["include"] = ",".join(include)

        data = await self._request("GET", "/messages/query", params=params)
        return MessagePage(
            messages=_resources(data.get("data")),
            included=_resources(data.get("included")),
        )

    async def send_message(self, transaction_id: str, content: str) -> SendAck:
        data = await self._request(
            "POST",
            "/messages/send",
            json={"transactionId": transaction_id, "content": content}
        )
        message_id = resource_id(_resource(data.get("data")).get("id"))
        logger.info(f"Message sent to transaction {transaction_id} (id={message_id})")
        return SendAck(transaction_id=transaction_id, message_id=message_id)
