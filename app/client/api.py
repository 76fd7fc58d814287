"""
Async HTTP client for the marketplace API.
Failures surface as httpx exceptions so callers can classify them with ``classify_error``.
"""

from typing import Any, Dict, Optional
import logging
import uuid

import httpx

logger = logging.getLogger(__name__)


class MarketplaceClient:
    """
    Thin wrapper over ``httpx.AsyncClient``.

    Args:
        base_url: API root, e.g. ``http://localhost:8000``
        token: Bearer access token, if already logged in
        transport: Custom httpx transport (ASGI or mock transports in tests)
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0
    ):
        self.token = token
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "MarketplaceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        response = await self._client.request(method, url, headers=self._headers(), **kwargs)
        if response.is_error:
            logger.debug(f"{method} {url} failed with {response.status_code}")
        response.raise_for_status()
        return response.json() if response.content else None

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Log in and keep the access token for later calls."""
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["access_token"]
        return data

    async def create_property(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/properties", json=payload)

    async def update_property(self, property_id: uuid.UUID, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/properties/{property_id}", json=payload)

    async def get_property(self, property_id: uuid.UUID) -> Dict[str, Any]:
        return await self._request("GET", f"/properties/{property_id}")

    async def list_properties(self, **params) -> Dict[str, Any]:
        query = {key: value for key, value in params.items() if value is not None}
        return await self._request("GET", "/properties", params=query)

    async def close(self) -> None:
        await self._client.aclose()
