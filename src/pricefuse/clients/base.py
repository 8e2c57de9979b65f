"""Base async HTTP client with connection pooling and error mapping.

Each client performs exactly one request/response exchange per call and
signals failure by raising APIProviderError. Rate limiting, retries and
circuit breaking are not done here: they belong to the provider's
ResilientExecutor, which treats one client call as one attempt.

Usage:
    class MyAPIClient(BaseAsyncClient):
        def __init__(self, api_key: str):
            super().__init__(
                base_url="https://api.example.com",
                headers={"Authorization": f"Bearer {api_key}"},
            )

        async def get_data(self, item: str) -> dict:
            return await self._request("GET", f"/data/{item}")
"""

import logging
from typing import Any

import httpx


logger = logging.getLogger(__name__)


class APIProviderError(Exception):
    """Base exception for API provider errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class BaseAsyncClient:
    """Base async HTTP client with consistent error handling and logging.

    Args:
        base_url: Base URL for all API requests
        headers: Default headers for all requests
        timeout: Request timeout in seconds (default: 30)
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = {"Accept": "application/json", **(headers or {})}
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "BaseAsyncClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
        form_data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make one HTTP request and map every failure to APIProviderError.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path (relative to base_url)
            params: Query parameters
            json_data: JSON body for POST/PUT requests
            form_data: Form-encoded body for POST requests
            headers: Per-request headers merged over the defaults

        Returns:
            Parsed JSON response

        Raises:
            APIProviderError: On HTTP status >= 400, invalid JSON or transport error
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use async with context manager.")

        # Ensure endpoint starts with /
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"

        logger.debug("%s %s%s", method, self.base_url, endpoint)

        try:
            response = await self._client.request(
                method=method,
                url=endpoint,
                params=params,
                json=json_data,
                data=form_data,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise APIProviderError(f"Request timeout: {e}") from e
        except httpx.TransportError as e:
            raise APIProviderError(f"Network error: {e}") from e

        logger.debug("Response: %d for %s", response.status_code, endpoint)

        if response.status_code >= 400:
            raise APIProviderError(
                message=f"API request failed: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text[:500],
            )

        try:
            return response.json()
        except ValueError as e:
            raise APIProviderError(
                message=f"Invalid JSON response: {e}",
                status_code=response.status_code,
                response_body=response.text[:500],
            ) from e

    async def get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Convenience method for GET requests."""
        return await self._request("GET", endpoint, params=params, headers=headers)

    async def post(
        self,
        endpoint: str,
        json_data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        form_data: dict[str, Any] | None = None,
    ) -> Any:
        """Convenience method for POST requests."""
        return await self._request(
            "POST", endpoint, params=params, json_data=json_data, form_data=form_data,
        )
