"""Tests for base async client."""

import httpx
import pytest

from pricefuse.clients.base import APIProviderError, BaseAsyncClient


class TestBaseAsyncClient:
    """Tests for base async HTTP client."""

    @pytest.mark.asyncio
    async def test_context_manager_lifecycle(self, respx_mock):
        """Client should properly initialize and cleanup."""
        respx_mock.get("https://api.example.com/test").mock(
            return_value=httpx.Response(200, json={"status": "ok"})
        )

        async with BaseAsyncClient(
            base_url="https://api.example.com",
            headers={"Authorization": "test_key"},
        ) as client:
            assert client._client is not None
            result = await client.get("/test")
            assert result == {"status": "ok"}

        # Client should be closed after exiting context
        assert client._client is None

    @pytest.mark.asyncio
    async def test_raises_if_used_without_context_manager(self):
        """Client should raise if used without async with."""
        client = BaseAsyncClient(base_url="https://api.example.com")

        with pytest.raises(RuntimeError, match="not initialized"):
            await client.get("/test")

    @pytest.mark.asyncio
    async def test_request_adds_leading_slash(self, respx_mock):
        """Requests should work with or without leading slash."""
        route = respx_mock.get("https://api.example.com/test").mock(
            return_value=httpx.Response(200, json={"data": "value"})
        )

        async with BaseAsyncClient(base_url="https://api.example.com/") as client:
            assert await client.get("test") == {"data": "value"}
            assert await client.get("/test") == {"data": "value"}

        assert route.call_count == 2

    @pytest.mark.asyncio
    async def test_sends_default_and_request_headers(self, respx_mock):
        route = respx_mock.get("https://api.example.com/test").mock(
            return_value=httpx.Response(200, json={})
        )

        async with BaseAsyncClient(
            base_url="https://api.example.com",
            headers={"X-Api-Key": "abc"},
        ) as client:
            await client.get("/test", headers={"Authorization": "Bearer tok"})

        request = route.calls.last.request
        assert request.headers["Accept"] == "application/json"
        assert request.headers["X-Api-Key"] == "abc"
        assert request.headers["Authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_post_form_data(self, respx_mock):
        route = respx_mock.post("https://api.example.com/token").mock(
            return_value=httpx.Response(200, json={"access_token": "t"})
        )

        async with BaseAsyncClient(base_url="https://api.example.com") as client:
            result = await client.post("/token", form_data={"grant_type": "client_credentials"})

        assert result == {"access_token": "t"}
        assert b"grant_type=client_credentials" in route.calls.last.request.content


class TestErrorMapping:
    """Every failure surfaces as APIProviderError."""

    @pytest.mark.asyncio
    async def test_client_error_raises(self, respx_mock):
        respx_mock.get("https://api.example.com/missing").mock(
            return_value=httpx.Response(404, text="not found")
        )

        async with BaseAsyncClient(base_url="https://api.example.com") as client:
            with pytest.raises(APIProviderError) as exc_info:
                await client.get("/missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.response_body == "not found"

    @pytest.mark.asyncio
    async def test_server_error_raises_without_retry(self, respx_mock):
        """One call, one exchange: retries belong to the executor."""
        route = respx_mock.get("https://api.example.com/flaky").mock(
            return_value=httpx.Response(503, text="unavailable")
        )

        async with BaseAsyncClient(base_url="https://api.example.com") as client:
            with pytest.raises(APIProviderError, match="503"):
                await client.get("/flaky")

        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, respx_mock):
        respx_mock.get("https://api.example.com/html").mock(
            return_value=httpx.Response(200, text="<html>oops</html>")
        )

        async with BaseAsyncClient(base_url="https://api.example.com") as client:
            with pytest.raises(APIProviderError, match="Invalid JSON"):
                await client.get("/html")

    @pytest.mark.asyncio
    async def test_timeout_raises(self, respx_mock):
        respx_mock.get("https://api.example.com/slow").mock(
            side_effect=httpx.ReadTimeout("timed out")
        )

        async with BaseAsyncClient(base_url="https://api.example.com") as client:
            with pytest.raises(APIProviderError, match="timeout"):
                await client.get("/slow")

    @pytest.mark.asyncio
    async def test_network_error_raises(self, respx_mock):
        respx_mock.get("https://api.example.com/down").mock(
            side_effect=httpx.ConnectError("connection refused")
        )

        async with BaseAsyncClient(base_url="https://api.example.com") as client:
            with pytest.raises(APIProviderError, match="Network error"):
                await client.get("/down")
