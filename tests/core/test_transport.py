"""Tests for the Response descriptor and HttpxTransport."""

import asyncio

import httpx
import pytest

from marble_sdk.core.cancellation import CancellationToken
from marble_sdk.core.errors import Cancelled
from marble_sdk.core.transport import HttpxTransport, Response, TransportRequest


class TestResponse:
    """Tests for the buffered response dataclass."""

    @pytest.mark.parametrize("status,ok", [(200, True), (204, True), (299, True), (301, False), (404, False), (500, False)])
    def test_ok(self, status, ok):
        assert Response(status=status).ok is ok

    def test_header_lookup_is_case_insensitive(self):
        response = Response(status=200, headers={"Retry-After": "3"})
        assert response.header("retry-after") == "3"
        assert response.header("x-missing") is None

    def test_from_json(self):
        response = Response.from_json({"a": [1, 2]}, status=201)
        assert response.status == 201
        assert response.json() == {"a": [1, 2]}
        assert response.header("Content-Type") == "application/json"


class TestHttpxTransport:
    """Tests for the httpx-backed transport."""

    @pytest.mark.asyncio
    async def test_sends_request_and_buffers_response(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"posts": []}, headers={"X-Trace": "t1"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        transport = HttpxTransport(client)

        response = await transport(
            "https://api.example.com/posts?limit=1",
            TransportRequest(headers={"Authorization": "Bearer k"}),
        )

        assert seen == {
            "method": "GET",
            "url": "https://api.example.com/posts?limit=1",
            "auth": "Bearer k",
        }
        assert response.ok
        assert response.status_text == "OK"
        assert response.json() == {"posts": []}
        assert response.header("x-trace") == "t1"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_error_status_is_returned_not_raised(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(503, text="busy"))
        )
        response = await HttpxTransport(client)("https://api.example.com/x", TransportRequest())
        assert response.status == 503
        assert response.ok is False
        assert response.text() == "busy"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_network_error_propagates(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        with pytest.raises(httpx.ConnectError):
            await HttpxTransport(client)("https://api.example.com/x", TransportRequest())
        await client.aclose()

    @pytest.mark.asyncio
    async def test_cancel_aborts_in_flight_request(self):
        async def handler(request):
            await asyncio.sleep(10)
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)

        with pytest.raises(Cancelled):
            await HttpxTransport(client)(
                "https://api.example.com/x", TransportRequest(cancel=token)
            )
        await client.aclose()

    @pytest.mark.asyncio
    async def test_aclose_only_closes_owned_client(self):
        external = httpx.AsyncClient()
        await HttpxTransport(external).aclose()
        assert not external.is_closed
        await external.aclose()

        owned = HttpxTransport()
        await owned.aclose()
        assert owned._client.is_closed

    @pytest.mark.asyncio
    async def test_owned_client_follows_redirects(self):
        transport = HttpxTransport()
        assert transport._client.follow_redirects is True
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_redirect_is_followed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old/posts":
                return httpx.Response(301, headers={"Location": "https://api.example.com/new/posts"})
            return httpx.Response(200, json={"posts": []})

        client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler), follow_redirects=True
        )
        response = await HttpxTransport(client)(
            "https://api.example.com/old/posts", TransportRequest()
        )
        assert response.status == 200
        assert response.json() == {"posts": []}
        await client.aclose()
