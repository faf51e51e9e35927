"""Tests for CallDescriptor, ApiResponse and AiohttpTransport."""

import dataclasses
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from core.errors.exceptions import TransportError
from core.http.transport import AiohttpTransport, ApiResponse, CallDescriptor, ResponseType

BASE_URL = "https://api.example.com/inventory/v1"


def _mock_response(status=200, body=b"{}", headers=None):
    mock_resp = AsyncMock()
    mock_resp.status = status
    mock_resp.headers = headers or {"Content-Type": "application/json"}
    mock_resp.read = AsyncMock(return_value=body)
    mock_resp.__aenter__ = AsyncMock(return_value=mock_resp)
    mock_resp.__aexit__ = AsyncMock(return_value=False)
    return mock_resp


def _mock_session(response=None, side_effect=None):
    session = MagicMock()
    session.closed = False
    session.close = AsyncMock()
    if side_effect is not None:
        session.request = MagicMock(side_effect=side_effect)
    else:
        session.request = MagicMock(return_value=response)
    return session


class TestCallDescriptor:
    def test_url_for_joins_slashes(self):
        descriptor = CallDescriptor("GET", "/items/1")
        assert descriptor.url_for(BASE_URL + "/") == f"{BASE_URL}/items/1"

    def test_is_immutable(self):
        descriptor = CallDescriptor("GET", "/items")
        with pytest.raises(dataclasses.FrozenInstanceError):
            descriptor.path = "/other"

    def test_defaults(self):
        descriptor = CallDescriptor("GET", "/items")
        assert descriptor.params is None
        assert descriptor.json_body is None
        assert descriptor.response_type is ResponseType.JSON


class TestApiResponse:
    @pytest.mark.parametrize("status,ok", [(200, True), (201, True), (204, True), (301, False), (400, False)])
    def test_ok(self, status, ok):
        assert ApiResponse(status).ok is ok

    def test_json(self):
        assert ApiResponse(200, body=b'{"items": []}').json() == {"items": []}

    def test_json_empty_body(self):
        assert ApiResponse(204).json() is None

    def test_json_malformed(self):
        with pytest.raises(ValueError):
            ApiResponse(200, body=b"<html>").json()

    def test_text(self):
        assert ApiResponse(200, body="héllo".encode()).text() == "héllo"


class TestAiohttpTransportInit:
    def test_requires_http_scheme(self):
        with pytest.raises(ValueError, match="http:// or https://"):
            AiohttpTransport("api.example.com")

    def test_strips_trailing_slash(self):
        assert AiohttpTransport(BASE_URL + "/").base_url == BASE_URL


class TestAiohttpTransportSend:
    @pytest.mark.asyncio
    async def test_returns_response_with_lowercased_headers(self):
        session = _mock_session(_mock_response(200, b'{"a": 1}', {"Retry-After": "5"}))
        transport = AiohttpTransport(BASE_URL, session=session)

        response = await transport.send(CallDescriptor("GET", "/items"), {"Authorization": "x"})

        assert response.status == 200
        assert response.body == b'{"a": 1}'
        assert response.headers == {"retry-after": "5"}
        assert response.url == f"{BASE_URL}/items"

    @pytest.mark.asyncio
    async def test_passes_descriptor_fields(self):
        session = _mock_session(_mock_response())
        transport = AiohttpTransport(BASE_URL, timeout_seconds=12, session=session)
        descriptor = CallDescriptor(
            "PUT", "/items/7", params={"organization_id": "1"}, json_body={"rate": 2.5}
        )

        await transport.send(descriptor, {"Authorization": "Zoho-oauthtoken t"})

        args, kwargs = session.request.call_args
        assert args == ("PUT", f"{BASE_URL}/items/7")
        assert kwargs["params"] == {"organization_id": "1"}
        assert kwargs["json"] == {"rate": 2.5}
        assert kwargs["headers"] == {"Authorization": "Zoho-oauthtoken t"}
        assert kwargs["timeout"].total == 12

    @pytest.mark.asyncio
    async def test_error_status_returned_not_raised(self):
        session = _mock_session(_mock_response(429, b"slow down"))
        transport = AiohttpTransport(BASE_URL, session=session)

        response = await transport.send(CallDescriptor("GET", "/items"), {})

        assert response.status == 429
        assert not response.ok

    @pytest.mark.asyncio
    async def test_client_error_becomes_transport_error(self):
        session = _mock_session(side_effect=aiohttp.ClientConnectionError("refused"))
        transport = AiohttpTransport(BASE_URL, session=session)

        with pytest.raises(TransportError, match="Connection error: GET"):
            await transport.send(CallDescriptor("GET", "/items"), {})

    @pytest.mark.asyncio
    async def test_timeout_becomes_transport_error(self):
        session = _mock_session(side_effect=TimeoutError())
        transport = AiohttpTransport(BASE_URL, timeout_seconds=3, session=session)

        with pytest.raises(TransportError, match="Timeout after 3s"):
            await transport.send(CallDescriptor("GET", "/items"), {})


class TestAiohttpTransportLifecycle:
    @pytest.mark.asyncio
    async def test_send_after_close_raises(self):
        transport = AiohttpTransport(BASE_URL, session=_mock_session(_mock_response()))
        await transport.close()

        with pytest.raises(RuntimeError, match="closed"):
            await transport.send(CallDescriptor("GET", "/items"), {})

    @pytest.mark.asyncio
    async def test_injected_session_not_closed(self):
        session = _mock_session(_mock_response())
        transport = AiohttpTransport(BASE_URL, session=session)

        await transport.close()

        session.close.assert_not_called()

    @pytest.mark.asyncio
    async def test_context_manager_creates_and_closes_session(self):
        async with AiohttpTransport(BASE_URL) as transport:
            session = transport._session
            assert isinstance(session, aiohttp.ClientSession)

        assert session.closed
