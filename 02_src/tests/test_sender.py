"""Tests for WhapiSender."""

import json

import httpx
import pytest

from leadbot.messaging import SendError, WhapiSender


def _sender(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WhapiSender(api_url="https://gate.example/", token="secret", client=client)


class TestWhapiSenderInit:
    """Tests for sender configuration."""

    def test_missing_configuration_raises(self, monkeypatch):
        monkeypatch.delenv("WHAPI_API_URL", raising=False)
        monkeypatch.delenv("WHAPI_TOKEN", raising=False)
        with pytest.raises(ValueError):
            WhapiSender()

    def test_configuration_from_env(self, monkeypatch):
        monkeypatch.setenv("WHAPI_API_URL", "https://gate.example")
        monkeypatch.setenv("WHAPI_TOKEN", "secret")
        assert WhapiSender() is not None


class TestWhapiSenderSend:
    """Tests for send_text()."""

    @pytest.mark.asyncio
    async def test_send_text_request_and_result(self):
        """Test the request shape and response field variants."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"chat_id": "34600111222@s.whatsapp.net", "messageId": "m1"})

        sender = _sender(handler)
        result = await sender.send_text("34600111222", "Hola", "34600111222@c.us")
        await sender.aclose()

        assert seen["url"] == "https://gate.example/messages/text"
        assert seen["auth"] == "Bearer secret"
        assert seen["body"] == {"to": "34600111222", "body": "Hola", "chatId": "34600111222@c.us"}
        assert result.conversation_id == "34600111222@s.whatsapp.net"
        assert result.message_id == "m1"

    @pytest.mark.asyncio
    async def test_conversation_id_falls_back_to_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert "chatId" not in json.loads(request.content)
            return httpx.Response(200, json={})

        sender = _sender(handler)
        result = await sender.send_text("34600111222", "Hola")

        assert result.conversation_id == ""
        assert result.message_id is None

    @pytest.mark.asyncio
    async def test_http_error_raises_send_error(self):
        sender = _sender(lambda request: httpx.Response(500, json={"error": "down"}))
        with pytest.raises(SendError):
            await sender.send_text("34600111222", "Hola")

    @pytest.mark.asyncio
    async def test_transport_error_raises_send_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(SendError):
            await _sender(handler).send_text("34600111222", "Hola")
