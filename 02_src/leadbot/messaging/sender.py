"""Outbound text messages through the WhatsApp gateway."""

import os
from dataclasses import dataclass
from typing import Protocol

import httpx

from ..logging_config import get_logger

logger = get_logger(__name__)


class SendError(RuntimeError):
    """The gateway rejected or failed to deliver a message."""


@dataclass
class SendResult:
    conversation_id: str
    message_id: str | None = None


class IMessageSender(Protocol):
    """Outbound send capability."""

    async def send_text(
        self, to: str, body: str, conversation_id: str | None = None
    ) -> SendResult:
        """Send a text message. Raises SendError on failure."""
        ...


class WhapiSender:
    """Whapi gateway client."""

    def __init__(
        self,
        api_url: str | None = None,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self._api_url = (api_url or os.getenv("WHAPI_API_URL") or "").rstrip("/")
        self._token = token or os.getenv("WHAPI_TOKEN")
        if not self._api_url or not self._token:
            raise ValueError("WHAPI_API_URL or WHAPI_TOKEN not configured")

        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def send_text(
        self, to: str, body: str, conversation_id: str | None = None
    ) -> SendResult:
        payload = {"to": to, "body": body}
        if conversation_id:
            payload["chatId"] = conversation_id

        try:
            response = await self._client.post(
                f"{self._api_url}/messages/text",
                json=payload,
                headers={"Authorization": f"Bearer {self._token}"},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Whapi send to {to} failed: {e}")
            raise SendError(f"Whapi send failed: {e}") from e

        if not isinstance(data, dict):
            data = {}

        return SendResult(
            conversation_id=data.get("chat_id") or data.get("chatId") or conversation_id or "",
            message_id=data.get("message_id") or data.get("messageId"),
        )

    async def aclose(self) -> None:
        await self._client.aclose()
