"""Webhook delivery gateway.

Posts each notification as JSON to an HTTP endpoint that owns the actual
transport (chat bridge, email relay, ...). Any non-2xx response or transport
error is reported as a failed receipt so the engine retries next pass.
"""

import logging

import httpx

from lapse.delivery.base import DeliveryReceipt

logger = logging.getLogger(__name__)


class WebhookGateway:
    """Delivers notifications by POSTing ``{"address", "text"}`` to a URL."""

    def __init__(
        self,
        url: str,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            url: Endpoint receiving notifications.
            token: Optional bearer token sent with every request.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._url = url
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        self._get_client()

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
            self._client = httpx.AsyncClient(
                headers=headers, timeout=self._timeout, transport=self._transport
            )
        return self._client

    async def send(self, address: str, text: str) -> DeliveryReceipt:
        client = self._get_client()
        try:
            response = await client.post(
                self._url, json={"address": address, "text": text}
            )
        except httpx.HTTPError as e:
            logger.warning(
                "webhook_send_failed",
                extra={"messaging.recipient": address, "error.message": str(e)},
            )
            return DeliveryReceipt.failed(str(e))

        if not response.is_success:
            logger.warning(
                "webhook_send_rejected",
                extra={
                    "messaging.recipient": address,
                    "http.status_code": response.status_code,
                },
            )
            return DeliveryReceipt.failed(f"HTTP {response.status_code}")

        message_id: str | None = None
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and payload.get("id") is not None:
            message_id = str(payload["id"])

        return DeliveryReceipt(success=True, message_id=message_id)
