"""In-process delivery gateway.

Keeps every sent message in memory. Used for local development (no
transport credentials needed) and throughout the test suite.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from lapse.delivery.base import DeliveryReceipt

logger = logging.getLogger(__name__)

DEFAULT_SENDER = "0xlapse"


@dataclass
class SentMessage:
    id: str
    sender: str
    recipient: str
    content: str
    conversation: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


def conversation_id(address1: str, address2: str) -> str:
    """Stable conversation id for a pair of addresses, order independent."""
    first, second = sorted([address1.lower(), address2.lower()])
    return f"conv_{first}_{second}"


class InMemoryGateway:
    """Delivery gateway that records messages instead of sending them."""

    def __init__(
        self,
        sender: str = DEFAULT_SENDER,
        latency: float = 0.0,
        auto_connect: bool = True,
    ) -> None:
        self._sender = sender
        self._latency = latency
        self._connected = auto_connect
        self._sent: list[SentMessage] = []
        self._fail_addresses: set[str] = set()
        self._attempts = 0

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        self._connected = True
        logger.info("gateway_connected", extra={"gateway.sender": self._sender})

    async def disconnect(self) -> None:
        self._connected = False
        logger.info("gateway_disconnected")

    def fail_for(self, *addresses: str) -> None:
        """Make sends to these addresses fail until ``reset`` is called."""
        self._fail_addresses.update(a.lower() for a in addresses)

    async def send(self, address: str, text: str) -> DeliveryReceipt:
        self._attempts += 1
        if not self._connected:
            return DeliveryReceipt.failed("gateway not connected")
        if address.lower() in self._fail_addresses:
            logger.warning(
                "gateway_send_rejected", extra={"messaging.recipient": address}
            )
            return DeliveryReceipt.failed(f"delivery to {address} rejected")

        if self._latency:
            await asyncio.sleep(self._latency)

        message = SentMessage(
            id=f"msg_{uuid.uuid4().hex[:12]}",
            sender=self._sender,
            recipient=address,
            content=text,
            conversation=conversation_id(self._sender, address),
        )
        self._sent.append(message)
        logger.debug(
            "gateway_message_sent",
            extra={
                "messaging.recipient": address,
                "messaging.preview": text[:50],
            },
        )
        return DeliveryReceipt(success=True, message_id=message.id)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def get_sent_messages(self) -> list[SentMessage]:
        return list(self._sent)

    def was_message_sent_to(self, address: str, contains: str | None = None) -> bool:
        return any(
            m.recipient.lower() == address.lower()
            and (contains is None or contains in m.content)
            for m in self._sent
        )

    def last_message_to(self, address: str) -> SentMessage | None:
        matching = [m for m in self._sent if m.recipient.lower() == address.lower()]
        return matching[-1] if matching else None

    def get_stats(self) -> dict[str, Any]:
        return {
            "connected": self._connected,
            "attempts": self._attempts,
            "sent": len(self._sent),
            "conversations": len({m.conversation for m in self._sent}),
        }

    def reset(self) -> None:
        self._sent.clear()
        self._fail_addresses.clear()
        self._attempts = 0
