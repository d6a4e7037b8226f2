"""Delivery gateway interface."""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class DeliveryReceipt:
    """Result of a send attempt."""

    success: bool
    message_id: str | None = None
    error: str | None = None

    @classmethod
    def failed(cls, error: str) -> "DeliveryReceipt":
        return cls(success=False, error=error)


@runtime_checkable
class DeliveryGateway(Protocol):
    """Sends a notification string to an address.

    Implementations must be safe to retry: the engine only records a
    delivery after a successful receipt and retries failures on the next
    evaluation pass.
    """

    async def send(self, address: str, text: str) -> DeliveryReceipt: ...


@runtime_checkable
class ConnectableGateway(DeliveryGateway, Protocol):
    """Gateway with an explicit connection lifecycle."""

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...
