"""Delivery gateways: transports for reminder notifications.

Public API:
- DeliveryGateway: Protocol the reminder engine sends through
- InMemoryGateway: Records messages in memory (development, tests)
- WebhookGateway: POSTs notifications to an HTTP endpoint
"""

from lapse.delivery.base import ConnectableGateway, DeliveryGateway, DeliveryReceipt
from lapse.delivery.memory import InMemoryGateway, SentMessage, conversation_id
from lapse.delivery.webhook import WebhookGateway

__all__ = [
    "ConnectableGateway",
    "DeliveryGateway",
    "DeliveryReceipt",
    "InMemoryGateway",
    "SentMessage",
    "WebhookGateway",
    "conversation_id",
]
