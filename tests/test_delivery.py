"""Tests for delivery gateways."""

import json

import httpx
import pytest

from lapse.delivery import (
    ConnectableGateway,
    DeliveryGateway,
    InMemoryGateway,
    WebhookGateway,
    conversation_id,
)


class TestInMemoryGateway:
    """Tests for the in-process gateway."""

    @pytest.mark.asyncio
    async def test_send_records_message(self):
        gateway = InMemoryGateway()

        receipt = await gateway.send("0xABC", "hello there")

        assert receipt.success
        assert receipt.message_id.startswith("msg_")
        assert gateway.was_message_sent_to("0xabc")
        assert gateway.was_message_sent_to("0xabc", contains="hello")
        assert not gateway.was_message_sent_to("0xabc", contains="bye")
        assert gateway.last_message_to("0xabc").content == "hello there"

    @pytest.mark.asyncio
    async def test_disconnected_send_fails(self):
        gateway = InMemoryGateway(auto_connect=False)

        receipt = await gateway.send("0xabc", "hi")

        assert not receipt.success
        assert receipt.error == "gateway not connected"
        assert gateway.get_sent_messages() == []

        await gateway.connect()
        assert (await gateway.send("0xabc", "hi")).success

    @pytest.mark.asyncio
    async def test_fail_for(self):
        gateway = InMemoryGateway()
        gateway.fail_for("0xBAD")

        bad = await gateway.send("0xbad", "hi")
        good = await gateway.send("0xgood", "hi")

        assert not bad.success
        assert good.success
        assert gateway.get_stats() == {
            "connected": True,
            "attempts": 2,
            "sent": 1,
            "conversations": 1,
        }

    @pytest.mark.asyncio
    async def test_reset(self):
        gateway = InMemoryGateway()
        gateway.fail_for("0xbad")
        await gateway.send("0xabc", "hi")

        gateway.reset()

        assert gateway.get_sent_messages() == []
        assert (await gateway.send("0xbad", "hi")).success

    def test_conversation_id_order_independent(self):
        assert conversation_id("0xA", "0xb") == conversation_id("0xB", "0xa")
        assert conversation_id("0xA", "0xb") == "conv_0xa_0xb"

    def test_satisfies_protocols(self):
        gateway = InMemoryGateway()
        assert isinstance(gateway, DeliveryGateway)
        assert isinstance(gateway, ConnectableGateway)


class TestWebhookGateway:
    """Tests for the HTTP webhook gateway using a mock transport."""

    @pytest.fixture
    def requests(self) -> list[httpx.Request]:
        return []

    def make_gateway(self, handler, token: str | None = "hook-token") -> WebhookGateway:
        return WebhookGateway(
            "https://hooks.example.com/notify",
            token=token,
            transport=httpx.MockTransport(handler),
        )

    @pytest.mark.asyncio
    async def test_successful_post(self, requests):
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"id": "abc123"})

        gateway = self.make_gateway(handler)
        await gateway.connect()
        try:
            receipt = await gateway.send("0xabc", "renew soon")
        finally:
            await gateway.disconnect()

        assert receipt.success
        assert receipt.message_id == "abc123"
        assert len(requests) == 1
        assert requests[0].headers["Authorization"] == "Bearer hook-token"
        assert json.loads(requests[0].content) == {
            "address": "0xabc",
            "text": "renew soon",
        }

    @pytest.mark.asyncio
    async def test_no_token_sends_no_auth_header(self, requests):
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(204)

        gateway = self.make_gateway(handler, token=None)
        receipt = await gateway.send("0xabc", "hi")
        await gateway.disconnect()

        assert receipt.success
        assert receipt.message_id is None
        assert "Authorization" not in requests[0].headers

    @pytest.mark.asyncio
    async def test_non_2xx_is_failure(self):
        gateway = self.make_gateway(lambda request: httpx.Response(503))

        receipt = await gateway.send("0xabc", "hi")
        await gateway.disconnect()

        assert not receipt.success
        assert receipt.error == "HTTP 503"

    @pytest.mark.asyncio
    async def test_transport_error_is_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        gateway = self.make_gateway(handler)
        receipt = await gateway.send("0xabc", "hi")
        await gateway.disconnect()

        assert not receipt.success
        assert "connection refused" in receipt.error

    @pytest.mark.asyncio
    async def test_non_json_body_still_succeeds(self):
        gateway = self.make_gateway(lambda request: httpx.Response(200, text="ok"))

        receipt = await gateway.send("0xabc", "hi")
        await gateway.disconnect()

        assert receipt.success
        assert receipt.message_id is None
