import json

import httpx
import pytest

from leadintake.core.exceptions import NotificationDeliveryError
from leadintake.services.notification_service import NotificationSender

SERVICE_URL = "http://notifications.test/api/v1/queue"


def _sender(handler) -> NotificationSender:
    return NotificationSender(
        service_url=SERVICE_URL, timeout=1.0, transport=httpx.MockTransport(handler)
    )


class TestNotificationSender:
    @pytest.mark.asyncio
    async def test_posts_payload_with_idempotency_key(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(202, json={"queue_id": 42})

        result = await _sender(handler).send(
            "crm.sales.assignment",
            "rep@fleetco.ae",
            {"priority": "high"},
            lead_id="lead-1",
            tenant_id="tenant-1",
            idempotency_key="sales_rep_assignment_lead-1",
        )

        assert result.success is True
        assert result.queue_id == "42"
        assert seen["headers"]["Idempotency-Key"] == "sales_rep_assignment_lead-1"
        assert seen["body"]["template"] == "crm.sales.assignment"
        assert seen["body"]["recipient"] == "rep@fleetco.ae"
        assert seen["body"]["variables"] == {"priority": "high"}
        assert seen["body"]["lead_id"] == "lead-1"

    @pytest.mark.asyncio
    async def test_non_json_response_still_succeeds(self):
        result = await _sender(lambda request: httpx.Response(200, text="ok")).send(
            "t", "rep@fleetco.ae", {}
        )
        assert result.success is True
        assert result.queue_id is None

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        sender = _sender(lambda request: httpx.Response(503))
        with pytest.raises(NotificationDeliveryError) as exc_info:
            await sender.send("t", "rep@fleetco.ae", {})
        assert "503" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_timeout_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(NotificationDeliveryError):
            await _sender(handler).send("t", "rep@fleetco.ae", {})

    @pytest.mark.asyncio
    async def test_connection_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(NotificationDeliveryError):
            await _sender(handler).send("t", "rep@fleetco.ae", {})

    @pytest.mark.asyncio
    async def test_unconfigured_service_is_a_no_op(self):
        result = await NotificationSender(service_url="").send("t", "rep@fleetco.ae", {})
        assert result.success is False
