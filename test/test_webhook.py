import json

import httpx
import pytest

from integration.webhook import WEBHOOK_SOURCE, build_webhook_body, notify_webhook


def test_body_shape():
    body = build_webhook_body({"id": "t1"})
    assert body["event"] == "task_created"
    assert body["task"] == {"id": "t1"}
    assert body["source"] == WEBHOOK_SOURCE == "ai-zenith-tasks"
    assert body["timestamp"]


@pytest.mark.asyncio
async def test_unreachable_url_resolves_without_raising():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    dispatch = await notify_webhook(
        "https://hooks.invalid/catch/1", {"id": "t1"}, transport=httpx.MockTransport(handler)
    )
    assert dispatch.sent is False
    assert dispatch.delivery_confirmed is False
    assert "connection refused" in dispatch.error


@pytest.mark.asyncio
async def test_unreachable_url_real_network_stack():
    dispatch = await notify_webhook("http://127.0.0.1:9/hook", {"id": "t1"}, timeout=1.0)
    assert dispatch.sent is False
    assert dispatch.delivery_confirmed is False


@pytest.mark.asyncio
async def test_sent_request_never_claims_delivery():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(500)

    dispatch = await notify_webhook("https://hooks.test/x", {"id": "t1"}, transport=httpx.MockTransport(handler))
    assert dispatch.sent is True
    assert dispatch.delivery_confirmed is False
    assert seen[0]["task"] == {"id": "t1"}


@pytest.mark.asyncio
async def test_missing_url():
    dispatch = await notify_webhook("", {"id": "t1"})
    assert dispatch.sent is False
    assert dispatch.error
