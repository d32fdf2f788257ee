"""Neynar push gateway request shape and failure handling."""
import json

import httpx

from app.services.push.gateway import NOTIFICATIONS_PATH, NeynarPushGateway


def test_send_posts_batched_notification():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"success": True})

    gateway = NeynarPushGateway("key", base_url="https://neynar.test/", transport=httpx.MockTransport(handler))
    assert gateway.send([1, 2], "New Bid", "body", "https://market.test/listing/1") is True

    request = seen[0]
    assert str(request.url) == f"https://neynar.test{NOTIFICATIONS_PATH}"
    assert request.headers["x-api-key"] == "key"
    assert json.loads(request.content) == {
        "target_fids": [1, 2],
        "notification": {"title": "New Bid", "body": "body", "target_url": "https://market.test/listing/1"},
    }


def test_non_2xx_returns_false():
    gateway = NeynarPushGateway("key", transport=httpx.MockTransport(lambda r: httpx.Response(500, text="down")))
    assert gateway.send([1], "t", "b", "u") is False


def test_transport_error_returns_false():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    gateway = NeynarPushGateway("key", transport=httpx.MockTransport(handler))
    assert gateway.send([1], "t", "b", "u") is False


def test_missing_api_key_is_a_no_op():
    def handler(request):
        raise AssertionError("no request expected")

    assert NeynarPushGateway("", transport=httpx.MockTransport(handler)).send([1], "t", "b", "u") is False
