"""Unit tests for the SessionStart health probe."""

import sys
import os
import asyncio

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "plugin"))

import httpx

from memos_memory.config import MemosConfig
from memos_memory.hooks.healthcheck import check_health

CONFIG = MemosConfig(api_url="http://memos.test:8080", user_id="alice", cube_id="work")


def _check(handler, config=CONFIG):
    return asyncio.run(check_health(config, transport=httpx.MockTransport(handler)))


def test_connected():
    paths = []

    def handler(request):
        paths.append(request.url.path)
        return httpx.Response(200, json={"status": "ok"})

    message = _check(handler)
    assert message == "MemOS memory connected (http://memos.test:8080, user: alice, cube: work)"
    assert paths == ["/product/scheduler/allstatus"]


def test_http_error_status():
    message = _check(lambda request: httpx.Response(503))
    assert message.startswith("WARNING: MemOS returned HTTP 503 at http://memos.test:8080.")
    assert "disabled this session" in message


def test_unreachable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    message = _check(handler)
    assert message.startswith("WARNING: MemOS is NOT reachable at http://memos.test:8080.")


def test_probe_timeout_is_unreachable():
    async def slow(request):
        await asyncio.sleep(1)
        return httpx.Response(200)

    config = MemosConfig(api_url="http://memos.test:8080", health_timeout=0.05)
    assert "NOT reachable" in _check(slow, config=config)
