from __future__ import annotations

import asyncio
import json
from typing import List

import httpx
import pytest

from peercat import AsyncPeerCat
from peercat.config import ClientConfig
from peercat.errors import AuthenticationError, NetworkError, RateLimitError, RequestTimeoutError

BALANCE = {"credits": 10, "totalDeposited": 50, "totalSpent": 40, "totalWithdrawn": 0, "totalGenerated": 800}


@pytest.fixture()
def delays(monkeypatch: pytest.MonkeyPatch) -> List[float]:
    recorded: List[float] = []

    async def fake_sleep(self, seconds: float) -> None:
        recorded.append(seconds)

    monkeypatch.setattr(AsyncPeerCat, "_sleep", fake_sleep)
    return recorded


def make_client(handler, max_retries: int = 3) -> AsyncPeerCat:
    cfg = ClientConfig(api_key="pcat_test_key", max_retries=max_retries)
    return AsyncPeerCat(cfg, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_balance_and_headers() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=BALANCE)

    async with make_client(handler) as client:
        assert await client.get_balance() == BALANCE

    assert len(seen) == 1
    assert seen[0].headers["Authorization"] == "Bearer pcat_test_key"
    assert seen[0].url == "https://api.peerc.at/v1/balance"


@pytest.mark.asyncio
async def test_endpoints_round_trip() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/v1/models":
            return httpx.Response(200, json={"models": [{"id": "stable-diffusion-xl"}]})
        return httpx.Response(200, json={"success": True})

    client = make_client(handler)
    try:
        models = await client.get_models()
        await client.get_history(limit=10, offset=20)
        await client.revoke_key("key_1")
        await client.update_key_name("key_1", "prod")
        await client.submit_prompt("a fox", options={"seed": 7})
        await client.get_on_chain_status("5xTx")
    finally:
        await client.aclose()

    assert models == [{"id": "stable-diffusion-xl"}]
    assert seen[1].url.raw_path == b"/v1/history?limit=10&offset=20"
    assert (seen[2].method, seen[2].url.path) == ("DELETE", "/v1/keys/key_1")
    assert json.loads(seen[3].content) == {"name": "prod"}
    assert json.loads(seen[4].content) == {"prompt": "a fox", "options": {"seed": 7}}
    assert seen[5].url.path == "/v1/generate/5xTx"


@pytest.mark.asyncio
async def test_retries_server_errors(delays: List[float]) -> None:
    statuses = iter([500, 503, 200])
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        status = next(statuses)
        if status != 200:
            return httpx.Response(status, json={"error": {"type": "api_error", "code": "internal", "message": "boom"}})
        return httpx.Response(200, json=BALANCE)

    result = await make_client(handler, max_retries=2).get_balance()

    assert result["credits"] == 10
    assert calls["count"] == 3
    assert delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_authentication_error_not_retried(delays: List[float]) -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(
            401,
            json={"error": {"type": "authentication_error", "code": "invalid_api_key", "message": "Invalid API key"}},
        )

    with pytest.raises(AuthenticationError):
        await make_client(handler).get_balance()
    assert calls["count"] == 1
    assert delays == []


@pytest.mark.asyncio
async def test_network_failure_exhausts_budget(delays: List[float]) -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        raise httpx.ConnectError("Connection reset by peer")

    with pytest.raises(NetworkError):
        await make_client(handler, max_retries=2).get_balance()
    assert calls["count"] == 3
    assert delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_concurrent_calls_are_independent(delays: List[float]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            429,
            json={"error": {"type": "rate_limit_error", "code": "rate_limited", "message": "Too many requests"}},
            headers={"Retry-After": "2"},
        )

    client = make_client(handler, max_retries=1)
    results = await asyncio.gather(*(client.get_balance() for _ in range(3)), return_exceptions=True)
    await client.aclose()

    assert all(isinstance(result, RateLimitError) for result in results)
    assert delays == [2.0, 2.0, 2.0]


@pytest.mark.asyncio
async def test_slow_attempt_is_cut_off_at_timeout() -> None:
    calls = {"count": 0}

    async def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        await asyncio.sleep(1.5)
        return httpx.Response(200, json=BALANCE)

    cfg = ClientConfig(api_key="pcat_test_key", timeout=0.1, max_retries=0)
    client = AsyncPeerCat(cfg, transport=httpx.MockTransport(handler))
    with pytest.raises(RequestTimeoutError) as excinfo:
        await client.get_balance()
    await client.aclose()

    assert calls["count"] == 1
    assert excinfo.value.type == "timeout_error"
    assert "timed out after 0.1s" in excinfo.value.message


@pytest.mark.asyncio
async def test_timed_out_attempt_is_retried(delays: List[float]) -> None:
    calls = {"count": 0}

    async def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] == 1:
            await asyncio.sleep(1.5)
        return httpx.Response(200, json=BALANCE)

    cfg = ClientConfig(api_key="pcat_test_key", timeout=0.1, max_retries=1)
    client = AsyncPeerCat(cfg, transport=httpx.MockTransport(handler))
    try:
        assert await client.get_balance() == BALANCE
    finally:
        await client.aclose()

    assert calls["count"] == 2
    assert delays == [1.0]


@pytest.mark.asyncio
async def test_key_updates_accept_empty_reply() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    client = make_client(handler)
    try:
        assert await client.revoke_key("key_1") is None
        assert await client.update_key_name("key_1", "prod") is None
    finally:
        await client.aclose()
