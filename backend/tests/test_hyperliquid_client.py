"""Tests for the Hyperliquid client retry and validation behaviour."""

import httpx
import orjson
import pytest

from app.clients import (
    DeserializationError,
    HyperliquidClient,
    RetryExhaustedError,
    TerminalHTTPError,
    backoff_delay,
    is_retryable_status,
)
from core.models import FundingRate


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

FUNDING_OK = {"time": 1700000000000, "coin": "BTC", "fundingRate": 0.0001}


class SleepRecorder:
    """Replacement for asyncio.sleep that records delays instead of waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _client(responses, retries: int = 2):
    """Client whose transport replays `responses` in order.

    Each entry is either an httpx.Response or an exception to raise.
    """
    requests: list[httpx.Request] = []
    queue = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return httpx.Response(item.status_code, headers=item.headers, content=item.content)

    sleep = SleepRecorder()
    client = HyperliquidClient(
        base_url="https://hl.test",
        retries=retries,
        transport=httpx.MockTransport(handler),
        sleep=sleep,
    )
    return client, requests, sleep


# ---------------------------------------------------------------------------
# Backoff
# ---------------------------------------------------------------------------

class TestBackoff:
    def test_exponential_growth(self):
        assert backoff_delay(0) == 300
        assert backoff_delay(1) == 600
        assert backoff_delay(2) == 1200
        assert backoff_delay(6) == 19200

    def test_capped_at_30_seconds(self):
        assert backoff_delay(7) == 30000
        assert backoff_delay(20) == 30000

    def test_retryable_statuses(self):
        assert is_retryable_status(500)
        assert is_retryable_status(503)
        assert is_retryable_status(429)
        assert not is_retryable_status(400)
        assert not is_retryable_status(404)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class TestFundingRate:
    """get_funding_rate happy path and validation."""

    @pytest.mark.asyncio
    async def test_success(self):
        client, requests, sleep = _client([httpx.Response(200, json=FUNDING_OK)])
        try:
            rate = await client.get_funding_rate("BTC")
        finally:
            await client.close()

        assert rate == FundingRate(time=1700000000000, coin="BTC", funding_rate=0.0001)
        assert rate.to_payload() == FUNDING_OK
        assert requests[0].method == "POST"
        assert requests[0].url.path == "/info"
        assert orjson.loads(requests[0].content) == {"type": "fundingRate", "coin": "BTC"}
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_wrong_field_type_reports_path(self):
        payload = {"time": "yesterday", "coin": "BTC", "fundingRate": 0.0001}
        client, _, _ = _client([httpx.Response(200, json=payload)])
        try:
            with pytest.raises(DeserializationError) as exc_info:
                await client.get_funding_rate("BTC")
        finally:
            await client.close()

        error = exc_info.value
        assert error.kind == "deserialization"
        assert error.path == "time"
        assert str(error).startswith("FundingRateDeserializationError")
        assert '"time":"yesterday"' in error.raw_excerpt

    @pytest.mark.asyncio
    async def test_missing_field_reports_alias_path(self):
        payload = {"time": 1, "coin": "BTC"}
        client, _, _ = _client([httpx.Response(200, json=payload)])
        try:
            with pytest.raises(DeserializationError) as exc_info:
                await client.get_funding_rate("BTC")
        finally:
            await client.close()

        assert exc_info.value.path == "fundingRate"

    @pytest.mark.asyncio
    async def test_raw_excerpt_truncated(self):
        payload = {"coin": "X" * 1000}
        client, _, _ = _client([httpx.Response(200, json=payload)])
        try:
            with pytest.raises(DeserializationError) as exc_info:
                await client.get_funding_rate("BTC")
        finally:
            await client.close()

        assert len(exc_info.value.raw_excerpt) == 200

    @pytest.mark.asyncio
    async def test_invalid_json_body(self):
        client, _, _ = _client([httpx.Response(200, content=b"<html>oops</html>")])
        try:
            with pytest.raises(DeserializationError) as exc_info:
                await client.get_funding_rate("BTC")
        finally:
            await client.close()

        assert exc_info.value.path == ""
        assert exc_info.value.raw_excerpt == "<html>oops</html>"


class TestRetry:
    """Retry policy of post_json."""

    @pytest.mark.asyncio
    async def test_server_errors_retried_then_succeed(self):
        client, requests, sleep = _client([
            httpx.Response(500, text="busy"),
            httpx.Response(502, text="busy"),
            httpx.Response(200, json=FUNDING_OK),
        ])
        try:
            rate = await client.get_funding_rate("BTC")
        finally:
            await client.close()

        assert rate.coin == "BTC"
        assert len(requests) == 3
        assert sleep.delays == [0.6, 1.2]

    @pytest.mark.asyncio
    async def test_rate_limit_retried(self):
        client, requests, _ = _client([
            httpx.Response(429, text="slow down"),
            httpx.Response(200, json=FUNDING_OK),
        ])
        try:
            await client.get_funding_rate("BTC")
        finally:
            await client.close()

        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_transport_error_retried(self):
        client, requests, _ = _client([
            httpx.ConnectError("connection refused"),
            httpx.Response(200, json=FUNDING_OK),
        ])
        try:
            await client.get_funding_rate("BTC")
        finally:
            await client.close()

        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_retries_exhausted(self):
        client, requests, sleep = _client([httpx.Response(503, text="down")], retries=2)
        try:
            with pytest.raises(RetryExhaustedError) as exc_info:
                await client.get_funding_rate("BTC")
        finally:
            await client.close()

        assert exc_info.value.attempts == 3
        assert len(requests) == 3
        assert sleep.delays == [0.6, 1.2]

    @pytest.mark.asyncio
    async def test_zero_retries_fails_on_first_error(self):
        client, requests, sleep = _client([httpx.Response(500)], retries=0)
        try:
            with pytest.raises(RetryExhaustedError):
                await client.get_funding_rate("BTC")
        finally:
            await client.close()

        assert len(requests) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        client, requests, sleep = _client([httpx.Response(400, text="bad coin")])
        try:
            with pytest.raises(TerminalHTTPError) as exc_info:
                await client.get_funding_rate("NOPE")
        finally:
            await client.close()

        assert exc_info.value.status_code == 400
        assert exc_info.value.body == "bad coin"
        assert len(requests) == 1
        assert sleep.delays == []
