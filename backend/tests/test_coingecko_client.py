"""Tests for the CoinGecko market data client."""

import httpx
import pytest

from app.clients import MarketDataClient, TransientFetchError

COIN_IDS = {"BTC": "bitcoin", "ETH": "ethereum", "SOL": "solana"}


def _client(handler, api_key: str = "") -> MarketDataClient:
    return MarketDataClient(
        coin_ids=COIN_IDS,
        base_url="https://cg.test",
        api_key=api_key,
        transport=httpx.MockTransport(handler),
    )


class TestFetchPrices:
    @pytest.mark.asyncio
    async def test_parses_quotes(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={
                "bitcoin": {"usd": 42000.5, "usd_24h_change": -1.25, "usd_24h_vol": 2.5e10},
                "ethereum": {"usd": 2500, "usd_24h_change": 3.0, "usd_24h_vol": 1e10},
            })

        client = _client(handler)
        try:
            quotes = await client.fetch_prices(["BTC", "ETH"])
        finally:
            await client.close()

        assert set(quotes) == {"BTC", "ETH"}
        assert quotes["BTC"].price == 42000.5
        assert quotes["BTC"].change_24h == -1.25
        assert quotes["BTC"].volume == 2.5e10
        assert quotes["ETH"].price == 2500.0

        params = seen[0].url.params
        assert seen[0].url.path == "/api/v3/simple/price"
        assert params["ids"] == "bitcoin,ethereum"
        assert params["vs_currencies"] == "usd"
        assert params["include_24hr_change"] == "true"
        assert params["include_24hr_vol"] == "true"

    @pytest.mark.asyncio
    async def test_missing_coin_skipped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"bitcoin": {"usd": 42000}})

        client = _client(handler)
        try:
            quotes = await client.fetch_prices(["BTC", "SOL"])
        finally:
            await client.close()

        assert list(quotes) == ["BTC"]
        assert quotes["BTC"].change_24h == 0.0
        assert quotes["BTC"].volume == 0.0

    @pytest.mark.asyncio
    async def test_unknown_symbol_not_requested(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={})

        client = _client(handler)
        try:
            assert await client.fetch_prices(["DOGE"]) == {}
        finally:
            await client.close()

        assert calls == []

    @pytest.mark.asyncio
    async def test_api_key_header(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        client = _client(handler, api_key="demo-key")
        try:
            await client.fetch_prices(["BTC"])
        finally:
            await client.close()

        assert seen[0].headers["x-cg-demo-api-key"] == "demo-key"


class TestFailures:
    """Every failure surfaces as TransientFetchError."""

    @pytest.mark.asyncio
    async def test_non_2xx(self):
        client = _client(lambda request: httpx.Response(429, text="rate limited"))
        try:
            with pytest.raises(TransientFetchError) as exc_info:
                await client.fetch_prices(["BTC"])
        finally:
            await client.close()

        assert exc_info.value.status_code == 429
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out")

        client = _client(handler)
        try:
            with pytest.raises(TransientFetchError):
                await client.fetch_prices(["BTC"])
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = _client(lambda request: httpx.Response(200, content=b"not json"))
        try:
            with pytest.raises(TransientFetchError):
                await client.fetch_prices(["BTC"])
        finally:
            await client.close()
