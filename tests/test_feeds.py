"""
Tests for reference rate feeds.

Tests cover:
- wex ticker request shape and parsing
- bitflip filtering, renaming and side swap
- Feed failure degrading to an empty mapping
- Merge order and memoization in ReferenceRateSource
"""

import logging

import httpx
import pytest

from marketbot.core.errors import RateUnavailableError
from marketbot.core.models import Pair, ReferenceRate
from marketbot.rates.feeds import BitflipFeed, ReferenceRateSource, WexFeed, default_rate_source, rate_key

WEX_URL = "https://wex.test/api/3"
BITFLIP_URL = "https://bitflip.test/method"

WEX_BODY = {
    "btc_rur": {"high": 1, "low": 1, "buy": 400000.5, "sell": 401000.0},
    "dsh_rur": {"buy": 9000.0, "sell": 9100.0},
}

BITFLIP_BODY = [
    None,
    [
        {"pair": "BEN:RUB", "buy": 0.95, "sell": 1.05},
        {"pair": "BEN:BTC", "buy": 0.0000021, "sell": 0.0000023},
        {"pair": "BTC:RUB", "buy": 1.0, "sell": 2.0},
    ],
]


def client_for(routes, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        for prefix, response in routes.items():
            if str(request.url).startswith(prefix):
                return response() if callable(response) else response
        return httpx.Response(404)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


PAIRS = [Pair.parse("BTC_RUR"), Pair.parse("DASH_RUR"), Pair.parse("BEN_RUR")]


def test_rate_key():
    assert rate_key(Pair.parse("BTC_RUR")) == "btc_rur"
    assert rate_key(Pair.parse("DASH_RUR")) == "dsh_rur"


class TestWexFeed:
    @pytest.mark.asyncio
    async def test_request_and_parse(self):
        seen = []
        client = client_for({WEX_URL: httpx.Response(200, json=WEX_BODY)}, seen)

        rates = await WexFeed(WEX_URL, client).fetch(PAIRS)

        assert seen[0].url.path == "/api/3/ticker/btc_rur-dsh_rur-ben_rur"
        assert seen[0].url.params["ignore_invalid"] == "1"
        assert rates == {
            "btc_rur": ReferenceRate(buy=400000.5, sell=401000.0),
            "dsh_rur": ReferenceRate(buy=9000.0, sell=9100.0),
        }

    @pytest.mark.asyncio
    async def test_http_error_yields_empty(self, caplog):
        caplog.set_level(logging.WARNING, logger="marketbot")
        client = client_for({WEX_URL: httpx.Response(503)})

        assert await WexFeed(WEX_URL, client).fetch(PAIRS) == {}
        assert any('"rate_feed_failed"' in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_error_payload_yields_empty(self):
        client = client_for({WEX_URL: httpx.Response(200, json={"success": 0, "error": "Invalid pair name"})})
        assert await WexFeed(WEX_URL, client).fetch(PAIRS) == {}

    @pytest.mark.asyncio
    async def test_connection_error_yields_empty(self):
        def refuse():
            raise httpx.ConnectError("refused")

        client = client_for({WEX_URL: refuse})
        assert await WexFeed(WEX_URL, client).fetch(PAIRS) == {}


class TestBitflipFeed:
    @pytest.mark.asyncio
    async def test_filters_renames_and_swaps(self):
        seen = []
        client = client_for({BITFLIP_URL: httpx.Response(200, json=BITFLIP_BODY)}, seen)

        rates = await BitflipFeed(BITFLIP_URL, client).fetch(PAIRS)

        assert seen[0].url.path == "/method/market.getRates"
        assert rates == {
            "ben_rur": ReferenceRate(buy=1.05, sell=0.95),
            "ben_btc": ReferenceRate(buy=0.0000023, sell=0.0000021),
        }

    @pytest.mark.asyncio
    async def test_malformed_body_yields_empty(self):
        client = client_for({BITFLIP_URL: httpx.Response(200, content=b"<html>")})
        assert await BitflipFeed(BITFLIP_URL, client).fetch(PAIRS) == {}


class TestReferenceRateSource:
    @pytest.mark.asyncio
    async def test_merges_both_feeds(self):
        client = client_for({
            WEX_URL: httpx.Response(200, json=WEX_BODY),
            BITFLIP_URL: httpx.Response(200, json=BITFLIP_BODY),
        })
        source = default_rate_source(WEX_URL, BITFLIP_URL, client)

        rates = await source.get_reference_rates(PAIRS)

        assert set(rates) == {"btc_rur", "dsh_rur", "ben_rur", "ben_btc"}
        assert await source.rate_for(Pair.parse("DASH_RUR"), PAIRS) == ReferenceRate(buy=9000.0, sell=9100.0)

    @pytest.mark.asyncio
    async def test_later_feed_wins(self):
        wex_body = dict(WEX_BODY, ben_rur={"buy": 1.0, "sell": 1.0})
        client = client_for({
            WEX_URL: httpx.Response(200, json=wex_body),
            BITFLIP_URL: httpx.Response(200, json=BITFLIP_BODY),
        })
        source = default_rate_source(WEX_URL, BITFLIP_URL, client)

        assert await source.rate_for(Pair.parse("BEN_RUR"), PAIRS) == ReferenceRate(buy=1.05, sell=0.95)

    @pytest.mark.asyncio
    async def test_failed_feed_leaves_the_other(self):
        client = client_for({
            WEX_URL: httpx.Response(500),
            BITFLIP_URL: httpx.Response(200, json=BITFLIP_BODY),
        })
        source = default_rate_source(WEX_URL, BITFLIP_URL, client)

        rates = await source.get_reference_rates(PAIRS)

        assert set(rates) == {"ben_rur", "ben_btc"}
        with pytest.raises(RateUnavailableError) as exc_info:
            await source.rate_for(Pair.parse("BTC_RUR"), PAIRS)
        assert exc_info.value.pair == "BTC_RUR"

    @pytest.mark.asyncio
    async def test_zero_price_counts_as_missing(self, caplog):
        caplog.set_level(logging.WARNING, logger="marketbot")
        wex_body = dict(WEX_BODY, btc_rur={"buy": 0, "sell": 0})
        client = client_for({
            WEX_URL: httpx.Response(200, json=wex_body),
            BITFLIP_URL: httpx.Response(200, json=BITFLIP_BODY),
        })
        source = default_rate_source(WEX_URL, BITFLIP_URL, client)

        with pytest.raises(RateUnavailableError):
            await source.rate_for(Pair.parse("BTC_RUR"), PAIRS)
        assert any('"rates_unusable"' in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_unusable_later_rate_keeps_earlier(self):
        bitflip_body = [None, [{"pair": "BEN:RUB", "buy": 0.0, "sell": 0.0}]]
        wex_body = dict(WEX_BODY, ben_rur={"buy": 1.0, "sell": 1.1})
        client = client_for({
            WEX_URL: httpx.Response(200, json=wex_body),
            BITFLIP_URL: httpx.Response(200, json=bitflip_body),
        })
        source = default_rate_source(WEX_URL, BITFLIP_URL, client)

        assert await source.rate_for(Pair.parse("BEN_RUR"), PAIRS) == ReferenceRate(buy=1.0, sell=1.1)

    @pytest.mark.asyncio
    async def test_memoized(self):
        seen = []
        client = client_for({
            WEX_URL: httpx.Response(200, json=WEX_BODY),
            BITFLIP_URL: httpx.Response(200, json=BITFLIP_BODY),
        }, seen)
        source = default_rate_source(WEX_URL, BITFLIP_URL, client)

        await source.rate_for(Pair.parse("BTC_RUR"), PAIRS)
        await source.rate_for(Pair.parse("DASH_RUR"), PAIRS)

        assert len(seen) == 2

    @pytest.mark.asyncio
    async def test_no_feeds(self):
        source = ReferenceRateSource([])
        assert await source.get_reference_rates(PAIRS) == {}
