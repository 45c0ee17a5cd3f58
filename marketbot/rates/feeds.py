"""
Reference rate feeds.

Two public tickers supply the counterparty prices new orders are quoted
around. Each feed normalizes its own symbols to lowercase `base_target`
keys; ReferenceRateSource merges them (later feeds overwrite earlier ones)
and memoizes the result for the pass. A feed that fails contributes an
empty mapping.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

import httpx

from marketbot.core.errors import RateUnavailableError
from marketbot.core.models import Pair, ReferenceRate

log = logging.getLogger("marketbot")

Rates = Dict[str, ReferenceRate]


def rate_key(pair: Pair) -> str:
    """Feed key for a pair: lowercase, with DASH spelled `dsh` as the tickers do."""
    return f"{pair.base}_{pair.target}".lower().replace("dash", "dsh")


class RateFeed:
    """Base class: fetch() never raises, it logs and returns {} instead."""

    name = "feed"

    def __init__(self, base_url: str, client: httpx.AsyncClient) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = client

    async def fetch(self, pairs: Sequence[Pair]) -> Rates:
        try:
            return await self._fetch(pairs)
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as exc:
            log.warning(json.dumps({
                "event": "rate_feed_failed",
                "feed": self.name,
                "error": f"{exc.__class__.__name__}: {exc}",
            }))
            return {}

    async def _fetch(self, pairs: Sequence[Pair]) -> Rates:
        raise NotImplementedError

    async def _get_json(self, url: str, params: Optional[dict] = None) -> Any:
        resp = await self.client.get(url, params=params)
        resp.raise_for_status()
        return resp.json()


class WexFeed(RateFeed):
    """wex.nz public ticker: {"btc_rur": {"buy": ..., "sell": ...}, ...}."""

    name = "wex"

    async def _fetch(self, pairs: Sequence[Pair]) -> Rates:
        joined = "-".join(rate_key(p) for p in pairs)
        data = await self._get_json(f"{self.base_url}/ticker/{joined}", params={"ignore_invalid": 1})
        return {
            key: ReferenceRate(buy=float(ticker["buy"]), sell=float(ticker["sell"]))
            for key, ticker in data.items()
        }


class BitflipFeed(RateFeed):
    """
    bitflip.cc market.getRates: [error, [{"pair": "BEN:RUB", "buy": .., "sell": ..}, ...]].

    Only BEN markets are taken. Sides are swapped: the ticker's sell is the
    price a counterparty buys at.
    """

    name = "bitflip"

    async def _fetch(self, pairs: Sequence[Pair]) -> Rates:
        data = await self._get_json(f"{self.base_url}/market.getRates")
        rates: Rates = {}
        for ticker in data[1]:
            symbol = str(ticker["pair"])
            if "BEN" not in symbol:
                continue
            key = symbol.replace(":", "_").lower().replace("rub", "rur")
            rates[key] = ReferenceRate(buy=float(ticker["sell"]), sell=float(ticker["buy"]))
        return rates


class ReferenceRateSource:
    def __init__(self, feeds: Iterable[RateFeed]) -> None:
        self.feeds: List[RateFeed] = list(feeds)
        self._cache: Optional[Rates] = None

    async def get_reference_rates(self, pairs: Sequence[Pair]) -> Rates:
        """Merged rates of all feeds, fetched once per source instance."""
        if self._cache is None:
            merged: Rates = {}
            for feed in self.feeds:
                fetched = await feed.fetch(pairs)
                # Inactive markets report 0; such a pair is treated as having no rate
                dropped = sorted(key for key, rate in fetched.items() if not rate.usable)
                if dropped:
                    log.warning(json.dumps({"event": "rates_unusable", "feed": feed.name, "pairs": dropped}))
                merged.update((key, rate) for key, rate in fetched.items() if rate.usable)
            log.info(json.dumps({"event": "rates_loaded", "pairs": sorted(merged)}))
            self._cache = merged
        return self._cache

    async def rate_for(self, pair: Pair, pairs: Sequence[Pair]) -> ReferenceRate:
        rates = await self.get_reference_rates(pairs)
        try:
            return rates[rate_key(pair)]
        except KeyError:
            raise RateUnavailableError(pair.symbol) from None


def default_rate_source(wex_url: str, bitflip_url: str, client: httpx.AsyncClient) -> ReferenceRateSource:
    return ReferenceRateSource([WexFeed(wex_url, client), BitflipFeed(bitflip_url, client)])
