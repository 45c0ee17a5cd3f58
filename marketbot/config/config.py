"""
Environment-driven configuration with validation.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv

from marketbot.core.errors import ValidationError
from marketbot.core.models import Pair

DEFAULT_PAIRS = ["BTC_RUR", "ETH_RUR"]


def env_bool(key: str, default: bool) -> bool:
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True)
class Settings:
    email: str | None
    password: str | None
    pairs: List[str]
    server_url: str
    wex_url: str
    bitflip_url: str
    http_timeout: float
    funds_usage: float  # share of per-slot funds spent on new orders
    orders_min: int
    orders_max: int
    price_k: float  # planning spread multiplier
    log_level: str
    log_file: str | None
    pushgateway_url: str | None
    dry_run: bool

    def dump(self) -> dict:
        """Return a dict of settings for logging, with the password masked."""
        data = self.__dict__.copy()
        if data.get("password"):
            data["password"] = "***"
        return data

    def parsed_pairs(self) -> List[Pair]:
        return [Pair.parse(p) for p in self.pairs]

    @staticmethod
    def _pairs() -> List[str]:
        pairs_raw = os.getenv("PAIRS")
        if not pairs_raw:
            return list(DEFAULT_PAIRS)
        return [p.strip() for p in pairs_raw.split(",") if p.strip()]

    @classmethod
    def load(cls) -> "Settings":
        load_dotenv()

        def _int_env(key: str, default: int) -> int:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            return int(raw)

        def _float_env(key: str, default: float) -> float:
            raw = os.getenv(key)
            if raw is None or raw == "":
                return default
            return float(raw)

        cfg = cls(
            email=os.getenv("EMAIL"),
            password=os.getenv("PASSWORD"),
            pairs=cls._pairs(),
            server_url=os.getenv("SERVER", "https://bitfex.trade"),
            wex_url=os.getenv("WEX_URL", "https://wex.nz/api/3"),
            bitflip_url=os.getenv("BITFLIP_URL", "https://api.bitflip.cc/method"),
            http_timeout=_float_env("MM_HTTP_TIMEOUT", 10.0),
            funds_usage=_float_env("MM_FUNDS_RESERVE", 0.99),
            orders_min=_int_env("MM_ORDERS_MIN", 2),
            orders_max=_int_env("MM_ORDERS_MAX", 3),
            price_k=_float_env("MM_PRICE_K", 1.0),
            log_level=os.getenv("MM_LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("MM_LOG_FILE", "marketbot.log") or None,
            pushgateway_url=os.getenv("MM_PUSHGATEWAY_URL") or None,
            dry_run=env_bool("MM_DRY_RUN", False),
        )
        cfg._validate()
        _sanity_check(cfg)
        return cfg

    def _validate(self) -> None:
        if not self.pairs:
            raise ValueError("PAIRS must name at least one pair")
        for raw in self.pairs:
            try:
                Pair.parse(raw)
            except ValidationError as exc:
                raise ValueError(f"PAIRS: {exc}") from exc
        if self.http_timeout <= 0:
            raise ValueError("MM_HTTP_TIMEOUT must be > 0")
        if not 0 < self.funds_usage <= 1:
            raise ValueError("MM_FUNDS_RESERVE must be in (0, 1]")
        if self.orders_min < 1 or self.orders_max < self.orders_min:
            raise ValueError("MM_ORDERS_MIN/MAX must satisfy 1 <= min <= max")
        if self.price_k <= 0:
            raise ValueError("MM_PRICE_K must be > 0")
        if logging.getLevelName(self.log_level) == f"Level {self.log_level}":
            raise ValueError(f"MM_LOG_LEVEL {self.log_level!r} is not a logging level")


def _sanity_check(cfg: Settings) -> None:
    """
    Log the effective settings once at startup so overrides are obvious.
    """
    logger = logging.getLogger("marketbot")
    payload = {
        "event": "config_loaded",
        "pairs": cfg.pairs,
        "server_url": cfg.server_url,
        "funds_usage": cfg.funds_usage,
        "orders": [cfg.orders_min, cfg.orders_max],
        "dry_run": cfg.dry_run,
    }
    logger.info(json.dumps(payload))
