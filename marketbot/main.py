"""
Entry point wiring all components for a single pass.
"""

from __future__ import annotations

import asyncio
import logging
import sys

import httpx

from marketbot.config.config import Settings
from marketbot.config.config_validator import validate_and_log
from marketbot.core.errors import AuthError, BotError
from marketbot.exchange.bitfex import BitfexGateway
from marketbot.exchange.gateway import DryRunGateway
from marketbot.infra.logging_cfg import build_logger, log_event
from marketbot.monitoring.metrics import RunMetrics, push_metrics
from marketbot.orchestrator.market_maker import MarketMaker
from marketbot.rates.feeds import default_rate_source

log = logging.getLogger("marketbot")


async def run(cfg: Settings) -> int:
    bitfex = BitfexGateway(cfg.server_url, timeout=cfg.http_timeout)
    gateway = DryRunGateway(bitfex) if cfg.dry_run else bitfex
    feeds_client = httpx.AsyncClient(timeout=cfg.http_timeout)
    metrics = RunMetrics()
    try:
        await gateway.authenticate(cfg.email or "", cfg.password or "")
        bot = MarketMaker.from_settings(
            cfg,
            gateway,
            default_rate_source(cfg.wex_url, cfg.bitflip_url, feeds_client),
            metrics=metrics,
        )
        await bot.run_pass()
    except AuthError as exc:
        log_event(log, "auth_failed", level=logging.ERROR, error=str(exc))
        return 1
    except BotError as exc:
        log_event(log, "pass_failed", level=logging.ERROR, error=f"{exc.__class__.__name__}: {exc}")
        return 1
    finally:
        await feeds_client.aclose()
        await bitfex.close()
        if cfg.pushgateway_url:
            push_metrics(metrics, cfg.pushgateway_url)
    return 0


def main() -> None:
    build_logger("marketbot", file_path=None)
    try:
        cfg = Settings.load()
    except ValueError as exc:
        log_event(log, "config_invalid", level=logging.ERROR, error=str(exc))
        sys.exit(1)
    build_logger("marketbot", level=cfg.log_level, file_path=cfg.log_file)
    if not validate_and_log(cfg, log):
        sys.exit(1)

    try:
        code = asyncio.run(run(cfg))
    except KeyboardInterrupt:
        print("\nBot stopped by user")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
