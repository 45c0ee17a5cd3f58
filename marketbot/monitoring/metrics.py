"""
Prometheus metrics for a market-making pass.

The bot exits after one pass, so there is no scrape endpoint; the registry
is pushed to a Pushgateway when one is configured.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, push_to_gateway

log = logging.getLogger("marketbot")


class RunMetrics:
    """Counters for orders created, rejected and cancelled during a pass."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        reg = self.registry

        self.orders_submitted = Counter(
            'orders_submitted_total',
            'Orders accepted by the exchange',
            labelnames=['pair', 'side', 'kind'],
            registry=reg
        )
        self.orders_rejected = Counter(
            'orders_rejected_total',
            'Orders rejected by the exchange',
            labelnames=['pair', 'side'],
            registry=reg
        )
        self.orders_cancelled = Counter(
            'orders_cancelled_total',
            'Orders cancelled',
            labelnames=['pair'],
            registry=reg
        )
        self.pair_errors = Counter(
            'pair_errors_total',
            'Pair steps abandoned after an error',
            labelnames=['pair', 'stage'],
            registry=reg
        )
        self.last_pass_timestamp = Gauge(
            'last_pass_timestamp_seconds',
            'Unix time the last pass finished',
            registry=reg
        )

    def mark_pass_complete(self) -> None:
        self.last_pass_timestamp.set(time.time())


def push_metrics(metrics: RunMetrics, gateway_url: str, job: str = "marketbot") -> bool:
    """Push the registry; failures are logged and reported as False."""
    try:
        push_to_gateway(gateway_url, job=job, registry=metrics.registry)
    except OSError as exc:
        log.warning(json.dumps({"event": "metrics_push_failed", "url": gateway_url, "error": str(exc)}))
        return False
    log.info(json.dumps({"event": "metrics_pushed", "url": gateway_url}))
    return True
