"""
Monitoring package.

Prometheus counters for one pass, optionally pushed to a Pushgateway.
"""

from marketbot.monitoring.metrics import RunMetrics, push_metrics

__all__ = [
    "RunMetrics",
    "push_metrics",
]
