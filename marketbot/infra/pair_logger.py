"""
PairLogger: structured event logging bound to one trading pair.

Event names map to levels so call sites only say what happened:

    plog = PairLogger("BTC_RUR")
    plog.log("no_orders")                      # WARNING
    plog.log("create_order", side="buy", ...)  # INFO
    plog.log("order_create_error", error=...)  # ERROR
"""

from __future__ import annotations

import json
import logging
from typing import Any, Set

log = logging.getLogger("marketbot")


class PairLogger:
    """
    Event logger for a single pair.

    Log Level Hierarchy:
    - ERROR: a request or a whole pair step failed and was skipped
    - WARNING: nothing to do, or a degraded input (missing feed, no funds)
    - INFO: progress and every create/cancel call
    """

    ERROR_EVENTS: Set[str] = {
        "order_create_error", "order_delete_error", "resolve_error", "plan_error",
    }

    WARNING_EVENTS: Set[str] = {
        "no_orders", "only_buy_orders", "only_sell_orders",
        "closing_order_skipped", "no_funds", "rate_feed_failed",
    }

    def __init__(self, pair: Any) -> None:
        self.pair = str(pair)

    def level_for(self, event: str) -> int:
        if event in self.ERROR_EVENTS:
            return logging.ERROR
        if event in self.WARNING_EVENTS:
            return logging.WARNING
        return logging.INFO

    def log(self, event: str, **data: Any) -> None:
        payload = {"event": event, "pair": self.pair, **data}
        log.log(self.level_for(event), json.dumps(payload))

