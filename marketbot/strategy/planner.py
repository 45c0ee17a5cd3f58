"""
OrderPlanner: turn balances and reference rates into a batch of new orders.

Per pair and side:
- the spending currency (target for buys, base for sells) is split evenly
  across every configured pair that trades it, so pairs sharing a currency
  never quote the same balance twice
- 2-3 orders are drawn at the reference price of the opposite side times k
- random weights split `funds * funds_usage` between them, so the batch
  notional is exactly that amount

The spread band is applied later, at submission, via submission_price().
"""

from __future__ import annotations

import json
import logging
import math
import random
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from marketbot.core.models import OrderPlan, Pair, PlannedOrder, ReferenceRate, SIDES, Side
from marketbot.core.utils import balance_of
from marketbot.infra.pair_logger import PairLogger

log = logging.getLogger("marketbot")

# Multipliers on the planning price; buys land just under it, sells just over.
# The buy band excludes its upper bound, the sell band includes both ends.
SPREAD_BANDS: Dict[Side, Tuple[float, float]] = {
    Side.BUY: (0.995, 0.9999),
    Side.SELL: (1.0001, 1.005),
}


@dataclass
class PlannerConfig:
    """Configuration for OrderPlanner."""
    funds_usage: float = 0.99
    orders_min: int = 2
    orders_max: int = 3
    price_k: float = 1.0

    @classmethod
    def from_settings(cls, cfg) -> "PlannerConfig":
        return cls(
            funds_usage=cfg.funds_usage,
            orders_min=cfg.orders_min,
            orders_max=cfg.orders_max,
            price_k=cfg.price_k,
        )


class OrderPlanner:
    """
    Stateless apart from the configured pair list and the random source.

    Pass a seeded or scripted random.Random to make plans reproducible.
    """

    def __init__(
        self,
        pairs: Sequence[Pair],
        config: Optional[PlannerConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.pairs = list(pairs)
        self.config = config or PlannerConfig()
        self.rng = rng or random.Random()

    def slots(self, currency: str) -> int:
        """Number of configured pairs that could spend `currency`."""
        return sum(1 for p in self.pairs if p.references(currency))

    def funds(self, currency: str, balances: Mapping[str, float]) -> float:
        slots = self.slots(currency)
        if slots == 0:
            return 0.0
        return balance_of(balances, currency) / slots

    def plan_side(
        self,
        pair: Pair,
        side: Side,
        balances: Mapping[str, float],
        rate: ReferenceRate,
    ) -> List[PlannedOrder]:
        currency = pair.spending_currency(side)
        funds = self.funds(currency, balances)
        if funds <= 0:
            PairLogger(pair).log("no_funds", side=side.value, currency=currency)
            return []

        count = self.rng.randint(self.config.orders_min, self.config.orders_max)
        base_price = rate.price_for(side.opposite) * self.config.price_k
        drafts = [(base_price, self.rng.random()) for _ in range(count)]

        weight_sum = sum(w for _, w in drafts)
        if weight_sum <= 0:
            drafts = [(px, 1.0) for px, _ in drafts]
            weight_sum = float(count)

        budget = funds * self.config.funds_usage
        return [
            PlannedOrder(price=px, amount=(w / weight_sum) * budget / px)
            for px, w in drafts
        ]

    def plan(self, pair: Pair, balances: Mapping[str, float], rate: ReferenceRate) -> OrderPlan:
        PairLogger(pair).log("prepare")
        plan = OrderPlan(pair=pair)
        for side in SIDES:
            plan.for_side(side).extend(self.plan_side(pair, side, balances, rate))
        return plan

    def submission_price(self, side: Side, price: float) -> float:
        """Planning price moved into the side's spread band."""
        low, high = SPREAD_BANDS[side]
        factor = self.rng.uniform(low, high)
        if side is Side.BUY and factor >= high:
            factor = math.nextafter(high, low)
        return price * factor


def describe_plan(plan: OrderPlan) -> str:
    return json.dumps({"event": "order_plan", "pair": plan.pair.symbol, **plan.as_dict()})
