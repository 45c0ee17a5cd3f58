"""
MarketMaker: one pass over the configured pairs.

Phases, each over all pairs in configured order:
    1. resolve   - close imbalances and cancel every open order
    2. plan      - one balance snapshot, then an OrderPlan per pair
    3. submit    - place every planned order inside its spread band

Errors never cross pair boundaries. A failed create only skips that order;
an unexpected fault in resolution skips the rest of that pair's resolution;
a missing reference rate or a planning fault skips that pair's plan.
AuthError ends the pass; any other BotError escaping a phase (such as the
planning balance snapshot failing) is left to the caller.
"""

from __future__ import annotations

import json
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, TYPE_CHECKING

from marketbot.core.errors import ApiError, AuthError
from marketbot.core.models import OrderPlan, Pair, SIDES
from marketbot.exchange.execution import OrderExecutor
from marketbot.infra.pair_logger import PairLogger
from marketbot.strategy.planner import OrderPlanner, PlannerConfig, describe_plan
from marketbot.strategy.resolver import ExistingOrderResolver, ResolveResult

if TYPE_CHECKING:
    from marketbot.config.config import Settings
    from marketbot.exchange.gateway import Gateway
    from marketbot.monitoring.metrics import RunMetrics
    from marketbot.rates.feeds import ReferenceRateSource

log = logging.getLogger("marketbot")


@dataclass
class PairReport:
    """What happened to one pair during the pass."""
    pair: str
    resolve: Optional[ResolveResult] = None
    plan: Optional[OrderPlan] = None
    submitted: int = 0
    rejected: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class PassReport:
    pairs: Dict[str, PairReport] = field(default_factory=dict)
    duration_ms: float = 0.0

    @property
    def submitted(self) -> int:
        return sum(r.submitted for r in self.pairs.values())

    @property
    def rejected(self) -> int:
        return sum(r.rejected for r in self.pairs.values())

    @property
    def failed_pairs(self) -> List[str]:
        return [name for name, r in self.pairs.items() if r.errors]


class MarketMaker:
    def __init__(
        self,
        pairs: Sequence[Pair],
        gateway: "Gateway",
        rate_source: "ReferenceRateSource",
        resolver: ExistingOrderResolver,
        planner: OrderPlanner,
        executor: OrderExecutor,
        metrics: Optional["RunMetrics"] = None,
    ) -> None:
        self.pairs = list(pairs)
        self.gateway = gateway
        self.rate_source = rate_source
        self.resolver = resolver
        self.planner = planner
        self.executor = executor
        self.metrics = metrics

    @classmethod
    def from_settings(
        cls,
        cfg: "Settings",
        gateway: "Gateway",
        rate_source: "ReferenceRateSource",
        metrics: Optional["RunMetrics"] = None,
        rng: Optional[random.Random] = None,
    ) -> "MarketMaker":
        rng = rng or random.Random()
        pairs = cfg.parsed_pairs()
        executor = OrderExecutor(gateway, metrics)
        return cls(
            pairs=pairs,
            gateway=gateway,
            rate_source=rate_source,
            resolver=ExistingOrderResolver(gateway, executor, choose_side=rng.choice),
            planner=OrderPlanner(pairs, PlannerConfig.from_settings(cfg), rng=rng),
            executor=executor,
            metrics=metrics,
        )

    async def run_pass(self) -> PassReport:
        started = time.monotonic()
        report = PassReport(pairs={p.symbol: PairReport(pair=p.symbol) for p in self.pairs})

        await self.process_existing(report)
        plans = await self.prepare_orders(report)
        await self.create_new_orders(plans, report)

        report.duration_ms = (time.monotonic() - started) * 1000
        if self.metrics:
            self.metrics.mark_pass_complete()
        log.info(json.dumps({
            "event": "pass_complete",
            "pairs": len(self.pairs),
            "submitted": report.submitted,
            "rejected": report.rejected,
            "failed_pairs": report.failed_pairs,
            "duration_ms": round(report.duration_ms, 1),
        }))
        return report

    async def process_existing(self, report: PassReport) -> None:
        for pair in self.pairs:
            plog = PairLogger(pair)
            plog.log("process_existing")
            pair_report = report.pairs[pair.symbol]
            try:
                pair_report.resolve = await self.resolver.resolve(pair)
            except AuthError:
                raise
            except Exception as exc:
                plog.log("resolve_error", error=f"{exc.__class__.__name__}: {exc}")
                pair_report.errors.append(f"resolve: {exc}")
                self._count_pair_error(pair, "resolve")

    async def prepare_orders(self, report: PassReport) -> Dict[str, OrderPlan]:
        balances: Mapping[str, float] = await self.gateway.get_balances()
        plans: Dict[str, OrderPlan] = {}
        for pair in self.pairs:
            try:
                rate = await self.rate_source.rate_for(pair, self.pairs)
                plan = self.planner.plan(pair, balances, rate)
            except AuthError:
                raise
            except Exception as exc:
                error = str(exc) if isinstance(exc, ApiError) else f"{exc.__class__.__name__}: {exc}"
                PairLogger(pair).log("plan_error", error=error)
                report.pairs[pair.symbol].errors.append(f"plan: {exc}")
                self._count_pair_error(pair, "plan")
                continue
            log.debug(describe_plan(plan))
            plans[pair.symbol] = plan
            report.pairs[pair.symbol].plan = plan
        return plans

    async def create_new_orders(self, plans: Mapping[str, OrderPlan], report: PassReport) -> None:
        for symbol, plan in plans.items():
            PairLogger(symbol).log("processing")
            pair_report = report.pairs[symbol]
            for side in SIDES:
                for order in plan.for_side(side):
                    price = self.planner.submission_price(side, order.price)
                    result = await self.executor.submit(symbol, side, order.amount, price)
                    if result.success:
                        pair_report.submitted += 1
                    else:
                        pair_report.rejected += 1
                        pair_report.errors.append(f"create {side.value}: {result.error}")

    def _count_pair_error(self, pair: Pair, stage: str) -> None:
        if self.metrics:
            self.metrics.pair_errors.labels(pair=pair.symbol, stage=stage).inc()
