"""
ExistingOrderResolver: flatten and clear our open orders on one pair.

Per pair the open-order set is classified as empty, buy-only, sell-only or
two-sided. Only the two-sided case trades: one side is picked at random,
its orders are cancelled, and a single closing order is placed on that
side, priced to cross every order left on the opposite side and capped by
the balance it would spend. Whatever the branch, the pair's orders are then
re-fetched and all cancelled, so planning starts from an empty book.

Flow (both sides open, buy picked):

    cancel our buys
    total = sum(sell amounts), price = max(sell prices)
    amount = min(total, target_balance / price)
    buy(amount @ price)
    cancel everything still open on the pair
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Mapping, Optional, Sequence, TYPE_CHECKING

from marketbot.core.models import Order, Pair, SIDES, Side
from marketbot.core.utils import balance_of, max_price, min_price, orders_on_side, round_amount, total_amount
from marketbot.exchange.gateway import open_orders_for_pair
from marketbot.infra.pair_logger import PairLogger

if TYPE_CHECKING:
    from marketbot.exchange.execution import OrderExecutor, SubmitResult
    from marketbot.exchange.gateway import Gateway


class ResolverState(Enum):
    """What the open-order set of a pair looked like."""
    NO_ORDERS = "no_orders"
    BUY_ONLY = "only_buy_orders"
    SELL_ONLY = "only_sell_orders"
    BOTH = "buy_and_sell_orders"


@dataclass
class ClosingOrder:
    side: Side
    price: float
    amount: float
    total_amount: float  # opposite-side amount before the balance cap

    @property
    def capped(self) -> bool:
        return self.amount < self.total_amount


@dataclass
class ResolveResult:
    pair: str
    state: ResolverState
    closing: Optional[ClosingOrder] = None
    closing_submitted: bool = False
    cancelled_count: int = 0
    errors: List[str] = field(default_factory=list)


def classify(orders: Sequence[Order]) -> ResolverState:
    has_buy = any(o.side is Side.BUY for o in orders)
    has_sell = any(o.side is Side.SELL for o in orders)
    if has_buy and has_sell:
        return ResolverState.BOTH
    if has_buy:
        return ResolverState.BUY_ONLY
    if has_sell:
        return ResolverState.SELL_ONLY
    return ResolverState.NO_ORDERS


def closing_price(orders: Sequence[Order], side: Side) -> float:
    """
    Price that crosses every order on the opposite side: the highest ask
    for a closing buy, the lowest bid for a closing sell.
    """
    if side is Side.BUY:
        return max_price(orders, Side.SELL)
    return min_price(orders, Side.BUY)


def cap_closing_amount(
    side: Side,
    total: float,
    price: float,
    pair: Pair,
    balances: Mapping[str, float],
) -> float:
    """Largest amount up to `total` that the current balance can pay for."""
    if side is Side.BUY:
        target_balance = balance_of(balances, pair.target)
        if target_balance < total * price:
            return target_balance / price
        return total
    base_balance = balance_of(balances, pair.base)
    if base_balance < total:
        return base_balance
    return total


class ExistingOrderResolver:
    def __init__(
        self,
        gateway: "Gateway",
        executor: "OrderExecutor",
        choose_side: Callable[[Sequence[Side]], Side] = random.choice,
    ) -> None:
        """
        Args:
            gateway: Source of open orders and balances
            executor: Order create/cancel with per-order error isolation
            choose_side: Picks the closing side out of (buy, sell)
        """
        self.gateway = gateway
        self.executor = executor
        self.choose_side = choose_side

    async def resolve(self, pair: Pair) -> ResolveResult:
        """
        Close any two-sided imbalance on `pair`, then cancel all its orders.

        ApiError on individual creates/cancels is absorbed by the executor;
        anything else propagates to the caller.
        """
        plog = PairLogger(pair)
        orders = await open_orders_for_pair(self.gateway, pair.symbol)
        state = classify(orders)
        result = ResolveResult(pair=pair.symbol, state=state)

        if state is ResolverState.BOTH:
            plog.log(state.value, count=len(orders))
            await self._close_imbalance(pair, orders, result, plog)
        else:
            plog.log(state.value)

        # Fresh fetch: the closing order may have left a remainder on the book.
        remaining = await open_orders_for_pair(self.gateway, pair.symbol)
        sweep = await self.executor.cancel(pair.symbol, remaining, reason="sweep")
        result.cancelled_count += sweep.cancelled_count
        result.errors.extend(sweep.errors)
        return result

    async def _close_imbalance(
        self,
        pair: Pair,
        orders: Sequence[Order],
        result: ResolveResult,
        plog: PairLogger,
    ) -> None:
        side = self.choose_side(SIDES)
        opposite = side.opposite

        cancel = await self.executor.cancel(pair.symbol, orders_on_side(orders, side), reason="closing")
        result.cancelled_count += cancel.cancelled_count
        result.errors.extend(cancel.errors)

        total = total_amount(orders, opposite)
        price = closing_price(orders, side)
        balances = await self.gateway.get_balances()
        amount = cap_closing_amount(side, total, price, pair, balances)
        closing = ClosingOrder(side=side, price=price, amount=amount, total_amount=total)
        result.closing = closing

        if amount <= 0:
            plog.log("closing_order_skipped", side=side.value, price=price, total_amount=round_amount(total))
            return

        submitted: "SubmitResult" = await self.executor.submit(pair.symbol, side, amount, price, kind="closing")
        result.closing_submitted = submitted.success
        if submitted.error:
            result.errors.append(submitted.error)
