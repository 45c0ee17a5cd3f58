"""
OrderExecutor: order create/cancel with per-order error isolation.

Every create and cancel in the bot goes through here so that:
- each call is logged with the pair, side, rounded amount and price
- ApiError / ValidationError from one order is logged and reported in the
  result instead of aborting the caller's loop
- metrics are counted in one place

AuthError is never swallowed; without a session nothing else can succeed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, TYPE_CHECKING

from marketbot.core.errors import ApiError, ValidationError
from marketbot.core.models import Order, Side
from marketbot.core.utils import round_amount
from marketbot.infra.pair_logger import PairLogger

if TYPE_CHECKING:
    from marketbot.exchange.gateway import Gateway
    from marketbot.monitoring.metrics import RunMetrics


@dataclass
class SubmitResult:
    """Result of order submission."""
    success: bool
    side: Optional[Side] = None
    price: float = 0.0
    amount: float = 0.0
    error: Optional[str] = None


@dataclass
class CancelResult:
    """Result of order cancellation."""
    success: bool
    cancelled_count: int = 0
    errors: List[str] = field(default_factory=list)


class OrderExecutor:
    def __init__(self, gateway: "Gateway", metrics: Optional["RunMetrics"] = None) -> None:
        self.gateway = gateway
        self.metrics = metrics

    async def submit(
        self,
        pair: str,
        side: Side,
        amount: float,
        price: float,
        kind: str = "new",
    ) -> SubmitResult:
        """
        Place one order.

        Args:
            pair: Pair symbol
            side: buy or sell
            amount: Unrounded amount sent to the exchange
            price: Limit price
            kind: "closing" or "new", for logs and metrics

        Returns:
            SubmitResult; success is False when the exchange rejected it
        """
        plog = PairLogger(pair)
        plog.log("create_order", side=side.value, amount=round_amount(amount), price=price, kind=kind)
        try:
            await self.gateway.create_order(side, pair, amount, price)
        except (ApiError, ValidationError) as exc:
            plog.log("order_create_error", side=side.value, kind=kind, error=str(exc))
            if self.metrics:
                self.metrics.orders_rejected.labels(pair=pair, side=side.value).inc()
            return SubmitResult(success=False, side=side, price=price, amount=amount, error=str(exc))
        if self.metrics:
            self.metrics.orders_submitted.labels(pair=pair, side=side.value, kind=kind).inc()
        return SubmitResult(success=True, side=side, price=price, amount=amount)

    async def cancel(self, pair: str, orders: Iterable[Order], reason: str = "") -> CancelResult:
        """Cancel each order in turn; a failed cancel does not stop the rest."""
        plog = PairLogger(pair)
        result = CancelResult(success=True)
        for order in orders:
            try:
                await self.gateway.delete_order(order.id)
            except ApiError as exc:
                plog.log("order_delete_error", order_id=order.id, reason=reason, error=str(exc))
                result.errors.append(f"{order.id}: {exc}")
                result.success = False
                continue
            result.cancelled_count += 1
            if self.metrics:
                self.metrics.orders_cancelled.labels(pair=pair).inc()
        if result.cancelled_count:
            plog.log("orders_cancelled", count=result.cancelled_count, reason=reason)
        return result
