"""
Domain models shared by the resolver, planner and gateway.

All instances are transient snapshots for a single pass.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping

from marketbot.core.errors import ValidationError

PAIR_SEPARATOR = "_"


class Side(str, Enum):
    """Order side. Values match the exchange's `operation` field."""
    BUY = "buy"
    SELL = "sell"

    @property
    def opposite(self) -> "Side":
        return Side.SELL if self is Side.BUY else Side.BUY

    @classmethod
    def parse(cls, raw: Any) -> "Side":
        try:
            return cls(str(raw).lower())
        except ValueError:
            raise ValidationError(f"unknown order side: {raw!r}") from None


SIDES = (Side.BUY, Side.SELL)


@dataclass(frozen=True)
class Pair:
    """Trading pair such as BTC_RUR (base=BTC, target=RUR)."""
    base: str
    target: str

    @classmethod
    def parse(cls, raw: str) -> "Pair":
        parts = raw.strip().split(PAIR_SEPARATOR)
        if len(parts) != 2 or not all(parts):
            raise ValidationError(f"malformed pair: {raw!r}")
        return cls(base=parts[0], target=parts[1])

    @property
    def symbol(self) -> str:
        return f"{self.base}{PAIR_SEPARATOR}{self.target}"

    def references(self, currency: str) -> bool:
        """True if the currency is either leg of this pair."""
        return currency in (self.base, self.target)

    def spending_currency(self, side: Side) -> str:
        """Currency a new order on `side` consumes: target for buys, base for sells."""
        return self.target if side is Side.BUY else self.base

    def __str__(self) -> str:
        return self.symbol


@dataclass(frozen=True)
class Order:
    """One of our open orders as reported by the exchange."""
    id: str
    pair: str
    side: Side
    price: float
    amount: float

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Order":
        """Build from an exchange order dict (`operation` carries the side)."""
        try:
            return cls(
                id=str(payload["id"]),
                pair=str(payload["pair"]),
                side=Side.parse(payload.get("operation", payload.get("side"))),
                price=float(payload["price"]),
                amount=float(payload["amount"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"malformed order payload: {payload!r}") from exc


@dataclass(frozen=True)
class ReferenceRate:
    """Counterparty best prices for a pair from the external feeds."""
    buy: float
    sell: float

    def price_for(self, side: Side) -> float:
        return self.buy if side is Side.BUY else self.sell

    @property
    def usable(self) -> bool:
        """Both prices finite and positive; feeds report 0 for inactive markets."""
        return all(math.isfinite(px) and px > 0 for px in (self.buy, self.sell))


@dataclass
class PlannedOrder:
    """A new order produced by the planner, before the spread band is applied."""
    price: float
    amount: float

    @property
    def notional(self) -> float:
        return self.price * self.amount


@dataclass
class OrderPlan:
    """Planner output for one pair."""
    pair: Pair
    buy: List[PlannedOrder] = field(default_factory=list)
    sell: List[PlannedOrder] = field(default_factory=list)

    def for_side(self, side: Side) -> List[PlannedOrder]:
        return self.buy if side is Side.BUY else self.sell

    def as_dict(self) -> Dict[str, List[Dict[str, float]]]:
        return {
            side.value: [{"price": o.price, "amount": o.amount} for o in self.for_side(side)]
            for side in SIDES
        }
