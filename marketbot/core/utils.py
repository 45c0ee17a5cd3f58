"""
Utility helpers.
"""

from __future__ import annotations

from typing import Iterable, List, Mapping

from marketbot.core.models import Order, Side

AMOUNT_DECIMALS = 8


def orders_on_side(orders: Iterable[Order], side: Side) -> List[Order]:
    return [o for o in orders if o.side is side]


def total_amount(orders: Iterable[Order], side: Side) -> float:
    return sum(o.amount for o in orders_on_side(orders, side))


def max_price(orders: Iterable[Order], side: Side) -> float:
    """Highest price on `side`. Raises ValueError if the side is empty."""
    return max(o.price for o in orders_on_side(orders, side))


def min_price(orders: Iterable[Order], side: Side) -> float:
    """Lowest price on `side`. Raises ValueError if the side is empty."""
    return min(o.price for o in orders_on_side(orders, side))


def round_amount(amount: float) -> float:
    """Round for display only; exchange calls get the raw value."""
    return round(amount, AMOUNT_DECIMALS)


def balance_of(balances: Mapping[str, float], currency: str) -> float:
    """Balance lookup where an unknown currency counts as zero."""
    return float(balances.get(currency, 0.0) or 0.0)
