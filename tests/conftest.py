"""
Pytest configuration and fixtures.
Adds the repo root to the Python path so tests can import marketbot.
"""

import itertools
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from marketbot.core.errors import ApiError  # noqa: E402
from marketbot.core.models import Order, Side  # noqa: E402


class MockGateway:
    """
    In-memory exchange.

    Deleting an order removes it from the book. Created orders are recorded
    and, when rest_created is set, added to the book as resting orders.
    """

    def __init__(self, orders: Optional[List[Order]] = None, balances: Optional[Dict[str, float]] = None):
        self.orders: List[Order] = list(orders or [])
        self.balances: Dict[str, float] = dict(balances or {})
        self.created: List[Dict] = []
        self.deleted: List[str] = []
        self.calls: List[str] = []
        self.fail_create: Callable[[Side, str, float, float], bool] = lambda *a: False
        self.fail_delete: Set[str] = set()
        self.rest_created = False
        self.authenticated_as: Optional[str] = None
        self._ids = itertools.count(1000)

    async def authenticate(self, email: str, password: str) -> None:
        self.calls.append("authenticate")
        self.authenticated_as = email

    async def get_balances(self) -> Dict[str, float]:
        self.calls.append("get_balances")
        return dict(self.balances)

    async def get_open_orders(self) -> List[Order]:
        self.calls.append("get_open_orders")
        return list(self.orders)

    async def create_order(self, side: Side, pair: str, amount: float, price: float) -> None:
        self.calls.append("create_order")
        if self.fail_create(side, pair, amount, price):
            raise ApiError("Insufficient funds")
        self.created.append({"side": side, "pair": pair, "amount": amount, "price": price})
        if self.rest_created:
            self.orders.append(Order(id=str(next(self._ids)), pair=pair, side=side, price=price, amount=amount))

    async def delete_order(self, order_id: str) -> None:
        self.calls.append("delete_order")
        if order_id in self.fail_delete:
            raise ApiError("Order not found")
        self.deleted.append(order_id)
        self.orders = [o for o in self.orders if o.id != order_id]


def make_order(oid, side, price, amount, pair="BTC_RUR") -> Order:
    return Order(id=str(oid), pair=pair, side=Side(side), price=price, amount=amount)


@pytest.fixture
def gateway():
    return MockGateway()


@pytest.fixture
def order_factory():
    return make_order
