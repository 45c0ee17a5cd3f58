"""
Gateway: the exchange surface the bot depends on.

The resolver, planner and orchestrator only see this protocol, so tests and
the dry-run mode can swap the HTTP client for an in-memory double.
"""

from __future__ import annotations

import json
import logging
from typing import Dict, List, Protocol

from marketbot.core.models import Order, Side

log = logging.getLogger("marketbot")


class Gateway(Protocol):
    async def authenticate(self, email: str, password: str) -> None:
        """Open a session. Raises AuthError on rejected credentials."""

    async def get_balances(self) -> Dict[str, float]:
        """Available amount per currency code."""

    async def get_open_orders(self) -> List[Order]:
        """Our open orders across all pairs and sides."""

    async def create_order(self, side: Side, pair: str, amount: float, price: float) -> None:
        """Place a limit order. Raises ApiError on rejection."""

    async def delete_order(self, order_id: str) -> None:
        """Cancel one order. Raises ApiError on rejection."""


async def open_orders_for_pair(gateway: Gateway, pair: str) -> List[Order]:
    """Fresh fetch of our open orders restricted to one pair."""
    return [o for o in await gateway.get_open_orders() if o.pair == pair]


class DryRunGateway:
    """Reads go to the wrapped gateway; create/delete calls are only logged."""

    def __init__(self, inner: Gateway) -> None:
        self.inner = inner

    async def authenticate(self, email: str, password: str) -> None:
        await self.inner.authenticate(email, password)

    async def get_balances(self) -> Dict[str, float]:
        return await self.inner.get_balances()

    async def get_open_orders(self) -> List[Order]:
        return await self.inner.get_open_orders()

    async def create_order(self, side: Side, pair: str, amount: float, price: float) -> None:
        log.info(json.dumps({"event": "dry_run_create", "pair": pair, "side": side.value, "amount": amount, "price": price}))

    async def delete_order(self, order_id: str) -> None:
        log.info(json.dumps({"event": "dry_run_delete", "order_id": order_id}))
