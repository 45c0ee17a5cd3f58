"""
Exchange package.

The Gateway protocol, the Bitfex HTTP client, the dry-run wrapper and the
order executor that isolates per-order failures.
"""

from marketbot.exchange.bitfex import BitfexGateway
from marketbot.exchange.execution import CancelResult, OrderExecutor, SubmitResult
from marketbot.exchange.gateway import DryRunGateway, Gateway, open_orders_for_pair

__all__ = [
    "BitfexGateway",
    "CancelResult",
    "DryRunGateway",
    "Gateway",
    "OrderExecutor",
    "SubmitResult",
    "open_orders_for_pair",
]
