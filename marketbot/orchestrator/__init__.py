"""
Orchestrator package.

Drives one pass: resolve existing orders, plan, submit.
"""

from marketbot.orchestrator.market_maker import MarketMaker, PairReport, PassReport

__all__ = [
    "MarketMaker",
    "PairReport",
    "PassReport",
]
