"""
Strategy package.

Existing-order resolution and new-order planning.
"""

from marketbot.strategy.planner import OrderPlanner, PlannerConfig, SPREAD_BANDS
from marketbot.strategy.resolver import (
    ClosingOrder,
    ExistingOrderResolver,
    ResolveResult,
    ResolverState,
)

__all__ = [
    "OrderPlanner",
    "PlannerConfig",
    "SPREAD_BANDS",
    "ClosingOrder",
    "ExistingOrderResolver",
    "ResolveResult",
    "ResolverState",
]
