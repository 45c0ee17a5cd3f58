"""
Core package.

Domain models, the error hierarchy and shared numeric helpers.
"""

from marketbot.core.errors import (
    ApiError,
    AuthError,
    BotError,
    RateUnavailableError,
    ValidationError,
)
from marketbot.core.models import (
    Order,
    OrderPlan,
    Pair,
    PlannedOrder,
    ReferenceRate,
    Side,
)

__all__ = [
    "ApiError",
    "AuthError",
    "BotError",
    "RateUnavailableError",
    "ValidationError",
    "Order",
    "OrderPlan",
    "Pair",
    "PlannedOrder",
    "ReferenceRate",
    "Side",
]
