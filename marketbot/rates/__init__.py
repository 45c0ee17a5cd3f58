"""
Rates package.

External ticker feeds and the merged reference rate source.
"""

from marketbot.rates.feeds import (
    BitflipFeed,
    RateFeed,
    ReferenceRateSource,
    WexFeed,
    default_rate_source,
    rate_key,
)

__all__ = [
    "BitflipFeed",
    "RateFeed",
    "ReferenceRateSource",
    "WexFeed",
    "default_rate_source",
    "rate_key",
]
